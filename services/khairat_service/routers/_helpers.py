"""Shared dependencies for khairat routers."""

from fastapi import Request

from libs.common.field_crypto import FieldCipher
from services.khairat_service.services.notifications import NotificationDispatcher


def get_field_cipher(request: Request) -> FieldCipher:
    """The IC-number cipher built once at startup."""
    return request.app.state.field_cipher


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier
