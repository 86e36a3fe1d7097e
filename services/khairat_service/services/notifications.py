"""
Approval / rejection notifications for khairat applicants.

Two channels are supported, each configured independently:
- WhatsApp, through a Cloud API style ``/messages`` endpoint
- Email, through an HTTP email API (only for applicants who gave an address)

Usage:
    notifier = NotificationDispatcher.from_settings()
    notifier.dispatch_approval(payload)          # returns immediately
    notifier.dispatch_rejection(payload, reason)
    await notifier.drain()                       # on shutdown

Delivery failures are logged and never reach the caller: the decision that
triggered the notification has already been committed.
"""

import asyncio
from typing import Optional, Protocol, Sequence

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.khairat_service import templates
from services.khairat_service.schemas import NotificationPayload

logger = get_logger(__name__)

MALAYSIA_COUNTRY_CODE = "60"


class NotificationChannel(Protocol):
    name: str

    def is_configured(self) -> bool: ...

    def accepts(self, payload: NotificationPayload) -> bool: ...

    async def notify_approval(self, payload: NotificationPayload) -> bool: ...

    async def notify_rejection(
        self, payload: NotificationPayload, reason: str
    ) -> bool: ...


def to_international(mobile: str) -> str:
    """Canonical local mobile (``0123456789``) to ``60123456789``."""
    if mobile.startswith(MALAYSIA_COUNTRY_CODE):
        return mobile
    if mobile.startswith("0"):
        return MALAYSIA_COUNTRY_CODE + mobile[1:]
    return MALAYSIA_COUNTRY_CODE + mobile


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


class WhatsAppChannel:
    name = "whatsapp"

    def __init__(
        self,
        api_url: Optional[str],
        access_token: Optional[str],
        timeout: float = 15.0,
    ):
        self.api_url = api_url
        self.access_token = access_token
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_url and self.access_token)

    def accepts(self, payload: NotificationPayload) -> bool:
        return bool(payload.mobile_phone)

    async def _send(self, to: str, text: str) -> bool:
        body = {
            "messaging_product": "whatsapp",
            "to": to_international(to),
            "type": "text",
            "text": {"body": text},
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json=body,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp API request failed: {e}")
            return False

        if response.is_success:
            return True
        logger.error(f"WhatsApp API returned {response.status_code}: {response.text}")
        return False

    async def notify_approval(self, payload: NotificationPayload) -> bool:
        return await self._send(payload.mobile_phone, templates.approval_whatsapp(payload))

    async def notify_rejection(self, payload: NotificationPayload, reason: str) -> bool:
        return await self._send(
            payload.mobile_phone, templates.rejection_whatsapp(payload, reason)
        )


class EmailChannel:
    name = "email"

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        from_email: str,
        timeout: float = 15.0,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def accepts(self, payload: NotificationPayload) -> bool:
        return bool(payload.email)

    async def _send(self, to_email: str, subject: str, body: str) -> bool:
        message = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "text": body,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json=message,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Email API request failed: {e}")
            return False

        if response.is_success:
            return True
        logger.error(f"Email API returned {response.status_code}: {response.text}")
        return False

    async def notify_approval(self, payload: NotificationPayload) -> bool:
        subject, body = templates.approval_email(payload)
        return await self._send(payload.email, subject, body)

    async def notify_rejection(self, payload: NotificationPayload, reason: str) -> bool:
        subject, body = templates.rejection_email(payload, reason)
        return await self._send(payload.email, subject, body)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """Fans a decision out to every configured channel in the background."""

    def __init__(self, channels: Sequence[NotificationChannel]):
        self.channels = list(channels)
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        settings = get_settings()
        return cls(
            [
                WhatsAppChannel(
                    settings.WHATSAPP_API_URL,
                    settings.WHATSAPP_ACCESS_TOKEN,
                    timeout=settings.NOTIFICATION_TIMEOUT,
                ),
                EmailChannel(
                    settings.EMAIL_API_URL,
                    settings.EMAIL_API_KEY,
                    settings.EMAIL_FROM,
                    timeout=settings.NOTIFICATION_TIMEOUT,
                ),
            ]
        )

    def _channels_for(self, payload: NotificationPayload) -> list[NotificationChannel]:
        return [
            channel
            for channel in self.channels
            if channel.is_configured() and channel.accepts(payload)
        ]

    def dispatch_approval(self, payload: NotificationPayload) -> None:
        self._schedule("approval", payload, None)

    def dispatch_rejection(self, payload: NotificationPayload, reason: str) -> None:
        self._schedule("rejection", payload, reason)

    def _schedule(
        self, kind: str, payload: NotificationPayload, reason: Optional[str]
    ) -> None:
        channels = self._channels_for(payload)
        if not channels:
            logger.info(
                "No notification channel configured for application %s",
                payload.application_id,
            )
            return

        task = asyncio.create_task(self._run(kind, payload, reason, channels))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        kind: str,
        payload: NotificationPayload,
        reason: Optional[str],
        channels: list[NotificationChannel],
    ) -> None:
        if kind == "approval":
            calls = [channel.notify_approval(payload) for channel in channels]
        else:
            calls = [channel.notify_rejection(payload, reason) for channel in channels]

        results = await asyncio.gather(*calls, return_exceptions=True)

        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Khairat %s notification via %s raised: %s",
                    kind,
                    channel.name,
                    result,
                    extra={"extra_fields": {"application_id": payload.application_id}},
                )
            else:
                logger.info(
                    "Khairat %s notification via %s: %s",
                    kind,
                    channel.name,
                    "sent" if result else "failed",
                    extra={"extra_fields": {"application_id": payload.application_id}},
                )

    async def drain(self) -> None:
        """Wait for every in-flight notification task."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
