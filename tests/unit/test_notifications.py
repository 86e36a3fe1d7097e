"""Unit tests for the notification dispatcher and channel helpers."""

from datetime import date

import httpx
import pytest
from services.khairat_service import templates
from services.khairat_service.schemas import NotificationPayload
from services.khairat_service.services.notifications import (
    EmailChannel,
    NotificationDispatcher,
    WhatsAppChannel,
    to_international,
)
from tests.factories import FakeChannel


def _payload(**overrides) -> NotificationPayload:
    defaults = {
        "application_id": 12,
        "name": "Ahmad bin Abdullah",
        "ic_number": "800101125555",
        "mobile_phone": "0123456789",
        "email": None,
        "fee_type": "keahlian",
        "receipt_number": "R001",
        "amount": 50.0,
        "registered_on": date(2026, 10, 1),
        "dependent_count": 2,
    }
    defaults.update(overrides)
    return NotificationPayload(**defaults)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approval_goes_to_every_configured_channel(
    notifier, whatsapp_channel, email_channel
):
    notifier.dispatch_approval(_payload(email="ahmad@example.com"))
    await notifier.drain()

    assert len(whatsapp_channel.approvals) == 1
    assert len(email_channel.approvals) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_skipped_without_address(notifier, whatsapp_channel, email_channel):
    notifier.dispatch_rejection(_payload(), "Resit tidak sah")
    await notifier.drain()

    assert whatsapp_channel.rejections[0][1] == "Resit tidak sah"
    assert email_channel.rejections == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unconfigured_channel_is_not_called():
    offline = FakeChannel("whatsapp", configured=False)
    dispatcher = NotificationDispatcher([offline])

    dispatcher.dispatch_approval(_payload())
    await dispatcher.drain()

    assert offline.approvals == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_channel_failure_does_not_propagate():
    broken = FakeChannel("whatsapp", fail_with=RuntimeError("provider down"))
    healthy = FakeChannel("email")
    dispatcher = NotificationDispatcher([broken, healthy])

    dispatcher.dispatch_approval(_payload())
    await dispatcher.drain()

    assert len(broken.approvals) == 1
    assert len(healthy.approvals) == 1


@pytest.mark.unit
def test_channels_need_endpoint_and_credentials():
    assert not WhatsAppChannel(None, "token").is_configured()
    assert WhatsAppChannel("https://graph.example/v1/messages", "token").is_configured()
    assert not EmailChannel("https://mail.example/send", None, "a@b.c").is_configured()
    assert not EmailChannel("https://mail.example/send", "key", "a@b.c").accepts(_payload())


@pytest.mark.unit
@pytest.mark.parametrize(
    "mobile, expected",
    [
        ("0123456789", "60123456789"),
        ("60123456789", "60123456789"),
        ("123456789", "60123456789"),
    ],
)
def test_to_international(mobile, expected):
    assert to_international(mobile) == expected


@pytest.mark.unit
def test_messages_mask_ic_number():
    message = templates.approval_whatsapp(_payload())

    assert "800101125555" not in message
    assert "********5555" in message
    assert "KA-00012" in message

    subject, body = templates.rejection_email(_payload(), "Resit tidak sah")
    assert "Ditolak" in subject
    assert "Resit tidak sah" in body


def _mock_client(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_whatsapp_posts_to_international_number(monkeypatch):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    _mock_client(monkeypatch, handler)
    channel = WhatsAppChannel("https://graph.example/v1/messages", "secret-token")

    assert await channel.notify_approval(_payload()) is True
    assert requests[0].headers["Authorization"] == "Bearer secret-token"
    assert b'"to":"60123456789"' in requests[0].content.replace(b" ", b"")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_provider_error_is_reported_as_false(monkeypatch):
    _mock_client(monkeypatch, lambda request: httpx.Response(503, text="down"))
    channel = EmailChannel("https://mail.example/send", "key", "khairat@masjid.test")

    sent = await channel.notify_rejection(_payload(email="ahmad@example.com"), "Lewat")

    assert sent is False
