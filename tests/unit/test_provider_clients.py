"""Unit tests for the Resend and WhatsApp HTTP clients.

``httpx.AsyncClient.post`` is patched, so nothing leaves the process.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from services.communications_service.resend_client import ResendClient, ResendError
from services.communications_service.whatsapp_client import (
    WhatsAppClient,
    WhatsAppError,
    normalize_phone,
)


def _response(status_code: int, json_body: dict) -> httpx.Response:
    return httpx.Response(
        status_code, json=json_body, request=httpx.Request("POST", "https://test")
    )


# ---------------------------------------------------------------------------
# Resend
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resend_client_requires_api_key():
    with patch(
        "services.communications_service.resend_client.get_settings"
    ) as mock_settings:
        mock_settings.return_value.RESEND_API_KEY = None
        with pytest.raises(ValueError):
            ResendClient()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resend_send_email_posts_payload():
    client = ResendClient(api_key="re_test", from_address="GlowMart <hi@glowmart.in>")
    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(200, {"id": "email-1"}),
    ) as mock_post:
        data = await client.send_email("priya@glowmart.in", "Hello", "<p>Hi</p>")

    assert data == {"id": "email-1"}
    url = mock_post.await_args.args[0]
    kwargs = mock_post.await_args.kwargs
    assert url.endswith("/emails")
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"
    assert kwargs["json"] == {
        "from": "GlowMart <hi@glowmart.in>",
        "to": ["priya@glowmart.in"],
        "subject": "Hello",
        "html": "<p>Hi</p>",
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resend_error_carries_provider_message():
    client = ResendClient(api_key="re_test")
    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(422, {"message": "Invalid `to` field"}),
    ):
        with pytest.raises(ResendError) as exc_info:
            await client.send_email("bad", "s", "h")

    assert exc_info.value.message == "Invalid `to` field"
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resend_transport_error_is_wrapped():
    client = ResendClient(api_key="re_test")
    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("connection refused"),
    ):
        with pytest.raises(ResendError, match="Failed to reach Resend"):
            await client.send_email("priya@glowmart.in", "s", "h")


# ---------------------------------------------------------------------------
# WhatsApp
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+91 98765-43210", "919876543210"),
        ("98765 43210", "919876543210"),
        ("(415) 555-0100", "914155550100"),
        ("+1 415 555 0100", "14155550100"),
        ("", ""),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw, country_code="91") == expected


@pytest.mark.asyncio
@pytest.mark.unit
async def test_whatsapp_send_text_returns_message_id():
    client = WhatsAppClient("1234567890", "wa-token")
    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(200, {"messages": [{"id": "wamid.abc"}]}),
    ) as mock_post:
        sent = await client.send_text("919876543210", "Hello")

    assert sent.message_id == "wamid.abc"
    url = mock_post.await_args.args[0]
    assert url.endswith("/1234567890/messages")
    assert mock_post.await_args.kwargs["json"] == {
        "messaging_product": "whatsapp",
        "to": "919876543210",
        "type": "text",
        "text": {"body": "Hello"},
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_whatsapp_error_without_message_id():
    client = WhatsAppClient("1234567890", "wa-token")
    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(400, {"error": {"message": "Recipient not on WhatsApp"}}),
    ):
        with pytest.raises(WhatsAppError) as exc_info:
            await client.send_text("919876543210", "Hello")

    assert exc_info.value.message == "Recipient not on WhatsApp"
    assert exc_info.value.status_code == 400
