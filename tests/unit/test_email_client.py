"""Unit tests for the store-side email client and internal HTTP helper."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from jose import jwt
from libs.auth.dependencies import settings as auth_settings
from libs.common.emails.client import EmailClient
from libs.common.service_client import internal_post


def _response(status_code: int, json_body: dict) -> httpx.Response:
    return httpx.Response(
        status_code, json=json_body, request=httpx.Request("POST", "https://test")
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_order_email_posts_to_communications():
    with patch(
        "libs.common.emails.client.internal_post",
        new_callable=AsyncMock,
        return_value=_response(200, {"success": True, "id": "email-1"}),
    ) as mock_post:
        sent = await EmailClient().send_order_email(
            email="priya@glowmart.in",
            customer_name="Priya",
            order_number="GM-20260104-A1B2C",
            email_type="order_shipped",
            order_details={"items": []},
            tracking_number="AWB123",
        )

    assert sent is True
    kwargs = mock_post.await_args.kwargs
    assert kwargs["path"] == "/email/order"
    assert kwargs["calling_service"] == "store_service"
    assert kwargs["json"]["tracking_number"] == "AWB123"
    # Empty optional fields are left out of the payload
    assert "tracking_url" not in kwargs["json"]
    assert "cancel_reason" not in kwargs["json"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_returns_false_on_error_status():
    with patch(
        "libs.common.emails.client.internal_post",
        new_callable=AsyncMock,
        return_value=_response(500, {"error": "Domain not verified"}),
    ):
        sent = await EmailClient().send_request_status_email(
            email="priya@glowmart.in",
            customer_name="Priya",
            order_number="GM-20260104-A1B2C",
            request_type="return",
            old_status="pending",
            new_status="approved",
        )
    assert sent is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_returns_false_when_unreachable():
    with patch(
        "libs.common.emails.client.internal_post",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("connection refused"),
    ):
        sent = await EmailClient().send_order_email(
            email="priya@glowmart.in",
            customer_name="Priya",
            order_number="GM-1",
            email_type="order_placed",
            order_details={},
        )
    assert sent is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_internal_post_sends_service_role_token():
    with patch(
        "httpx.AsyncClient.request",
        new_callable=AsyncMock,
        return_value=_response(200, {"success": True}),
    ) as mock_request:
        await internal_post(
            service_url="http://communications:8000",
            path="/email/order",
            calling_service="store_service",
            json={"a": 1},
        )

    method, url = mock_request.await_args.args
    headers = mock_request.await_args.kwargs["headers"]
    assert (method, url) == ("POST", "http://communications:8000/email/order")
    assert headers["X-Caller-Service"] == "store_service"

    token = headers["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(token, auth_settings.SUPABASE_JWT_SECRET, algorithms=["HS256"])
    assert claims["sub"] == "store_service"
    assert claims["role"] == "service_role"
