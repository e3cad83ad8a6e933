"""
Resend API client for outgoing email.

Every email leaving GlowMart goes through ``ResendClient.send_email``:
transactional order/return emails as well as marketing campaigns.
"""

import logging
from typing import Optional

import httpx
from libs.common.config import get_settings

logger = logging.getLogger(__name__)


class ResendError(Exception):
    """Raised when Resend rejects a request or cannot be reached."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class ResendClient:
    """Async client for the Resend ``/emails`` endpoint."""

    def __init__(self, api_key: str = None, from_address: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.RESEND_API_KEY
        if not self.api_key:
            raise ValueError("RESEND_API_KEY is required")
        self.base_url = settings.RESEND_API_URL.rstrip("/")
        self.from_address = from_address or settings.EMAIL_FROM
        self._headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send_email(self, to: str, subject: str, html: str) -> dict:
        """
        Send one HTML email.

        Returns:
            The Resend response body (contains the message ``id``).

        Raises:
            ResendError: non-2xx response (message taken from the body) or a
                transport failure.
        """
        payload = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.base_url}/emails", headers=self._headers, json=payload
                )
        except httpx.RequestError as e:
            raise ResendError(f"Failed to reach Resend: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            logger.error(f"Resend API error: {response.status_code} - {data}")
            raise ResendError(
                message=data.get("message") or "Failed to send email",
                status_code=response.status_code,
                response_data=data,
            )
        return data


def is_email_configured() -> bool:
    return bool(get_settings().RESEND_API_KEY)


def get_resend_client() -> ResendClient:
    return ResendClient()
