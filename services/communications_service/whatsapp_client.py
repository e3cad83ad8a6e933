"""
WhatsApp Business (Meta Graph API) client.

Credentials are not environment settings: admins store them in
``site_settings['whatsapp_api']``, so a client is built per send from the
loaded ``WhatsAppSettings``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx
from libs.common.config import get_settings

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class WhatsAppError(Exception):
    """Raised when the Graph API rejects a message or cannot be reached."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


@dataclass
class SentMessage:
    message_id: str


def normalize_phone(phone: str, country_code: Optional[str] = None) -> str:
    """Strip non-digits; bare 10-digit numbers get the country code prefixed.

    >>> normalize_phone("+91 98765-43210")
    '919876543210'
    >>> normalize_phone("98765 43210")
    '919876543210'
    """
    country_code = country_code or get_settings().WHATSAPP_DEFAULT_COUNTRY_CODE
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) == 10 and not digits.startswith(country_code):
        digits = country_code + digits
    return digits


class WhatsAppClient:
    """Sends free-form text messages from one business phone number."""

    def __init__(self, phone_number_id: str, access_token: str):
        self.phone_number_id = phone_number_id
        self.base_url = get_settings().WHATSAPP_GRAPH_URL.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def send_text(self, to: str, body: str) -> SentMessage:
        """
        Send a text message to an already-normalized phone number.

        Raises:
            WhatsAppError: the response carries no ``messages[0].id`` or the
                request failed in transport.
        """
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        url = f"{self.base_url}/{self.phone_number_id}/messages"
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(url, headers=self._headers, json=payload)
        except httpx.RequestError as e:
            raise WhatsAppError(f"Failed to reach WhatsApp API: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        messages = data.get("messages") or []
        if messages and messages[0].get("id"):
            return SentMessage(message_id=messages[0]["id"])

        logger.error(f"WhatsApp API error: {response.status_code} - {data}")
        error = data.get("error") or {}
        raise WhatsAppError(
            message=error.get("message") or "Unknown error",
            status_code=response.status_code,
            response_data=data,
        )
