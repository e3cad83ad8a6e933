"""
Client for the Communications Service transactional email API.

Store-side code never talks to the email provider directly: order lifecycle
and return/replace status emails are posted to the Communications Service,
which owns the templates and the Resend integration.

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()

    await email_client.send_order_email(
        email="customer@example.com",
        customer_name="Asha",
        order_number="GM-20260104-A1B2C",
        email_type="order_shipped",
        order_details={...},
        tracking_number="AWB123",
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.service_client import internal_post

logger = get_logger(__name__)

CALLING_SERVICE = "store_service"


class EmailClient:
    """
    HTTP client for the Communications Service email endpoints.

    Requests carry a short-lived service-role JWT. Methods return True when
    the Communications Service accepted the email and False otherwise; they
    never raise, so callers can fire-and-log.
    """

    def __init__(self):
        settings = get_settings()
        self.base_url = settings.COMMUNICATIONS_SERVICE_URL
        self.timeout = 30.0

    async def _post(self, path: str, payload: dict[str, Any]) -> bool:
        try:
            response = await internal_post(
                service_url=self.base_url,
                path=path,
                calling_service=CALLING_SERVICE,
                json=payload,
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            logger.error(f"Failed to connect to Communications Service: {e}")
            return False

        if response.status_code == 200:
            return bool(response.json().get("success", False))

        logger.error(f"Email API returned {response.status_code}: {response.text}")
        return False

    async def send_order_email(
        self,
        email: str,
        customer_name: str,
        order_number: str,
        email_type: str,
        order_details: dict[str, Any],
        tracking_number: Optional[str] = None,
        tracking_url: Optional[str] = None,
        cancel_reason: Optional[str] = None,
    ) -> bool:
        """
        Send an order lifecycle email.

        Args:
            email: Recipient address
            customer_name: Name used in the greeting
            order_number: Human-readable order number
            email_type: order_placed, order_confirmed, order_shipped,
                order_delivered or order_cancelled
            order_details: Items, amounts, payment method and shipping address
            tracking_number: Courier tracking number (shipped emails)
            tracking_url: Courier tracking link (shipped emails)
            cancel_reason: Shown on cancellation emails
        """
        payload: dict[str, Any] = {
            "email": email,
            "customer_name": customer_name,
            "order_number": order_number,
            "email_type": email_type,
            "order_details": order_details,
        }
        if tracking_number:
            payload["tracking_number"] = tracking_number
        if tracking_url:
            payload["tracking_url"] = tracking_url
        if cancel_reason:
            payload["cancel_reason"] = cancel_reason

        return await self._post("/email/order", payload)

    async def send_request_status_email(
        self,
        email: str,
        customer_name: str,
        order_number: str,
        request_type: str,
        old_status: str,
        new_status: str,
        admin_notes: Optional[str] = None,
        refund_amount: Optional[float] = None,
        refund_status: Optional[str] = None,
    ) -> bool:
        """Send a return/replace request status update email."""
        payload: dict[str, Any] = {
            "email": email,
            "customer_name": customer_name,
            "order_number": order_number,
            "request_type": request_type,
            "old_status": old_status,
            "new_status": new_status,
            "admin_notes": admin_notes,
            "refund_amount": refund_amount,
            "refund_status": refund_status,
        }
        return await self._post("/email/request-status", payload)


# Singleton instance for reuse
_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get the singleton EmailClient instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
