"""Transactional email API called by the store service."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_service_role
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.communications_service.resend_client import ResendClient, ResendError
from services.communications_service.routers._helpers import require_resend_client
from services.communications_service.schemas import (
    EmailSendResponse,
    OrderEmailRequest,
    RequestStatusEmailRequest,
)
from services.communications_service.services.campaign_sender import CampaignError
from services.communications_service.templates.base import RenderedEmail
from services.communications_service.templates.orders import render_order_email
from services.communications_service.templates.return_requests import (
    render_request_status_email,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/email", tags=["email"])


async def _deliver(client: ResendClient, to: str, email: RenderedEmail) -> EmailSendResponse:
    try:
        data = await client.send_email(to, email.subject, email.html)
    except ResendError as e:
        logger.error(f"Error from Resend API for {to}: {e}")
        raise CampaignError(e.message, status_code=500) from e
    return EmailSendResponse(success=True, id=data.get("id"))


@router.post("/order", response_model=EmailSendResponse)
async def send_order_email(
    request: OrderEmailRequest,
    current_user: AuthUser = Depends(require_service_role),
    client: ResendClient = Depends(require_resend_client),
):
    """
    Send an order lifecycle email (placed, confirmed, shipped, delivered,
    cancelled). Unknown ``email_type`` values get a generic update email.
    """
    logger.info(
        f"Sending {request.email_type} email to {request.email} "
        f"for order {request.order_number}"
    )
    email = render_order_email(
        email_type=request.email_type,
        customer_name=request.customer_name,
        order_number=request.order_number,
        details=request.order_details,
        tracking_number=request.tracking_number,
        tracking_url=request.tracking_url,
        cancel_reason=request.cancel_reason,
    )
    return await _deliver(client, request.email, email)


@router.post("/request-status", response_model=EmailSendResponse)
async def send_request_status_email(
    request: RequestStatusEmailRequest,
    current_user: AuthUser = Depends(require_service_role),
    client: ResendClient = Depends(require_resend_client),
):
    """Notify a customer that their return/replace request changed status."""
    logger.info(
        f"Sending status update email to {request.email} "
        f"for order {request.order_number}"
    )
    email = render_request_status_email(
        customer_name=request.customer_name,
        order_number=request.order_number,
        request_type=request.request_type,
        old_status=request.old_status,
        new_status=request.new_status,
        admin_notes=request.admin_notes,
        refund_amount=request.refund_amount,
        refund_status=request.refund_status,
    )
    return await _deliver(client, request.email, email)
