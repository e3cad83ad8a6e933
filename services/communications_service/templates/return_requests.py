"""Return / replacement request status email."""

from html import escape
from typing import Optional

from services.communications_service.templates.base import (
    MUTED,
    RenderedEmail,
    capitalize,
    card,
    detail_rows,
    format_inr,
    info_box,
    paragraph,
    status_pill,
    wrap_html,
)

REQUEST_STATUS_COLORS = {
    "approved": "#22c55e",
    "rejected": "#ef4444",
    "processing": "#3b82f6",
    "completed": "#6b7280",
}


def request_status_message(request_type: str, status: str) -> str:
    kind = "replacement" if request_type == "replace" else "return"
    messages = {
        "approved": f"Great news! Your {kind} request has been approved.",
        "rejected": f"We regret to inform you that your {kind} request has been rejected.",
        "processing": f"Your {kind} request is now being processed.",
        "completed": f"Your {kind} request has been completed successfully.",
    }
    return messages.get(status, f"The status of your {kind} request has been updated.")


def render_request_status_email(
    customer_name: Optional[str],
    order_number: str,
    request_type: str,
    old_status: str,
    new_status: str,
    admin_notes: Optional[str] = None,
    refund_amount: Optional[float] = None,
    refund_status: Optional[str] = None,
) -> RenderedEmail:
    type_label = "Replacement" if request_type == "replace" else "Return"
    color = REQUEST_STATUS_COLORS.get(new_status, "#eab308")

    rows = {
        "Order Number": f"#{order_number}",
        "Request Type": type_label,
        "Previous Status": capitalize(old_status),
        "New Status": status_pill(capitalize(new_status), color),
    }
    # Refund details only apply to returns
    if request_type == "return":
        if refund_amount:
            rows["Refund Amount"] = format_inr(refund_amount)
        if refund_status:
            rows["Refund Status"] = capitalize(refund_status)

    body = [
        paragraph(f"Hi {escape(customer_name or 'Valued Customer')},"),
        paragraph(request_status_message(request_type, new_status)),
        card(f'<table style="width: 100%; border-collapse: collapse;">{detail_rows(rows)}</table>'),
    ]
    if admin_notes:
        body.append(info_box(escape(admin_notes), title="Message from our team:"))
    body.append(
        f'<p style="font-size: 14px; color: {MUTED}; margin-bottom: 20px;">'
        f"If you have any questions about your {request_type} request, "
        "please don't hesitate to contact our support team.</p>"
        f'<p style="font-size: 14px; color: {MUTED};">Best regards,<br><strong>The GlowMart Team</strong></p>'
    )

    title = f"{type_label} Request Update"
    return RenderedEmail(
        subject=f"{type_label} Request Update - Order #{order_number}",
        html=wrap_html(
            title=title,
            body_html="".join(body),
            footer_text="This is an automated email. Please do not reply directly to this message.",
        ),
    )
