"""
Order lifecycle email templates.

One renderer covers every ``email_type``; the type picks the subject,
heading, greeting and header colour.
"""

from html import escape
from typing import Any, Optional

from services.communications_service.schemas import OrderEmailDetails
from services.communications_service.templates.base import (
    MUTED,
    RenderedEmail,
    format_inr,
    wrap_html,
)

STATUS_COLORS = {
    "order_placed": "#22c55e",
    "order_confirmed": "#22c55e",
    "order_shipped": "#3b82f6",
    "order_delivered": "#6b7280",
    "order_cancelled": "#ef4444",
}
DEFAULT_STATUS_COLOR = "#eab308"


def order_subject(email_type: str, order_number: str) -> str:
    subjects = {
        "order_placed": f"Order Confirmed! #{order_number}",
        "order_confirmed": f"Your Order #{order_number} is Being Processed",
        "order_shipped": f"Your Order #{order_number} Has Been Shipped! 🚚",
        "order_delivered": f"Your Order #{order_number} Has Been Delivered! ✅",
        "order_cancelled": f"Order #{order_number} Has Been Cancelled",
    }
    return subjects.get(email_type, f"Order Update - #{order_number}")


def order_heading_and_message(
    email_type: str, customer_name: str, cancel_reason: Optional[str] = None
) -> tuple[str, str]:
    """Header line and greeting paragraph for an order email."""
    if email_type == "order_placed":
        return (
            "Thank You for Your Order! 🎉",
            f"Hi {customer_name}, your order has been successfully placed. "
            "We'll notify you once it's confirmed and shipped.",
        )
    if email_type == "order_confirmed":
        return (
            "Order Confirmed ✓",
            f"Hi {customer_name}, great news! Your order has been confirmed "
            "and is being prepared for shipping.",
        )
    if email_type == "order_shipped":
        return (
            "Your Order is On Its Way! 🚚",
            f"Hi {customer_name}, exciting news! Your order has been shipped "
            "and is on its way to you.",
        )
    if email_type == "order_delivered":
        return (
            "Order Delivered! ✅",
            f"Hi {customer_name}, your order has been successfully delivered. "
            "We hope you love your purchase!",
        )
    if email_type == "order_cancelled":
        reason = f" Reason: {cancel_reason}" if cancel_reason else ""
        return (
            "Order Cancelled",
            f"Hi {customer_name}, your order has been cancelled.{reason} "
            "If you have any questions, please contact our support team.",
        )
    return "Order Update", f"Hi {customer_name}, there's an update on your order."


def _items_table(details: OrderEmailDetails) -> str:
    cell = "padding: 12px; border-bottom: 1px solid #e5e7eb;"
    rows = []
    for item in details.items:
        variant = escape(item.variant_info or "")
        variant_html = (
            f'<div style="font-size: 12px; color: {MUTED};">{variant}</div>'
            if variant
            else ""
        )
        rows.append(
            f'<tr><td style="{cell}"><div style="font-weight: 500;">{escape(item.product_name)}</div>{variant_html}</td>'
            f'<td style="{cell} text-align: center;">{item.quantity}</td>'
            f'<td style="{cell} text-align: right;">{format_inr(item.unit_price)}</td>'
            f'<td style="{cell} text-align: right; font-weight: 500;">{format_inr(item.total_price)}</td></tr>'
        )

    head = "padding: 12px; border-bottom: 2px solid #e5e7eb;"
    return (
        '<div style="margin-bottom: 24px;">'
        '<h3 style="font-size: 16px; font-weight: 600; margin-bottom: 12px; color: #111827;">Order Details</h3>'
        '<table style="width: 100%; border-collapse: collapse; font-size: 14px;">'
        f'<thead><tr style="background: #f9fafb;"><th style="{head} text-align: left;">Product</th>'
        f'<th style="{head} text-align: center;">Qty</th>'
        f'<th style="{head} text-align: right;">Price</th>'
        f'<th style="{head} text-align: right;">Total</th></tr></thead>'
        f"<tbody>{''.join(rows)}</tbody></table>"
        f"{_totals(details)}</div>"
    )


def _totals(details: OrderEmailDetails) -> str:
    def row(label: str, value: str, color: str = MUTED) -> str:
        return (
            f'<tr><td style="padding: 4px 0; color: {color};">{label}</td>'
            f'<td style="padding: 4px 0; text-align: right;">{value}</td></tr>'
        )

    rows = [row("Subtotal", format_inr(details.subtotal))]
    if details.tax_amount > 0:
        rows.append(row("Tax (GST)", format_inr(details.tax_amount)))
    if details.shipping_amount > 0:
        rows.append(row("Shipping", format_inr(details.shipping_amount)))
    if details.discount_amount > 0:
        rows.append(row("Discount", f"-{format_inr(details.discount_amount)}", "#22c55e"))
    rows.append(
        '<tr style="font-size: 18px; font-weight: 700;"><td style="padding: 12px 0 0 0;">Total</td>'
        f'<td style="padding: 12px 0 0 0; text-align: right;">{format_inr(details.total_amount)}</td></tr>'
    )
    return (
        '<div style="margin-top: 16px; padding-top: 16px; border-top: 2px solid #e5e7eb;">'
        f'<table style="width: 100%; font-size: 14px;">{"".join(rows)}</table></div>'
    )


def _tracking_box(tracking_number: str, tracking_url: Optional[str]) -> str:
    link = (
        f'<a href="{escape(tracking_url)}" style="display: inline-block; margin-top: 12px; '
        "background: #3b82f6; color: white; padding: 8px 16px; border-radius: 6px; "
        'text-decoration: none; font-weight: 500;">Track Your Order</a>'
        if tracking_url
        else ""
    )
    return (
        '<div style="background: #eff6ff; border-radius: 8px; padding: 16px; '
        'margin-bottom: 24px; border-left: 4px solid #3b82f6;">'
        '<p style="margin: 0 0 8px 0; font-weight: 600; color: #1e40af;">📦 Tracking Information</p>'
        f'<p style="margin: 0; color: #1e3a8a;">Tracking Number: <strong>{escape(tracking_number)}</strong></p>'
        f"{link}</div>"
    )


def _address_box(address: Optional[dict[str, Any]], payment_method: str) -> str:
    # Every field is customer-entered
    address = {key: escape(str(value)) for key, value in (address or {}).items() if value}
    line2 = f"{address['address_line2']}<br>" if address.get("address_line2") else ""
    payment = "Paid Online" if payment_method == "razorpay" else "Cash on Delivery"
    return (
        '<div style="background: #f9fafb; border-radius: 8px; padding: 16px; margin-bottom: 24px;">'
        '<h3 style="font-size: 14px; font-weight: 600; margin: 0 0 12px 0; color: #111827;">Shipping Address</h3>'
        f'<p style="margin: 0; color: #374151; font-size: 14px;">'
        f"<strong>{address.get('full_name', '')}</strong><br>"
        f"{address.get('address_line1', '')}<br>{line2}"
        f"{address.get('city', '')}, {address.get('state', '')} - {address.get('pincode', '')}<br>"
        f"Phone: {address.get('phone', '')}</p></div>"
        f'<p style="font-size: 14px; color: {MUTED};">Payment Method: <strong>{payment}</strong></p>'
    )


def render_order_email(
    email_type: str,
    customer_name: str,
    order_number: str,
    details: OrderEmailDetails,
    tracking_number: Optional[str] = None,
    tracking_url: Optional[str] = None,
    cancel_reason: Optional[str] = None,
) -> RenderedEmail:
    heading, message = order_heading_and_message(
        email_type,
        escape(customer_name),
        escape(cancel_reason) if cancel_reason else None,
    )
    color = STATUS_COLORS.get(email_type, DEFAULT_STATUS_COLOR)

    body = [
        f'<p style="color: {MUTED}; margin: 0 0 16px 0; font-size: 14px;">Order #{order_number}</p>',
        f'<p style="font-size: 16px; margin-bottom: 24px; color: #374151;">{message}</p>',
    ]
    if email_type == "order_shipped" and tracking_number:
        body.append(_tracking_box(tracking_number, tracking_url))
    body.append(_items_table(details))
    body.append(_address_box(details.shipping_address, details.payment_method))

    html = wrap_html(
        title=heading,
        body_html="".join(body),
        header_gradient=f"linear-gradient(135deg, {color} 0%, {color}dd 100%)",
    )
    return RenderedEmail(subject=order_subject(email_type, order_number), html=html)
