"""
Marketing email content: placeholder substitution, campaign and cart
reminder layouts, and the built-in abandoned cart template.

Admin-authored content uses ``{{name}}`` placeholders. Unknown placeholders
are left untouched. Values are inserted verbatim, so customer data must be
escaped by the caller.
"""

from html import escape
from typing import Any, Mapping

from services.communications_service.templates.base import format_inr, marketing_layout

DEFAULT_CART_REMINDER_SUBJECT = "You left something behind! 🛒"
DEFAULT_CART_REMINDER_CONTENT = """
<h1>Don't forget your items!</h1>
<p>Hi {{customer_name}},</p>
<p>You have items waiting in your cart. Complete your purchase before they're gone!</p>
<div>{{cart_items}}</div>
<p><a href="{{cart_url}}" style="background: #000; color: #fff; padding: 12px 24px; text-decoration: none; border-radius: 8px;">Complete Your Order</a></p>
"""

CAMPAIGN_FOOTER = (
    "<p>You received this email because you're subscribed to GlowMart updates.</p>"
    '<p><a href="#" style="color: #6b7280;">Unsubscribe</a></p>'
)
CART_REMINDER_FOOTER = (
    "<p>You received this email because you have items in your cart at GlowMart.</p>"
)


def replace_template_vars(content: str, variables: Mapping[str, str]) -> str:
    """Replace every ``{{key}}`` occurrence with its value."""
    result = content
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", value)
    return result


def render_campaign_html(content: str, variables: Mapping[str, str]) -> str:
    return marketing_layout(replace_template_vars(content, variables), CAMPAIGN_FOOTER)


def cart_items_html(items: list[Mapping[str, Any]]) -> str:
    """Thumbnail, name and ``Qty × price`` line per cart item."""
    rows = []
    for item in items:
        name = escape(item.get("name") or "")
        image = escape(item.get("image_url") or "/placeholder.svg")
        rows.append(
            '<div style="display: flex; align-items: center; padding: 12px; border-bottom: 1px solid #e5e7eb;">'
            f'<img src="{image}" alt="{name}" '
            'style="width: 60px; height: 60px; object-fit: cover; border-radius: 8px; margin-right: 12px;">'
            f'<div><p style="margin: 0; font-weight: 500;">{name}</p>'
            f'<p style="margin: 4px 0 0 0; color: #6b7280;">Qty: {item["quantity"]} × {format_inr(item.get("price"))}</p></div>'
            "</div>"
        )
    return "".join(rows)


def render_cart_reminder_html(content: str, variables: Mapping[str, str]) -> str:
    return marketing_layout(replace_template_vars(content, variables), CART_REMINDER_FOOTER)


def whatsapp_cart_message(
    full_name: str, item_count: int, cart_value: float, site_url: str
) -> str:
    return (
        f"Hi {full_name or 'there'}! 🛒\n\n"
        f"You left {item_count} item(s) in your cart worth ₹{float(cart_value):,.0f}.\n\n"
        "Complete your purchase now and don't miss out on these items!\n\n"
        f"Shop now: {site_url.rstrip('/')}/cart"
    )
