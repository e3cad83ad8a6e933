"""
Shared GlowMart email layout and HTML helpers.

Transactional emails call ``wrap_html()`` so they share one header, body
card and footer. Marketing emails use ``marketing_layout()`` instead: the
admin-authored content is the whole body and only the unsubscribe footer is
added.

Usage:
    from services.communications_service.templates.base import wrap_html, detail_box

    html = wrap_html(
        title="Order Confirmed",
        body_html="<p>Hi Asha, ...</p>" + detail_box({"Order": "#GM-1"}),
        header_gradient=GRADIENT_BRAND,
    )
"""

from dataclasses import dataclass
from typing import Optional

# ─── Color presets ────────────────────────────────────────────────────
GRADIENT_BRAND = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"
GRADIENT_ROSE = "linear-gradient(135deg, #ec4899 0%, #db2777 100%)"

FONT_STACK = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"
MUTED = "#6b7280"
BORDER = "#e5e7eb"


@dataclass
class RenderedEmail:
    subject: str
    html: str


def format_inr(amount: Optional[float]) -> str:
    """Indian-rupee amount with two decimals, e.g. ``₹1,299.00``."""
    return f"₹{float(amount or 0):,.2f}"


def capitalize(value: Optional[str]) -> str:
    """Upper-case the first letter only (``in_transit`` -> ``In_transit``)."""
    if not value:
        return ""
    return value[0].upper() + value[1:]


def wrap_html(
    title: str,
    body_html: str,
    header_gradient: str = GRADIENT_BRAND,
    footer_text: str = "This is an automated email from GlowMart. Please do not reply directly.",
) -> str:
    """Wrap inner content in the GlowMart transactional layout.

    Args:
        title: Heading shown in the coloured header banner.
        body_html: Already-formatted inner HTML.
        header_gradient: CSS background for the header.
        footer_text: Small print under the card.
    """
    return f"""\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
  </head>
  <body style="font-family: {FONT_STACK}; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: {header_gradient}; padding: 30px; border-radius: 12px 12px 0 0; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 24px;">{title}</h1>
    </div>
    <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 12px 12px;">
      {body_html}
    </div>
    <div style="text-align: center; padding: 20px; color: #9ca3af; font-size: 12px;">
      <p>{footer_text}</p>
    </div>
  </body>
</html>"""


def marketing_layout(content_html: str, footer_html: str) -> str:
    """White card on a grey page, used for campaigns and cart reminders."""
    return f"""\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
  </head>
  <body style="font-family: {FONT_STACK}; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f3f4f6;">
    <div style="background: white; padding: 30px; border-radius: 12px; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
      {content_html}
    </div>
    <div style="text-align: center; padding: 20px; color: #9ca3af; font-size: 12px;">
      {footer_html}
    </div>
  </body>
</html>"""


# ─── Helper functions ─────────────────────────────────────────────────


def paragraph(text: str, size: int = 16) -> str:
    return f'<p style="font-size: {size}px; margin-bottom: 20px;">{text}</p>'


def card(inner_html: str) -> str:
    return (
        f'<div style="background: white; border-radius: 8px; padding: 20px; '
        f'margin-bottom: 20px; border: 1px solid {BORDER};">{inner_html}</div>'
    )


def detail_rows(items: dict[str, str]) -> str:
    """Two-column label/value table rows; empty values are skipped."""
    return "".join(
        f'<tr><td style="padding: 8px 0; color: {MUTED};">{label}</td>'
        f'<td style="padding: 8px 0; text-align: right; font-weight: 600;">{value}</td></tr>'
        for label, value in items.items()
        if value
    )


def detail_box(items: dict[str, str]) -> str:
    """Card holding a label/value table."""
    return card(
        f'<table style="width: 100%; border-collapse: collapse;">{detail_rows(items)}</table>'
    )


def status_pill(label: str, color: str) -> str:
    return (
        f'<span style="background: {color}20; color: {color}; padding: 4px 12px; '
        f'border-radius: 9999px; font-weight: 600;">{label}</span>'
    )


def cta_button(label: str, url: str, color: str = "#000") -> str:
    return (
        f'<p><a href="{url}" style="background: {color}; color: #fff; padding: 12px 24px; '
        f'text-decoration: none; border-radius: 8px;">{label}</a></p>'
    )


def info_box(
    content: str,
    title: str = "",
    bg_color: str = "#fef3c7",
    border_color: str = "#f59e0b",
) -> str:
    """Coloured callout with an optional bold title."""
    title_html = (
        f'<p style="margin: 0; font-weight: 600; color: #92400e;">{title}</p>'
        if title
        else ""
    )
    return (
        f'<div style="background: {bg_color}; border-radius: 8px; padding: 16px; '
        f'margin-bottom: 20px; border-left: 4px solid {border_color};">'
        f'{title_html}<p style="margin: 8px 0 0 0; color: #78350f;">{content}</p></div>'
    )
