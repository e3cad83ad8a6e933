"""Unit tests for transactional and marketing email rendering."""

import pytest
from services.communications_service.schemas import OrderEmailDetails, OrderEmailItem
from services.communications_service.templates.base import capitalize, format_inr
from services.communications_service.templates.marketing import (
    cart_items_html,
    render_campaign_html,
    replace_template_vars,
    whatsapp_cart_message,
)
from services.communications_service.templates.orders import (
    order_subject,
    render_order_email,
)
from services.communications_service.templates.return_requests import (
    render_request_status_email,
)


def _details(**overrides) -> OrderEmailDetails:
    defaults = {
        "items": [
            OrderEmailItem(
                product_name="Vitamin C Serum",
                quantity=2,
                unit_price=599,
                total_price=1198,
            )
        ],
        "subtotal": 1198,
        "tax_amount": 182.75,
        "total_amount": 1198,
        "payment_method": "cod",
        "shipping_address": {
            "full_name": "Priya Sharma",
            "address_line1": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "pincode": "560001",
            "phone": "9876543210",
        },
    }
    defaults.update(overrides)
    return OrderEmailDetails(**defaults)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_format_inr_and_capitalize():
    assert format_inr(1299) == "₹1,299.00"
    assert format_inr(None) == "₹0.00"
    assert capitalize("in_transit") == "In_transit"
    assert capitalize(None) == ""


# ---------------------------------------------------------------------------
# Order emails
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "email_type,subject",
    [
        ("order_placed", "Order Confirmed! #GM-1"),
        ("order_cancelled", "Order #GM-1 Has Been Cancelled"),
        ("something_else", "Order Update - #GM-1"),
    ],
)
def test_order_subjects(email_type, subject):
    assert order_subject(email_type, "GM-1") == subject


@pytest.mark.unit
def test_placed_email_lists_items_totals_and_cod():
    email = render_order_email("order_placed", "Priya", "GM-1", _details())

    assert email.subject == "Order Confirmed! #GM-1"
    assert "Vitamin C Serum" in email.html
    assert "₹1,198.00" in email.html
    assert "Tax (GST)" in email.html
    # Zero shipping and discount rows are omitted
    assert "Shipping</td>" not in email.html
    assert "Discount" not in email.html
    assert "Cash on Delivery" in email.html
    assert "Tracking Information" not in email.html


@pytest.mark.unit
def test_shipped_email_includes_tracking_link():
    email = render_order_email(
        "order_shipped",
        "Priya",
        "GM-1",
        _details(payment_method="razorpay"),
        tracking_number="AWB123",
        tracking_url="https://track.example.in/AWB123",
    )
    assert "AWB123" in email.html
    assert "Track Your Order" in email.html
    assert "Paid Online" in email.html


@pytest.mark.unit
def test_cancelled_email_includes_reason():
    email = render_order_email(
        "order_cancelled", "Priya", "GM-1", _details(), cancel_reason="Out of stock"
    )
    assert "Reason: Out of stock" in email.html


# ---------------------------------------------------------------------------
# Return / replacement emails
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_return_status_email_shows_refund_and_notes():
    email = render_request_status_email(
        customer_name=None,
        order_number="GM-1",
        request_type="return",
        old_status="pending",
        new_status="approved",
        admin_notes="Pickup scheduled for Monday",
        refund_amount=599,
        refund_status="initiated",
    )
    assert email.subject == "Return Request Update - Order #GM-1"
    assert "Hi Valued Customer," in email.html
    assert "Your return request has been approved" in email.html
    assert "₹599.00" in email.html
    assert "Initiated" in email.html
    assert "Message from our team:" in email.html


@pytest.mark.unit
def test_replacement_email_has_no_refund_rows():
    email = render_request_status_email(
        customer_name="Priya",
        order_number="GM-1",
        request_type="replace",
        old_status="pending",
        new_status="rejected",
        refund_amount=599,
    )
    assert email.subject == "Replacement Request Update - Order #GM-1"
    assert "Refund Amount" not in email.html
    assert "replacement request has been rejected" in email.html


# ---------------------------------------------------------------------------
# Marketing content
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_replace_template_vars_replaces_every_occurrence():
    content = "{{name}} {{name}} {{unknown}}"
    assert replace_template_vars(content, {"name": "Priya"}) == "Priya Priya {{unknown}}"


@pytest.mark.unit
def test_campaign_html_has_unsubscribe_footer():
    html = render_campaign_html("<p>Hi {{customer_name}}</p>", {"customer_name": "Priya"})
    assert "<p>Hi Priya</p>" in html
    assert "Unsubscribe" in html


@pytest.mark.unit
def test_cart_items_html_uses_placeholder_image():
    html = cart_items_html([{"name": "Serum", "quantity": 2, "price": 599, "image_url": None}])
    assert "/placeholder.svg" in html
    assert "Qty: 2 × ₹599.00" in html


@pytest.mark.unit
def test_whatsapp_cart_message():
    message = whatsapp_cart_message(None, 3, 1499.0, "https://glowmart.in/")
    assert message.startswith("Hi there! 🛒")
    assert "3 item(s) in your cart worth ₹1,499" in message
    assert message.endswith("Shop now: https://glowmart.in/cart")


# ---------------------------------------------------------------------------
# Customer-entered values
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_order_email_escapes_customer_values():
    details = _details(
        items=[
            OrderEmailItem(
                product_name="Serum <script>alert(1)</script>",
                quantity=1,
                unit_price=599,
                total_price=599,
            )
        ],
        shipping_address={"full_name": "<b>Priya</b>", "city": "Pune & Co"},
    )
    email = render_order_email(
        "order_cancelled", "<i>Priya</i>", "GM-1", details, cancel_reason="<u>late</u>"
    )

    assert "<script>" not in email.html
    assert "Serum &lt;script&gt;alert(1)&lt;/script&gt;" in email.html
    assert "&lt;b&gt;Priya&lt;/b&gt;" in email.html
    assert "Pune &amp; Co" in email.html
    assert "&lt;i&gt;Priya&lt;/i&gt;" in email.html
    assert "Reason: &lt;u&gt;late&lt;/u&gt;" in email.html


@pytest.mark.unit
def test_request_status_email_escapes_name_and_notes():
    email = render_request_status_email(
        customer_name="<b>Priya</b>",
        order_number="GM-1",
        request_type="return",
        old_status="pending",
        new_status="approved",
        admin_notes="<script>x</script>",
    )
    assert "Hi &lt;b&gt;Priya&lt;/b&gt;," in email.html
    assert "<script>" not in email.html


@pytest.mark.unit
def test_cart_items_html_escapes_product_name():
    html = cart_items_html([{"name": "Toner <b>new</b>", "quantity": 1, "price": 599}])
    assert "Toner &lt;b&gt;new&lt;/b&gt;" in html
    assert "<b>new</b>" not in html
