"""Unit tests for cart/order price arithmetic and promotions."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from libs.common.config import get_settings
from services.store_service.models import (
    BxgyDiscountType,
    DiscountType,
    OrderStatus,
)
from services.store_service.pricing import (
    OrderTotals,
    PricedLine,
    assert_totals_consistent,
    build_tracking_timeline,
    bundle_discount_percent,
    bundle_original_price,
    bxgy_discount,
    calculate_order_totals,
    evaluate_bxgy_offers,
    flash_sale_price,
    is_within_window,
    shipping_for,
)


def _offer(**overrides):
    defaults = {
        "buy_product_id": "serum",
        "buy_category_id": None,
        "buy_quantity": 2,
        "get_product_id": "toner",
        "get_product": SimpleNamespace(price=Decimal("300.00")),
        "get_quantity": 1,
        "get_discount_type": BxgyDiscountType.FREE,
        "get_discount_value": None,
        "max_uses": None,
        "current_uses": 0,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


# ---------------------------------------------------------------------------
# Order totals
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_order_totals_satisfy_monetary_invariant():
    lines = [
        PricedLine("serum", Decimal("599.00"), 2, Decimal("18"), Decimal("799.00")),
        PricedLine("toner", Decimal("249.50"), 1, Decimal("12")),
    ]
    totals = calculate_order_totals(lines, Decimal("100"))

    assert totals.subtotal == Decimal("1447.50")
    assert totals.total_mrp == Decimal("1847.50")
    assert totals.mrp_savings == Decimal("400.00")
    assert totals.discount_amount == Decimal("100.00")
    assert totals.total_amount == (
        totals.subtotal - totals.discount_amount + totals.shipping_amount
    )
    assert 0 < totals.tax_amount < totals.total_amount


@pytest.mark.unit
def test_small_orders_pay_shipping():
    settings = get_settings()
    price = settings.FREE_SHIPPING_THRESHOLD - Decimal("1")
    totals = calculate_order_totals([PricedLine("p", price, 1)])

    assert totals.shipping_amount == settings.SHIPPING_FEE
    assert totals.total_amount == price + settings.SHIPPING_FEE


@pytest.mark.unit
def test_free_shipping_at_threshold():
    assert shipping_for(get_settings().FREE_SHIPPING_THRESHOLD) == 0


@pytest.mark.unit
def test_discount_is_capped_at_subtotal():
    totals = calculate_order_totals(
        [PricedLine("p", Decimal("1000"), 1)], Decimal("5000")
    )
    assert totals.discount_amount == Decimal("1000.00")
    assert totals.tax_amount == 0
    assert totals.total_amount == totals.shipping_amount


@pytest.mark.unit
def test_inconsistent_totals_are_rejected():
    totals = OrderTotals(
        subtotal=Decimal("100"),
        total_mrp=Decimal("100"),
        mrp_savings=Decimal("0"),
        discount_amount=Decimal("0"),
        shipping_amount=Decimal("49"),
        tax_amount=Decimal("15.25"),
        total_amount=Decimal("100"),
    )
    with pytest.raises(ValueError):
        assert_totals_consistent(totals)


# ---------------------------------------------------------------------------
# Flash sales
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_is_within_window():
    now = datetime(2026, 1, 10, 12, tzinfo=timezone.utc)
    hour = timedelta(hours=1)
    assert is_within_window(now - hour, now + hour, now)
    assert is_within_window(None, None, now)
    assert not is_within_window(now + hour, None, now)
    assert not is_within_window(None, now - hour, now)


@pytest.mark.unit
def test_flash_sale_price():
    percent_sale = SimpleNamespace(
        discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("20")
    )
    fixed_sale = SimpleNamespace(
        discount_type=DiscountType.FIXED, discount_value=Decimal("700")
    )

    assert flash_sale_price(Decimal("599"), percent_sale, None) == Decimal("479.20")
    assert flash_sale_price(Decimal("599"), percent_sale, Decimal("399")) == Decimal("399.00")
    # Never below zero
    assert flash_sale_price(Decimal("599"), fixed_sale, None) == Decimal("0.00")


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_bundle_pricing():
    items = [
        SimpleNamespace(product=SimpleNamespace(price=Decimal("599")), quantity=1),
        SimpleNamespace(product=SimpleNamespace(price=Decimal("200")), quantity=2),
        SimpleNamespace(product=None, quantity=3),
    ]
    original = bundle_original_price(items)

    assert original == Decimal("999.00")
    assert bundle_discount_percent(original, Decimal("799")) == 20
    assert bundle_discount_percent(Decimal("0"), Decimal("10")) == 0


# ---------------------------------------------------------------------------
# Buy X get Y
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_bxgy_discount_types():
    price = Decimal("300")
    assert bxgy_discount(_offer(), price) == Decimal("300.00")
    assert bxgy_discount(
        _offer(get_discount_type=BxgyDiscountType.PERCENTAGE, get_discount_value=50),
        price,
    ) == Decimal("150.00")
    assert bxgy_discount(
        _offer(
            get_discount_type=BxgyDiscountType.FIXED,
            get_discount_value=40,
            get_quantity=2,
        ),
        price,
    ) == Decimal("80.00")


@pytest.mark.unit
def test_bxgy_offer_needs_buy_quantity():
    lines = [PricedLine("serum", Decimal("599"), 1)]
    assert evaluate_bxgy_offers([_offer()], lines) == []

    lines.append(PricedLine("serum", Decimal("599"), 1))
    [eligible] = evaluate_bxgy_offers([_offer()], lines)
    assert eligible.discount == Decimal("300.00")


@pytest.mark.unit
def test_bxgy_category_offers_and_exhausted_offers():
    lines = [PricedLine("serum", Decimal("599"), 3, category_id="skincare")]
    category_offer = _offer(buy_product_id=None, buy_category_id="skincare")
    exhausted = _offer(max_uses=5, current_uses=5)
    no_reward = _offer(get_product_id=None)

    eligible = evaluate_bxgy_offers([category_offer, exhausted, no_reward], lines)
    assert [e.offer for e in eligible] == [category_offer]


# ---------------------------------------------------------------------------
# Tracking timeline
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_timeline_for_shipped_order():
    created = datetime(2026, 1, 10, tzinfo=timezone.utc)
    order = SimpleNamespace(
        status=OrderStatus.SHIPPED,
        created_at=created,
        confirmed_at=None,
        shipped_at=created + timedelta(days=1),
        delivered_at=None,
        cancelled_at=None,
        updated_at=created,
    )
    timeline = build_tracking_timeline(order)

    assert not timeline.terminal
    assert [s.completed for s in timeline.steps] == [True, True, True, False]
    assert [s.current for s in timeline.steps] == [False, False, True, False]
    # Confirmation date falls back to placement when it was never stamped
    assert timeline.steps[1].at == created


@pytest.mark.unit
def test_timeline_for_cancelled_order_is_terminal():
    cancelled_at = datetime(2026, 1, 11, tzinfo=timezone.utc)
    order = SimpleNamespace(
        status="cancelled",
        cancelled_at=cancelled_at,
        updated_at=cancelled_at,
    )
    timeline = build_tracking_timeline(order)

    assert timeline.terminal
    assert len(timeline.steps) == 1
    assert timeline.steps[0].label == "Cancelled"
    assert timeline.steps[0].at == cancelled_at
