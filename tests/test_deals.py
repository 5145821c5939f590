from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from restaurant_ordering import errors
from restaurant_ordering.models import DiscountType, SpecialDeal
from restaurant_ordering.services import deals
from restaurant_ordering.services.helper import utcnow


def _deal(discount, discount_type=DiscountType.PERCENTAGE, min_order_amount=None):
    return SpecialDeal(discount=Decimal(discount), discount_type=discount_type,
                       min_order_amount=min_order_amount)


def test_percentage_discount():
    assert deals.calculate_discount(_deal("10"), Decimal("600")) == Decimal("60.00")


def test_fixed_discount():
    assert deals.calculate_discount(_deal("75", DiscountType.FIXED), 300) == Decimal("75.00")


def test_minimum_amount_gates_discount():
    deal = _deal("10", min_order_amount=Decimal("500"))
    assert deals.calculate_discount(deal, Decimal("300")) == Decimal("0.00")
    assert deals.calculate_discount(deal, Decimal("500")) == Decimal("50.00")


def test_fixed_discount_is_capped_at_amount():
    assert deals.calculate_discount(_deal("200", DiscountType.FIXED), 120) == Decimal("120.00")


def test_valid_deals_for_order_sorted_by_saving(make_deal):
    small = make_deal(title="Small", discount=Decimal("5"))
    big = make_deal(title="Big", discount=Decimal("100"), discount_type=DiscountType.FIXED)
    make_deal(title="Gated", discount=Decimal("50"), min_order_amount=Decimal("1000"))
    make_deal(title="Off", is_active=False)
    make_deal(title="Expired", valid_from=utcnow() - timedelta(days=10),
              valid_to=utcnow() - timedelta(days=5))

    found = deals.get_valid_deals_for_order(Decimal("600"))
    assert [deal.id for deal in found] == [big.id, small.id]


def test_valid_deals_for_order_accepts_aware_time(make_deal):
    deal = make_deal()
    # Same instant as utcnow(), written in UTC+05:00
    local = timezone(timedelta(hours=5))
    now = (utcnow() + timedelta(hours=5)).replace(tzinfo=local)

    found = deals.get_valid_deals_for_order(Decimal("100"), now=now)
    assert [d.id for d in found] == [deal.id]

    later = now + timedelta(days=2)
    assert deals.get_valid_deals_for_order(Decimal("100"), now=later) == []


def test_list_valid_deals_respects_window(make_deal):
    current = make_deal()
    make_deal(title="Future", valid_from=utcnow() + timedelta(days=1),
              valid_to=utcnow() + timedelta(days=2))
    assert [deal.id for deal in deals.list_valid_deals()] == [current.id]
    assert len(deals.list_deals()) == 2


def test_create_rejects_bad_percentage(app):
    now = utcnow()
    with pytest.raises(errors.ValidationError):
        deals.create_deal({
            "title": "Too good", "description": "x", "discount": Decimal("150"),
            "discount_type": DiscountType.PERCENTAGE,
            "valid_from": now, "valid_to": now + timedelta(days=1),
        })


def test_partial_update_checks_merged_window(make_deal):
    deal = make_deal()
    with pytest.raises(errors.ValidationError):
        deals.update_deal(deal.id, {"valid_to": deal.valid_from - timedelta(hours=1)})
    assert deals.get_deal(deal.id).valid_to > deal.valid_from


def test_toggle_and_delete(make_deal):
    deal = make_deal()
    assert deals.toggle_deal(deal.id).is_active is False
    deals.delete_deal(deal.id)
    with pytest.raises(errors.NotFoundError):
        deals.get_deal(deal.id)
