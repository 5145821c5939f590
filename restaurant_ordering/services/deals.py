"""Special deals: time-windowed, optionally amount-gated discounts."""
from decimal import Decimal

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.models import SpecialDeal, DiscountType
from restaurant_ordering.middleware.logging_config import get_logger
from restaurant_ordering.middleware.utils import log_function_call
from restaurant_ordering.services.helper import (
    get_or_404, commit_or_raise, to_money, to_naive_utc, utcnow
)

logger = get_logger(__name__)

DEAL_FIELDS = ("title", "description", "image", "discount", "discount_type",
               "min_order_amount", "valid_from", "valid_to", "is_active")


def _validate(deal):
    """Checks that must hold for the merged row, not just the request body."""
    if deal.discount is None or Decimal(deal.discount) <= 0:
        raise errors.ValidationError("Discount must be greater than 0")
    if deal.discount_type == DiscountType.PERCENTAGE and Decimal(deal.discount) > 100:
        raise errors.ValidationError("Percentage discount cannot exceed 100%")
    if deal.valid_from >= deal.valid_to:
        raise errors.ValidationError("Valid from date must be before valid to date")


def _apply(deal, data):
    for field in DEAL_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in ("valid_from", "valid_to"):
            value = to_naive_utc(value)
        setattr(deal, field, value)


def get_deal(deal_id):
    return get_or_404(SpecialDeal, deal_id, "Special deal")


def list_deals(active_only=False):
    query = SpecialDeal.query
    if active_only:
        query = query.filter(SpecialDeal.is_active.is_(True))
    return query.order_by(SpecialDeal.created_at.desc(), SpecialDeal.id.desc()).all()


def list_valid_deals(now=None):
    """Active deals whose window contains ``now``."""
    now = to_naive_utc(now) if now else utcnow()
    return (SpecialDeal.query
            .filter(SpecialDeal.is_active.is_(True),
                    SpecialDeal.valid_from <= now,
                    SpecialDeal.valid_to >= now)
            .order_by(SpecialDeal.created_at.desc(), SpecialDeal.id.desc())
            .all())


def is_eligible(deal, amount, now=None):
    now = now or utcnow()
    if not deal.is_valid_at(now):
        return False
    return deal.min_order_amount is None or Decimal(amount) >= Decimal(deal.min_order_amount)


def calculate_discount(deal, amount):
    """Discount ``deal`` grants on ``amount``.

    Zero when the amount is below the deal's minimum. Never more than the
    amount itself. Does not look at the validity window.
    """
    amount = Decimal(str(amount))
    if deal.min_order_amount is not None and amount < Decimal(deal.min_order_amount):
        return Decimal("0.00")

    if deal.discount_type == DiscountType.PERCENTAGE:
        discount = amount * Decimal(deal.discount) / 100
    else:
        discount = Decimal(deal.discount)
    return to_money(min(discount, amount))


def get_valid_deals_for_order(amount, now=None):
    """Deals applicable to ``amount`` right now, biggest saving first."""
    now = to_naive_utc(now) if now else utcnow()
    amount = Decimal(str(amount))
    deals = [deal for deal in list_valid_deals(now) if is_eligible(deal, amount, now)]
    return sorted(deals, key=lambda deal: calculate_discount(deal, amount), reverse=True)


@log_function_call
def create_deal(data):
    deal = SpecialDeal(is_active=True)
    _apply(deal, data)
    _validate(deal)
    db.session.add(deal)
    commit_or_raise("create special deal", title=data.get("title"))
    logger.info(f"Special deal created: {deal.title}", extra={
        'event': 'deal_created', 'deal_id': deal.id})
    return deal


@log_function_call
def update_deal(deal_id, data):
    deal = get_deal(deal_id)
    _apply(deal, data)
    try:
        _validate(deal)
    except errors.ValidationError:
        db.session.rollback()
        raise
    commit_or_raise("update special deal", deal_id=deal_id)
    return deal


@log_function_call
def delete_deal(deal_id):
    deal = get_deal(deal_id)
    db.session.delete(deal)
    commit_or_raise("delete special deal", deal_id=deal_id)
    logger.info(f"Special deal deleted: {deal_id}", extra={
        'event': 'deal_deleted', 'deal_id': deal_id})


@log_function_call
def toggle_deal(deal_id):
    deal = get_deal(deal_id)
    deal.is_active = not deal.is_active
    commit_or_raise("toggle special deal", deal_id=deal_id)
    return deal
