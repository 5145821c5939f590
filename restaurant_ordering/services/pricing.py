"""Delivery pricing.

The tier table lives in ``DELIVERY_FEE_TIERS`` as ``(max_km, fee)`` pairs in
ascending order; a ``None`` bound closes the table. Distances equal to a
bound fall into that tier, so with the default table 4 km is free, 4.01 km
costs 50 and 6.01 km costs 120.
"""
from decimal import Decimal

from flask import current_app, has_app_context

from restaurant_ordering import errors

DEFAULT_FEE_TIERS = [(4, 0), (6, 50), (None, 120)]


def _tiers():
    if has_app_context():
        return current_app.config.get("DELIVERY_FEE_TIERS", DEFAULT_FEE_TIERS)
    return DEFAULT_FEE_TIERS


def calculate_delivery_charges(distance, tiers=None):
    """Flat delivery fee for ``distance`` kilometres."""
    if distance is None:
        distance = 0
    distance = Decimal(str(distance))
    if distance < 0:
        raise errors.ValidationError("Distance cannot be negative")

    for max_distance, fee in tiers or _tiers():
        if max_distance is None or distance <= Decimal(str(max_distance)):
            return Decimal(str(fee)).quantize(Decimal("0.01"))

    raise errors.ValidationError(
        "Delivery address is outside our service area", distance=float(distance))


def calculate_estimated_time(distance):
    """Minutes from order to door: preparation plus travel."""
    config = current_app.config
    return round(config["BASE_PREPARATION_MINUTES"]
                 + (distance or 0) * config["TRAVEL_MINUTES_PER_KM"])


def is_within_delivery_radius(distance):
    return (distance or 0) <= current_app.config["DELIVERY_RADIUS_KM"]


def estimate_delivery(distance, subtotal=None):
    """Everything the checkout screen shows before the order is placed."""
    charges = calculate_delivery_charges(distance)
    estimate = {
        "distance": distance,
        "deliveryCharges": float(charges),
        "estimatedTime": calculate_estimated_time(distance),
        "withinDeliveryRadius": is_within_delivery_radius(distance),
        "maxDeliveryRadius": current_app.config["DELIVERY_RADIUS_KM"],
    }
    if subtotal is not None:
        estimate["subtotal"] = float(subtotal)
        estimate["total"] = float(Decimal(str(subtotal)) + charges)
    return estimate
