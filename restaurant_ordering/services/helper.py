from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.middleware.logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value):
    """Coerce a number to a two-place Decimal."""
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_naive_utc(value):
    """Drop tzinfo after converting to UTC; columns store naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow():
    return datetime.utcnow()


def get_or_404(Model, id, entity):
    """Fetch an item by ID or raise NotFoundError."""
    item = db.session.get(Model, id)
    if not item:
        raise errors.NotFoundError(f"{entity} not found", entity=entity, entity_id=id)
    return item


def commit_or_raise(operation, **context):
    """Commit the session; roll back and raise InternalError on failure."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(
            f"Database error during {operation}: {str(e)}",
            extra={'event': 'database_error', 'operation': operation, **context}
        )
        raise errors.InternalError(f"Failed to {operation}") from e


def config_value(key):
    return current_app.config[key]
