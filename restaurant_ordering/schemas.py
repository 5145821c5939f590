from marshmallow import (
    Schema,
    fields,
    validate,
    validates,
    ValidationError,
    validates_schema,
    pre_load
)

from restaurant_ordering.models import (
    OrderStatus, PaymentStatus, PaymentMethod, DiscountType
)
from restaurant_ordering.services.helper import to_naive_utc
from restaurant_ordering.services.reports import REPORT_METRICS


def _strip_blank(value):
    return value.strip() if isinstance(value, str) else value


class CategorySchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    image = fields.Str(allow_none=True, validate=validate.Length(max=255))
    is_active = fields.Bool(data_key="isActive")

    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and "name" in data:
            data = dict(data, name=_strip_blank(data["name"]))
        return data


class CategoryUpdateSchema(CategorySchema):
    pass


class FoodItemSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=150))
    description = fields.Str(allow_none=True)
    price = fields.Decimal(
        required=True,
        places=2,
        validate=validate.Range(min=0, min_inclusive=False,
                                error="Price must be greater than 0")
    )
    image = fields.Str(allow_none=True, validate=validate.Length(max=255))
    category_id = fields.Int(required=True, data_key="categoryId")
    is_available = fields.Bool(data_key="isAvailable")

    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and "name" in data:
            data = dict(data, name=_strip_blank(data["name"]))
        return data


class FoodItemUpdateSchema(FoodItemSchema):
    pass


class FoodItemQuerySchema(Schema):
    category_id = fields.Int(data_key="categoryId")
    q = fields.Str(validate=validate.Length(min=1))
    all = fields.Bool(load_default=False)


class ListQuerySchema(Schema):
    all = fields.Bool(load_default=False)


class SessionQuerySchema(Schema):
    session_id = fields.Str(
        required=True,
        data_key="sessionId",
        validate=validate.Length(min=1, max=128)
    )


class CartAddSchema(SessionQuerySchema):
    food_item_id = fields.Int(required=True, data_key="foodItemId")
    quantity = fields.Int(
        load_default=1,
        validate=validate.Range(min=1, error="Quantity must be greater than 0")
    )


class CartUpdateSchema(Schema):
    # zero or negative removes the line
    quantity = fields.Int(required=True)


class DeliveryChargeQuerySchema(Schema):
    distance = fields.Float(
        required=True,
        validate=validate.Range(min=0, error="Distance cannot be negative")
    )


class DeliveryEstimateSchema(DeliveryChargeQuerySchema):
    subtotal = fields.Decimal(
        load_default=None, places=2, validate=validate.Range(min=0))


class OrderCreateSchema(Schema):
    session_id = fields.Str(
        required=True,
        data_key="sessionId",
        validate=validate.Length(min=1, max=128)
    )
    customer_name = fields.Str(
        required=True,
        data_key="customerName",
        validate=validate.Length(min=1, max=150)
    )
    customer_phone = fields.Str(
        required=True,
        data_key="customerPhone",
        validate=validate.Regexp(
            r"^\+?[0-9][0-9\s-]{6,20}$",
            error="Invalid phone number."
        )
    )
    customer_email = fields.Email(
        allow_none=True,
        data_key="customerEmail",
        validate=validate.Length(max=150)
    )
    delivery_address = fields.Str(
        required=True,
        data_key="deliveryAddress",
        validate=validate.Length(min=1)
    )
    latitude = fields.Float(
        allow_none=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(
        allow_none=True, validate=validate.Range(min=-180, max=180))
    distance = fields.Float(
        allow_none=True, validate=validate.Range(min=0))
    payment_method = fields.Enum(
        PaymentMethod,
        data_key="paymentMethod",
        load_default=PaymentMethod.CASH_ON_DELIVERY
    )
    notes = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    deal_id = fields.Int(allow_none=True, data_key="dealId")

    @validates("customer_name")
    def validate_customer_name(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Customer name cannot be empty.")

    @validates("delivery_address")
    def validate_delivery_address(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Delivery address cannot be empty.")


class OrderQuerySchema(Schema):
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1, max=100))
    status = fields.Enum(OrderStatus)


class OrderStatusSchema(Schema):
    status = fields.Enum(OrderStatus, required=True)


class PaymentStatusSchema(Schema):
    payment_status = fields.Enum(
        PaymentStatus, required=True, data_key="paymentStatus")


class OrderCancelSchema(Schema):
    reason = fields.Str(allow_none=True, validate=validate.Length(max=500))


class DateRangeQuerySchema(Schema):
    start_date = fields.DateTime(data_key="startDate")
    end_date = fields.DateTime(data_key="endDate")

    @validates_schema
    def validate_range(self, data, **kwargs):
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and to_naive_utc(start) > to_naive_utc(end):
            raise ValidationError(
                "Start date must be before end date.", field_name="startDate")


class WeeklySummaryQuerySchema(Schema):
    start_date = fields.Date(data_key="startDate")


class CustomReportSchema(DateRangeQuerySchema):
    start_date = fields.DateTime(required=True, data_key="startDate")
    end_date = fields.DateTime(required=True, data_key="endDate")
    metrics = fields.List(
        fields.Str(validate=validate.OneOf(REPORT_METRICS)), load_default=None)


class SpecialDealSchema(Schema):
    title = fields.Str(required=True, validate=validate.Length(min=1, max=150))
    description = fields.Str(required=True, validate=validate.Length(min=1))
    image = fields.Str(allow_none=True, validate=validate.Length(max=255))
    discount = fields.Decimal(
        required=True,
        places=2,
        validate=validate.Range(min=0, min_inclusive=False,
                                error="Discount must be greater than 0")
    )
    discount_type = fields.Enum(
        DiscountType, required=True, data_key="discountType")
    min_order_amount = fields.Decimal(
        allow_none=True,
        places=2,
        data_key="minOrderAmount",
        validate=validate.Range(min=0)
    )
    valid_from = fields.DateTime(required=True, data_key="validFrom")
    valid_to = fields.DateTime(required=True, data_key="validTo")
    is_active = fields.Bool(data_key="isActive")

    @validates_schema
    def validate_deal(self, data, **kwargs):
        discount = data.get("discount")
        if (data.get("discount_type") == DiscountType.PERCENTAGE
                and discount is not None and discount > 100):
            raise ValidationError(
                "Percentage discount cannot exceed 100%", field_name="discount")

        valid_from, valid_to = data.get("valid_from"), data.get("valid_to")
        if valid_from and valid_to and to_naive_utc(valid_from) >= to_naive_utc(valid_to):
            raise ValidationError(
                "Valid from date must be before valid to date",
                field_name="validFrom"
            )


class SpecialDealUpdateSchema(SpecialDealSchema):
    pass


class ValidDealsQuerySchema(Schema):
    amount = fields.Decimal(
        required=True,
        places=2,
        validate=validate.Range(min=0, min_inclusive=False,
                                error="Valid order amount is required")
    )


class AdminLoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True)
