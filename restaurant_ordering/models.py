from restaurant_ordering import db
from datetime import datetime
from decimal import Decimal
from enum import Enum


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    CARD = "CARD"
    ONLINE = "ONLINE"


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class AdminRole(Enum):
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


def _money(value):
    """Render a Numeric column for JSON."""
    if value is None:
        return None
    return float(value)


def _iso(value):
    return value.isoformat() if value else None


class Category(db.Model):
    __tablename__ = 'category'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    image = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    food_items = db.relationship(
        'FoodItem', back_populates='category', order_by='FoodItem.name')

    def to_dict(self, include_items=False, available_only=False):
        data = {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_items:
            items = self.food_items
            if available_only:
                items = [item for item in items if item.is_available]
            data["foodItems"] = [item.to_dict(include_category=False)
                                 for item in items]
        return data


class FoodItem(db.Model):
    __tablename__ = 'food_item'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image = db.Column(db.String(255), nullable=True)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    category_id = db.Column(db.Integer, db.ForeignKey(
        'category.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category', back_populates='food_items')

    __table_args__ = (
        db.CheckConstraint('price > 0', name='food_item_price_positive'),
    )

    def to_dict(self, include_category=True):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": _money(self.price),
            "image": self.image,
            "isAvailable": self.is_available,
            "categoryId": self.category_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_category and self.category is not None:
            data["category"] = self.category.to_dict()
        return data


class Cart(db.Model):
    __tablename__ = 'cart'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(128), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship(
        'CartItem',
        back_populates='cart',
        cascade='all, delete-orphan',
        order_by='CartItem.id'
    )

    def to_dict(self):
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "items": [item.to_dict() for item in self.items],
            "createdAt": _iso(self.created_at),
        }


class CartItem(db.Model):
    __tablename__ = 'cart_item'

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey(
        'cart.id', ondelete='CASCADE'), nullable=False)
    food_item_id = db.Column(db.Integer, db.ForeignKey(
        'food_item.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # snapshot of the food item price at add/update time
    price = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cart = db.relationship('Cart', back_populates='items')
    food_item = db.relationship('FoodItem')

    __table_args__ = (
        db.UniqueConstraint('cart_id', 'food_item_id',
                            name='unique_cart_food_item'),
        db.CheckConstraint('quantity > 0', name='cart_item_quantity_positive'),
    )

    @property
    def line_total(self):
        return Decimal(self.price) * self.quantity

    def to_dict(self):
        return {
            "id": self.id,
            "cartId": self.cart_id,
            "foodItemId": self.food_item_id,
            "quantity": self.quantity,
            "price": _money(self.price),
            "total": _money(self.line_total),
            "foodItem": self.food_item.to_dict() if self.food_item else None,
        }


class SpecialDeal(db.Model):
    __tablename__ = 'special_deal'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False)
    image = db.Column(db.String(255), nullable=True)
    discount = db.Column(db.Numeric(10, 2), nullable=False)
    discount_type = db.Column(
        db.Enum(DiscountType, name='discount_type_enum'), nullable=False)
    min_order_amount = db.Column(db.Numeric(10, 2), nullable=True)
    valid_from = db.Column(db.DateTime, nullable=False)
    valid_to = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_valid_at(self, moment):
        """Active and inside the validity window at ``moment``."""
        return bool(self.is_active) and self.valid_from <= moment <= self.valid_to

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "discount": _money(self.discount),
            "discountType": self.discount_type.value,
            "minOrderAmount": _money(self.min_order_amount),
            "validFrom": _iso(self.valid_from),
            "validTo": _iso(self.valid_to),
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Order(db.Model):
    __tablename__ = 'order'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False, unique=True)
    customer_name = db.Column(db.String(150), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    customer_email = db.Column(db.String(150), nullable=True)
    delivery_address = db.Column(db.Text, nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    distance = db.Column(db.Float, nullable=True)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    delivery_charges = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(
        db.Enum(OrderStatus, name='order_status_enum'),
        nullable=False,
        default=OrderStatus.PENDING
    )
    payment_method = db.Column(
        db.Enum(PaymentMethod, name='payment_method_enum'),
        nullable=False,
        default=PaymentMethod.CASH_ON_DELIVERY
    )
    payment_status = db.Column(
        db.Enum(PaymentStatus, name='payment_status_enum'),
        nullable=False,
        default=PaymentStatus.PENDING
    )
    notes = db.Column(db.Text, nullable=True)
    # informational; the deal may later be edited or deleted
    deal_id = db.Column(db.Integer, nullable=True)
    estimated_time = db.Column(db.Integer, nullable=True)  # minutes
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.id'
    )

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "deliveryAddress": self.delivery_address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "distance": self.distance,
            "subtotal": _money(self.subtotal),
            "deliveryCharges": _money(self.delivery_charges),
            "discount": _money(self.discount),
            "total": _money(self.total),
            "status": self.status.value,
            "paymentMethod": self.payment_method.value,
            "paymentStatus": self.payment_status.value,
            "notes": self.notes,
            "dealId": self.deal_id,
            "estimatedTime": self.estimated_time,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = 'order_item'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey(
        'order.id', ondelete='CASCADE'), nullable=False)
    food_item_id = db.Column(db.Integer, db.ForeignKey(
        'food_item.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot
    total = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship('Order', back_populates='items')
    food_item = db.relationship('FoodItem')

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "foodItemId": self.food_item_id,
            "quantity": self.quantity,
            "price": _money(self.price),
            "total": _money(self.total),
            "foodItem": self.food_item.to_dict() if self.food_item else None,
        }


class Admin(db.Model):
    __tablename__ = 'admin'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(150), nullable=False, unique=True)
    name = db.Column(db.String(150), nullable=False)
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(
        db.Enum(AdminRole, name='admin_role_enum'),
        nullable=False,
        default=AdminRole.ADMIN
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
        }


class TokenBlocklist(db.Model):
    __tablename__ = "token_blocklist"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, unique=True)
    created_at = db.Column(
        db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
