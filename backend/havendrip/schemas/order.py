# havendrip/schemas/order.py
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from havendrip.schemas.common import Money

PaymentMethodId = Literal["cod", "online"]


class PriceBreakdown(BaseModel):
    item_count: int
    mrp_total: Money
    subtotal: Money
    savings: Money
    savings_percentage: int
    shipping_fee: Money
    coupon_code: Optional[str] = None
    coupon_discount: Money
    total: Money
    max_delivery_time: Optional[int] = None


class PaymentMethod(BaseModel):
    id: PaymentMethodId
    name: str
    description: str
    available: bool


# (Input) checkout form
class PlaceOrderRequest(BaseModel):
    payment_method: PaymentMethodId = "cod"
    phone_number: Optional[str] = Field(None, description="10-digit delivery phone; defaults to the saved one")
    shipping_address: Optional[str] = Field(None, description="Single-line address; defaults to the profile address")
    save_phone: bool = Field(False, description="Store phone_number on the profile")
    transaction_id: Optional[str] = Field(
        None,
        pattern=r"^[A-Za-z0-9_-]{8,64}$",
        description="Client-generated id for this checkout attempt; resending it returns the same order",
    )


# Line snapshot stored with the order
class OrderItemPayload(BaseModel):
    product_id: str
    seller_id: str
    quantity: int
    price_at_time: Money
    size: Optional[str] = None
    color: Optional[str] = None
    item_status: str = "pending"


# Exactly what the order placement call receives
class OrderPayload(BaseModel):
    total_amount: Money
    subtotal: Money
    shipping_fee: Money
    discount_amount: Money
    coupon_code: Optional[str] = None
    coupon_discount: Money
    shipping_address: str
    phone_number: str
    payment_method: PaymentMethodId
    payment_status: str = "pending"
    estimated_delivery_date: Optional[datetime] = None
    transaction_id: str
    cart_items: List[OrderItemPayload] = Field(default_factory=list)


class OrderPlaced(BaseModel):
    order_id: str
    transaction_id: str
    total_amount: Money
    coupon_code: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
