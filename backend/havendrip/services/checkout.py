# havendrip/services/checkout.py
"""
Checkout: turns the priced cart into one order.

Steps
-----
1. Cart must be non-empty and the payment method available (Cash on Delivery only for now).
2. Delivery phone = request phone or the saved profile phone; exactly 10 digits.
3. Shipping address = request address or the formatted profile address.
4. The order payload is built from `PricingEngine.price_breakdown()` and nothing else.
5. After the order exists: coupon usage is incremented (non-fatal) and the cart is cleared.
"""
from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from havendrip.core.errors import InvalidInput, RemoteCallFailed
from havendrip.core.results import Err
from havendrip.repositories.base import CouponDirectory, OrderGateway, ProfileStore
from havendrip.schemas.order import (
    OrderItemPayload,
    OrderPayload,
    OrderPlaced,
    PaymentMethod,
    PlaceOrderRequest,
)
from havendrip.services.cart_session import CartSession, unwrap

logger = logging.getLogger("havendrip.checkout")

PAYMENT_METHODS: List[PaymentMethod] = [
    PaymentMethod(id="cod", name="Cash on Delivery", description="Pay when your order arrives", available=True),
    PaymentMethod(id="online", name="Online Payment", description="Pay using UPI, cards & more (Coming soon)",
                  available=False),
]

_PHONE_RE = re.compile(r"^\d{10}$")


def generate_transaction_id(now: datetime) -> str:
    """COD<epoch ms><4 random digits>"""
    stamp = int(now.timestamp() * 1000)
    return f"COD{stamp}{random.randint(0, 9999):04d}"


def is_valid_phone(phone: Optional[str]) -> bool:
    return bool(phone) and bool(_PHONE_RE.match(phone))


class CheckoutService:
    def __init__(
        self,
        orders: OrderGateway,
        coupons: CouponDirectory,
        profiles: ProfileStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.orders = orders
        self.coupons = coupons
        self.profiles = profiles
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def payment_methods() -> List[PaymentMethod]:
        return list(PAYMENT_METHODS)

    def _check_payment_method(self, method_id: str) -> None:
        method = next((m for m in PAYMENT_METHODS if m.id == method_id), None)
        if method is None or not method.available:
            raise InvalidInput("Selected payment method is not available.")

    def build_payload(
        self,
        session: CartSession,
        shipping_address: str,
        phone_number: str,
        payment_method: str,
        transaction_id: str,
    ) -> OrderPayload:
        breakdown = session.engine.price_breakdown()
        estimated = None
        if breakdown.max_delivery_time is not None:
            estimated = self._clock() + timedelta(days=breakdown.max_delivery_time)
        return OrderPayload(
            total_amount=breakdown.total,
            subtotal=breakdown.subtotal,
            shipping_fee=breakdown.shipping_fee,
            discount_amount=breakdown.savings,
            coupon_code=breakdown.coupon_code,
            coupon_discount=breakdown.coupon_discount,
            shipping_address=shipping_address,
            phone_number=phone_number,
            payment_method=payment_method,
            payment_status="pending",
            estimated_delivery_date=estimated,
            transaction_id=transaction_id,
            cart_items=[
                OrderItemPayload(
                    product_id=line.product_id,
                    seller_id=line.seller_id,
                    quantity=line.quantity,
                    price_at_time=line.selling_price,
                    size=line.selected_size,
                    color=line.selected_color,
                )
                for line in session.lines
            ],
        )

    def place_order(self, session: CartSession, request: PlaceOrderRequest) -> OrderPlaced:
        if not session.lines:
            raise InvalidInput("Your cart is empty")
        self._check_payment_method(request.payment_method)

        profile = unwrap(self.profiles.get_profile(session.user_id))
        saved_phone = profile.phone_number if profile else None

        phone = (request.phone_number or saved_phone or "").strip()
        if not phone:
            raise InvalidInput("Please provide a valid phone number for delivery")
        if not is_valid_phone(phone):
            raise InvalidInput("Please enter a valid 10-digit phone number")

        address = (request.shipping_address or "").strip() or (profile.formatted_address() if profile else None)
        if not address:
            raise InvalidInput("Please select a delivery address")

        if request.save_phone and phone != saved_phone:
            saved = self.profiles.update_phone_number(session.user_id, phone)
            if isinstance(saved, Err):
                logger.warning("could not save phone for user %s: %s", session.user_id, saved.error)

        payload = self.build_payload(
            session,
            shipping_address=address,
            phone_number=phone,
            payment_method=request.payment_method,
            transaction_id=request.transaction_id or generate_transaction_id(self._clock()),
        )
        order_id = unwrap(self.orders.place_complete_order(session.user_id, payload))
        logger.info(
            "order %s placed by %s: total=%s coupon=%s",
            order_id, session.user_id, payload.total_amount, payload.coupon_code,
        )

        if payload.coupon_code:
            used = self.coupons.increment_coupon_usage(payload.coupon_code)
            if isinstance(used, Err):
                logger.warning("coupon usage not recorded for %s: %s", payload.coupon_code, used.error)

        try:
            session.clear()
        except RemoteCallFailed:
            # The order already exists; a leftover cart is recoverable by the shopper.
            logger.exception("cart not cleared after order %s", order_id)

        return OrderPlaced(
            order_id=order_id,
            transaction_id=payload.transaction_id,
            total_amount=payload.total_amount,
            coupon_code=payload.coupon_code,
            estimated_delivery_date=payload.estimated_delivery_date,
        )
