# havendrip/services/pricing.py
"""
Cart pricing and coupon application.

`PricingEngine` owns the cart lines and the applied coupon of one shopper and
computes every amount the cart page and checkout show:

    mrp_total, subtotal, savings, savings_percentage,
    shipping_fee, coupon_discount, total, max_delivery_time

Rules
-----
- Savings never go negative: a line priced above its MRP contributes 0.
- Shipping is charged once per seller: each seller group adds the highest
  shipping charge among its lines.
- A brand-restricted coupon is measured against, and discounts only, the lines
  of that seller ("applicable total").
- Percentage discounts are capped by `max_discount` and rounded half-up to a
  whole currency unit; fixed discounts never exceed the applicable total.
- Any change to the lines re-validates the applied coupon before returning.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional

from havendrip.core.errors import CouponErrorKind
from havendrip.core.results import Err
from havendrip.repositories.base import CouponDirectory
from havendrip.schemas.cart import CartLine
from havendrip.schemas.common import ZERO
from havendrip.schemas.coupon import Coupon, CouponValidation, canonical_code
from havendrip.schemas.order import PriceBreakdown

logger = logging.getLogger("havendrip.pricing")

_UNIT = Decimal("1")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(_UNIT, rounding=ROUND_HALF_UP)


def _money(value: Decimal) -> str:
    return f"{value.normalize():f}"


class PricingEngine:
    def __init__(
        self,
        coupons: CouponDirectory,
        user_id: Optional[str] = None,
        lines: Optional[List[CartLine]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._coupons = coupons
        self.user_id = user_id
        self._lines: List[CartLine] = list(lines or [])
        self._applied: Optional[Coupon] = None
        self._clock = clock or _utcnow

    # ── State ───────────────────────────────────────────────────────────────

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def applied_coupon(self) -> Optional[Coupon]:
        return self._applied

    def find_line(self, line_id: str) -> Optional[CartLine]:
        return next((line for line in self._lines if line.line_id == line_id), None)

    def find_identity(self, product_id: str, size: Optional[str], color: Optional[str]) -> Optional[CartLine]:
        key = (product_id, size, color)
        return next((line for line in self._lines if line.identity == key), None)

    # ── Mutations (each ends with coupon re-validation) ─────────────────────

    def add_line(self, line: CartLine) -> Optional[CouponValidation]:
        """Add a line; an existing line with the same product/size/color absorbs the quantity."""
        existing = self.find_identity(*line.identity)
        if existing is not None:
            merged = existing.model_copy(update={"quantity": existing.quantity + line.quantity})
            self._replace(existing.line_id, merged)
        else:
            self._lines.append(line)
        return self.revalidate_coupon()

    def put_line(self, line: CartLine) -> Optional[CouponValidation]:
        """Mirror a row as the store confirmed it (insert or overwrite by line_id)."""
        if self.find_line(line.line_id) is not None:
            self._replace(line.line_id, line)
        else:
            self._lines.append(line)
        return self.revalidate_coupon()

    def update_quantity(self, line_id: str, quantity: int) -> Optional[CouponValidation]:
        line = self.find_line(line_id)
        if line is None:
            raise KeyError(line_id)
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        self._replace(line_id, line.model_copy(update={"quantity": quantity}))
        return self.revalidate_coupon()

    def remove_line(self, line_id: str) -> Optional[CouponValidation]:
        self._lines = [line for line in self._lines if line.line_id != line_id]
        return self.revalidate_coupon()

    def clear_lines(self) -> Optional[CouponValidation]:
        self._lines = []
        return self.revalidate_coupon()

    def _replace(self, line_id: str, new_line: CartLine) -> None:
        self._lines = [new_line if line.line_id == line_id else line for line in self._lines]

    # ── Amounts ─────────────────────────────────────────────────────────────

    def compute_subtotal(self) -> Decimal:
        return sum((line.selling_price * line.quantity for line in self._lines), ZERO)

    def compute_mrp_total(self) -> Decimal:
        return sum((line.mrp * line.quantity for line in self._lines), ZERO)

    def compute_savings(self) -> Decimal:
        return sum(
            (max(ZERO, (line.mrp - line.selling_price) * line.quantity) for line in self._lines),
            ZERO,
        )

    def compute_savings_percentage(self) -> int:
        mrp_total = self.compute_mrp_total()
        if mrp_total <= 0:
            return 0
        return int(round_half_up(self.compute_savings() / mrp_total * 100))

    def compute_shipping_fee(self) -> Decimal:
        per_seller: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self._lines:
            per_seller[line.seller_id] = max(per_seller[line.seller_id], line.shipping_charge)
        return sum(per_seller.values(), ZERO)

    def compute_max_delivery_time(self) -> Optional[int]:
        if not self._lines:
            return None
        return max(line.delivery_days for line in self._lines)

    def applicable_lines(self, coupon: Coupon) -> List[CartLine]:
        if coupon.brand_id:
            return [line for line in self._lines if line.seller_id == coupon.brand_id]
        return list(self._lines)

    def applicable_total(self, coupon: Coupon) -> Decimal:
        if not coupon.brand_id:
            return self.compute_subtotal()
        return sum((line.selling_price * line.quantity for line in self.applicable_lines(coupon)), ZERO)

    def compute_coupon_discount(self) -> Decimal:
        coupon = self._applied
        if coupon is None:
            return ZERO
        applicable = self.applicable_total(coupon)
        if coupon.discount_type == "percentage":
            discount = applicable * coupon.discount_value / 100
            if coupon.max_discount is not None and discount > coupon.max_discount:
                discount = coupon.max_discount
            return round_half_up(discount)
        return min(coupon.discount_value, applicable)

    def compute_final_amount(self) -> Decimal:
        total = self.compute_subtotal() + self.compute_shipping_fee() - self.compute_coupon_discount()
        return max(ZERO, total)

    def price_breakdown(self) -> PriceBreakdown:
        return PriceBreakdown(
            item_count=sum(line.quantity for line in self._lines),
            mrp_total=self.compute_mrp_total(),
            subtotal=self.compute_subtotal(),
            savings=self.compute_savings(),
            savings_percentage=self.compute_savings_percentage(),
            shipping_fee=self.compute_shipping_fee(),
            coupon_code=self._applied.code if self._applied else None,
            coupon_discount=self.compute_coupon_discount(),
            total=self.compute_final_amount(),
            max_delivery_time=self.compute_max_delivery_time(),
        )

    # ── Coupons ─────────────────────────────────────────────────────────────

    def _reject(self, kind: CouponErrorKind, message: str, code: str) -> CouponValidation:
        if self._applied is not None:
            logger.info("coupon %s cleared for user %s: %s", self._applied.code, self.user_id, kind.value)
        else:
            logger.info("coupon %r rejected for user %s: %s", code, self.user_id, kind.value)
        self._applied = None
        return CouponValidation.fail(kind, message)

    def validate_coupon(self, code: Optional[str]) -> CouponValidation:
        """
        Check `code` against the current cart and, on success, make it the applied
        coupon. Every rejection clears the applied coupon; a failed lookup leaves
        it as it was.
        """
        canonical = canonical_code(code)
        if not canonical:
            return self._reject(CouponErrorKind.INVALID_INPUT, "Please enter a coupon code", canonical)
        if not self.user_id:
            return self._reject(CouponErrorKind.INVALID_INPUT, "Please log in to apply coupons", canonical)

        found = self._coupons.get_coupon_by_code(canonical)
        if isinstance(found, Err):
            return CouponValidation.fail(
                CouponErrorKind.REMOTE_FAILURE,
                "Could not verify the coupon right now. Please try again.",
            )
        coupon = found.value
        if coupon is None:
            return self._reject(CouponErrorKind.NOT_FOUND, "Invalid coupon code", canonical)

        if self._clock() > coupon.expiry_date:
            return self._reject(CouponErrorKind.EXPIRED, "This coupon has expired", canonical)

        if coupon.brand_id and not self.applicable_lines(coupon):
            brand = coupon.brand_name or "the selected brand's"
            return self._reject(
                CouponErrorKind.BRAND_MISMATCH,
                f"This coupon is only valid on {brand} products",
                canonical,
            )

        applicable = self.applicable_total(coupon)
        if coupon.min_order_value is not None and applicable < coupon.min_order_value:
            scope = f" on {coupon.brand_name or 'brand'} products" if coupon.brand_id else ""
            return self._reject(
                CouponErrorKind.BELOW_MINIMUM,
                f"Minimum order value of ₹{_money(coupon.min_order_value)}{scope} required",
                canonical,
            )

        self._applied = coupon
        return CouponValidation.ok(coupon)

    def revalidate_coupon(self) -> Optional[CouponValidation]:
        """Re-run validation for the applied coupon, if any. None when nothing is applied."""
        if self._applied is None:
            return None
        return self.validate_coupon(self._applied.code)

    def remove_coupon(self) -> None:
        self._applied = None
