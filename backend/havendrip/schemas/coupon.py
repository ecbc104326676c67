"""
havendrip/schemas/coupon.py - Pydantic models for Coupons.
"""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from havendrip.core.errors import CouponErrorKind
from havendrip.schemas.common import Money

DiscountType = Literal["percentage", "fixed"]


def canonical_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class Coupon(BaseModel):
    code: str
    discount_type: DiscountType
    discount_value: Money = Field(..., ge=0)
    max_discount: Optional[Money] = Field(None, description="Cap, percentage coupons only")
    min_order_value: Optional[Money] = Field(None, description="Threshold on the applicable total")
    brand_id: Optional[str] = Field(None, description="Restrict to lines from this seller")
    brand_name: Optional[str] = None
    expiry_date: datetime
    used_count: int = 0

    @field_validator("code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return canonical_code(v)

    @field_validator("expiry_date")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        # Firestore returns aware datetimes; naive values are stored as UTC.
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @model_validator(mode="after")
    def _percentage_bounds(self) -> "Coupon":
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount_value must be between 0 and 100")
        return self

    @property
    def label(self) -> str:
        off = f"{self.discount_value.normalize():f}% off" if self.discount_type == "percentage" \
            else f"₹{self.discount_value.normalize():f} off"
        return f"{off} on {self.brand_name} products" if self.brand_name else off


class CouponValidation(BaseModel):
    success: bool
    kind: Optional[CouponErrorKind] = None
    message: Optional[str] = None
    coupon: Optional[Coupon] = None

    @classmethod
    def ok(cls, coupon: Coupon) -> "CouponValidation":
        return cls(success=True, coupon=coupon, message="Coupon applied successfully!")

    @classmethod
    def fail(cls, kind: CouponErrorKind, message: str) -> "CouponValidation":
        return cls(success=False, kind=kind, message=message)


class ApplyCouponBody(BaseModel):
    code: str = Field(..., description="Coupon code, case-insensitive")
