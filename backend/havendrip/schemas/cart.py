"""
havendrip/schemas/cart.py - Pydantic models for Cart and Wishlist.
"""
import re
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from havendrip.schemas.common import Money

_INVISIBLE = ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0")
_DAYS_RE = re.compile(r"\d+")


def clean_id(v: Optional[str]) -> str:
    v = (v or "").strip()
    for ch in _INVISIBLE:
        v = v.replace(ch, "")
    return v


def parse_delivery_days(value: Any) -> int:
    """
    Sellers pick delivery estimates such as "5-7 Days"; the upper bound is the promise.
    Plain ints pass through. Unparseable values count as 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    numbers = [int(n) for n in _DAYS_RE.findall(str(value))]
    return max(numbers) if numbers else 0


class CartLine(BaseModel):
    line_id: str = Field(..., description="Persisted cart line ID")
    product_id: str = Field(..., description="ID of the product")
    name: str = Field("", description="Product name at read time")
    image_url: Optional[str] = None
    selling_price: Money = Field(..., description="Price per unit")
    mrp: Money = Field(..., description="Maximum retail price per unit")
    quantity: int = Field(..., ge=1, description="Quantity of the product in the cart")
    selected_size: Optional[str] = None
    selected_color: Optional[str] = None
    seller_id: str = Field(..., description="Seller (brand) that ships this line")
    shipping_charge: Money = Field(..., description="Flat shipping fee set by the seller")
    delivery_days: int = Field(0, ge=0, description="Seller's delivery estimate in days")

    @property
    def identity(self) -> Tuple[str, Optional[str], Optional[str]]:
        return (self.product_id, self.selected_size, self.selected_color)


class WishlistEntry(BaseModel):
    entry_id: str
    product_id: str
    name: str = ""
    image_url: Optional[str] = None
    selling_price: Optional[Money] = None
    mrp: Optional[Money] = None
    selected_size: Optional[str] = None
    selected_color: Optional[str] = None


# ---------- request bodies ----------
class AddItemBody(BaseModel):
    product_id: str = Field(..., description="Product ID (the same 'id' the catalog returns).")
    quantity: int = Field(1, ge=1, le=10000, description="Quantity (>=1).")
    size: Optional[str] = Field(None, description="Selected size, e.g. 'M'")
    color: Optional[str] = Field(None, description="Selected color, e.g. 'Black'")

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = clean_id(v)
        if not v:
            raise ValueError("product_id cannot be empty")
        return v

    @field_validator("size", "color")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None


class UpdateQuantityBody(BaseModel):
    # ge=1 is checked by CartSession so the error message matches the service's.
    quantity: int = Field(..., description="New quantity (>=1).")


class WishlistAddBody(AddItemBody):
    quantity: int = 1
