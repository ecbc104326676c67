"""
havendrip/routers/carts.py
Cart endpoints (logged-in shoppers): list, add, change quantity, remove one, clear,
price breakdown, and coupon apply/remove.

Behavior
- Every response that shows the cart also carries the up-to-date price breakdown
  (MRP total, savings, per-seller shipping, coupon discount, total).
- Adding the same product with the same size/color increments the existing line.
- Any change to the cart re-validates the applied coupon; a coupon that no longer
  fits (e.g. its brand's items were removed) silently drops off.
- Coupon failures are not HTTP errors: POST /cart/coupon answers 200 with
  `success: false`, the failure `kind` and a message the UI can show.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from havendrip.schemas.cart import AddItemBody, UpdateQuantityBody
from havendrip.schemas.coupon import ApplyCouponBody
from havendrip.schemas.order import PriceBreakdown
from havendrip.services.cart_session import CartSession
from havendrip.routers.deps import get_cart_session

router = APIRouter(prefix="/cart", tags=["Cart"])


def cart_view(session: CartSession) -> Dict[str, Any]:
    coupon = session.engine.applied_coupon
    return {
        "user_id": session.user_id,
        "items": session.lines,
        "applied_coupon": coupon,
        "applied_coupon_label": coupon.label if coupon else None,
        "breakdown": session.engine.price_breakdown(),
    }


# ---------- routes ----------
@router.get("")
def get_cart_no_slash(session: CartSession = Depends(get_cart_session)):
    """Get cart endpoint without trailing slash."""
    return cart_view(session)


@router.get("/")
def get_cart_with_slash(session: CartSession = Depends(get_cart_session)):
    """Get cart endpoint with trailing slash."""
    return cart_view(session)


@router.get("/breakdown", response_model=PriceBreakdown)
def get_breakdown(session: CartSession = Depends(get_cart_session)):
    """Only the amounts (what checkout will charge)."""
    return session.engine.price_breakdown()


@router.post("/items", status_code=status.HTTP_201_CREATED)
def add_to_cart(payload: AddItemBody, session: CartSession = Depends(get_cart_session)):
    """Add a product variant, or increase the quantity of the matching line."""
    session.add_item(payload.product_id, payload.quantity, payload.size, payload.color)
    return cart_view(session)


@router.patch("/items/{line_id}")
def update_cart_item(line_id: str, payload: UpdateQuantityBody, session: CartSession = Depends(get_cart_session)):
    """Set the quantity of one line (>= 1; use DELETE to remove)."""
    session.update_quantity(line_id, payload.quantity)
    return cart_view(session)


@router.delete("/items/{line_id}")
def remove_cart_item(line_id: str, session: CartSession = Depends(get_cart_session)):
    """Remove one line by its line ID."""
    session.remove_item(line_id)
    return cart_view(session)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(session: CartSession = Depends(get_cart_session)):
    """Clear the entire cart (and the applied coupon)."""
    session.clear()


@router.post("/coupon")
def apply_coupon(payload: ApplyCouponBody, session: CartSession = Depends(get_cart_session)):
    result = session.apply_coupon(payload.code)
    return {"result": result, **cart_view(session)}


@router.delete("/coupon")
def remove_coupon(session: CartSession = Depends(get_cart_session)):
    """Remove the applied coupon; no-op when none is applied."""
    session.remove_coupon()
    return cart_view(session)
