"""
havendrip/routers/wishlist.py
Wishlist endpoints: list, add (idempotent per product), remove, move one unit to the cart.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from havendrip.routers.carts import cart_view
from havendrip.routers.deps import get_cart_session
from havendrip.schemas.cart import WishlistAddBody, WishlistEntry
from havendrip.services.cart_session import CartSession

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("", response_model=List[WishlistEntry])
def list_wishlist(session: CartSession = Depends(get_cart_session)):
    return session.wishlist()


@router.post("", response_model=WishlistEntry, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(payload: WishlistAddBody, session: CartSession = Depends(get_cart_session)):
    """Adding a product that is already wishlisted returns the existing entry."""
    return session.add_to_wishlist(payload.product_id, payload.size, payload.color)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_wishlist(entry_id: str, session: CartSession = Depends(get_cart_session)):
    session.remove_from_wishlist(entry_id)


@router.post("/{entry_id}/move-to-cart")
def move_to_cart(entry_id: str, session: CartSession = Depends(get_cart_session)):
    session.move_to_cart(entry_id)
    return cart_view(session)
