# havendrip/repositories/base.py
"""
Interfaces of the hosted-platform collaborators.

The Firestore adapters in this package implement them for production; tests
substitute in-memory versions. Every method returns `Ok(...)` or
`Err(RemoteFailure)` and never raises for network/auth/server errors.
"""
from __future__ import annotations

from typing import List, Optional, Protocol

from havendrip.core.results import RemoteResult
from havendrip.schemas.cart import CartLine, WishlistEntry
from havendrip.schemas.coupon import Coupon
from havendrip.schemas.order import OrderPayload
from havendrip.schemas.profile import Profile


class CartStore(Protocol):
    def list_cart_lines(self, user_id: str) -> RemoteResult[List[CartLine]]: ...

    def list_wishlist(self, user_id: str) -> RemoteResult[List[WishlistEntry]]: ...

    def insert_cart_line(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        size: Optional[str],
        color: Optional[str],
    ) -> RemoteResult[Optional[CartLine]]:
        """Ok(None) when the product is not in the catalog."""
        ...

    def update_cart_line_quantity(self, line_id: str, quantity: int) -> RemoteResult[None]: ...

    def delete_cart_line(self, line_id: str) -> RemoteResult[None]: ...

    def delete_all_cart_lines(self, user_id: str) -> RemoteResult[None]: ...

    def insert_wishlist_entry(
        self,
        user_id: str,
        product_id: str,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> RemoteResult[Optional[WishlistEntry]]:
        """Ok(None) when the product is not in the catalog."""
        ...

    def delete_wishlist_entry(self, entry_id: str) -> RemoteResult[None]: ...

    def get_applied_coupon_code(self, user_id: str) -> RemoteResult[Optional[str]]: ...

    def set_applied_coupon_code(self, user_id: str, code: Optional[str]) -> RemoteResult[None]: ...


class CouponDirectory(Protocol):
    def get_coupon_by_code(self, code: str) -> RemoteResult[Optional[Coupon]]: ...

    def increment_coupon_usage(self, code: str) -> RemoteResult[None]: ...


class OrderGateway(Protocol):
    def place_complete_order(self, user_id: str, payload: OrderPayload) -> RemoteResult[str]:
        """Ok(order_id). Calling again with the same transaction_id returns the same order."""
        ...


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> RemoteResult[Optional[Profile]]: ...

    def update_phone_number(self, user_id: str, phone_number: str) -> RemoteResult[None]: ...
