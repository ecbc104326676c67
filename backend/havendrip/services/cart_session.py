# havendrip/services/cart_session.py
"""
Request-scoped cart for one shopper.

Every mutation is written to the CartStore first; the in-memory PricingEngine
only mirrors what the store confirmed, and re-validates the applied coupon as
its last step. A store failure raises `RemoteCallFailed` before anything local
has changed.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from havendrip.core.errors import CouponErrorKind, InvalidInput, LineNotFound, RemoteCallFailed
from havendrip.core.results import Err, RemoteResult
from havendrip.repositories.base import CartStore, CouponDirectory
from havendrip.schemas.cart import CartLine, WishlistEntry
from havendrip.schemas.coupon import CouponValidation
from havendrip.services.pricing import PricingEngine

logger = logging.getLogger("havendrip.cart")


def unwrap(result: RemoteResult):
    if isinstance(result, Err):
        raise RemoteCallFailed(result.error)
    return result.value


class CartSession:
    def __init__(self, user_id: str, store: CartStore, engine: PricingEngine):
        self.user_id = user_id
        self.store = store
        self.engine = engine

    @classmethod
    def load(
        cls,
        user_id: str,
        store: CartStore,
        coupons: CouponDirectory,
        clock: Optional[Callable] = None,
    ) -> "CartSession":
        lines = unwrap(store.list_cart_lines(user_id))
        engine = PricingEngine(coupons, user_id=user_id, lines=lines, clock=clock)
        session = cls(user_id, store, engine)
        code = unwrap(store.get_applied_coupon_code(user_id))
        if code:
            session._restore_coupon(code)
        return session

    # ── Queries ─────────────────────────────────────────────────────────────

    @property
    def lines(self) -> List[CartLine]:
        return self.engine.lines

    @property
    def applied_coupon_code(self) -> Optional[str]:
        coupon = self.engine.applied_coupon
        return coupon.code if coupon else None

    def _line_or_404(self, line_id: str) -> CartLine:
        line = self.engine.find_line(line_id)
        if line is None:
            raise LineNotFound("Item not found in cart.")
        return line

    # ── Coupon persistence ──────────────────────────────────────────────────

    def _restore_coupon(self, code: str) -> None:
        result = self.engine.validate_coupon(code)
        if not result.success and result.kind is not CouponErrorKind.REMOTE_FAILURE:
            logger.info("stored coupon %s no longer valid for user %s", code, self.user_id)
            self._persist_coupon(None)

    def _persist_coupon(self, code: Optional[str]) -> None:
        result = self.store.set_applied_coupon_code(self.user_id, code)
        if isinstance(result, Err):
            # The coupon is re-validated on every load, so a stale stored code is harmless.
            logger.warning("could not persist applied coupon for user %s: %s", self.user_id, result.error)

    def _after_mutation(self, had_coupon: Optional[str]) -> None:
        if had_coupon and self.engine.applied_coupon is None:
            self._persist_coupon(None)

    # ── Cart mutations ──────────────────────────────────────────────────────

    def add_item(
        self,
        product_id: str,
        quantity: int = 1,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> CartLine:
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1.")
        had_coupon = self.applied_coupon_code
        existing = self.engine.find_identity(product_id, size, color)
        if existing is not None:
            new_qty = existing.quantity + quantity
            unwrap(self.store.update_cart_line_quantity(existing.line_id, new_qty))
            line = existing.model_copy(update={"quantity": new_qty})
        else:
            line = unwrap(self.store.insert_cart_line(self.user_id, product_id, quantity, size, color))
            if line is None:
                raise InvalidInput("Product not found.")
        self.engine.put_line(line)
        self._after_mutation(had_coupon)
        logger.debug("user %s cart: %s x%s (%s/%s)", self.user_id, product_id, line.quantity, size, color)
        return line

    def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1.")
        self._line_or_404(line_id)
        had_coupon = self.applied_coupon_code
        unwrap(self.store.update_cart_line_quantity(line_id, quantity))
        self.engine.update_quantity(line_id, quantity)
        self._after_mutation(had_coupon)
        return self.engine.find_line(line_id)

    def remove_item(self, line_id: str) -> None:
        self._line_or_404(line_id)
        had_coupon = self.applied_coupon_code
        unwrap(self.store.delete_cart_line(line_id))
        self.engine.remove_line(line_id)
        self._after_mutation(had_coupon)

    def clear(self) -> None:
        unwrap(self.store.delete_all_cart_lines(self.user_id))
        self.engine.clear_lines()
        self.engine.remove_coupon()
        self._persist_coupon(None)

    # ── Coupons ─────────────────────────────────────────────────────────────

    def apply_coupon(self, code: str) -> CouponValidation:
        result = self.engine.validate_coupon(code)
        if result.success:
            self._persist_coupon(result.coupon.code)
        elif self.engine.applied_coupon is None:
            self._persist_coupon(None)
        return result

    def remove_coupon(self) -> None:
        self.engine.remove_coupon()
        self._persist_coupon(None)

    # ── Wishlist ────────────────────────────────────────────────────────────

    def wishlist(self) -> List[WishlistEntry]:
        return unwrap(self.store.list_wishlist(self.user_id))

    def add_to_wishlist(self, product_id: str, size: Optional[str] = None, color: Optional[str] = None) -> WishlistEntry:
        for entry in self.wishlist():
            if entry.product_id == product_id:
                return entry
        entry = unwrap(self.store.insert_wishlist_entry(self.user_id, product_id, size, color))
        if entry is None:
            raise InvalidInput("Product not found.")
        return entry

    def remove_from_wishlist(self, entry_id: str) -> None:
        if not any(entry.entry_id == entry_id for entry in self.wishlist()):
            raise LineNotFound("Item not found in wishlist.")
        unwrap(self.store.delete_wishlist_entry(entry_id))

    def move_to_cart(self, entry_id: str) -> CartLine:
        """One unit goes to the cart (merging with a matching line); the entry is then removed."""
        entry = next((e for e in self.wishlist() if e.entry_id == entry_id), None)
        if entry is None:
            raise LineNotFound("Item not found in wishlist.")
        line = self.add_item(entry.product_id, 1, entry.selected_size, entry.selected_color)
        removed = self.store.delete_wishlist_entry(entry_id)
        if isinstance(removed, Err):
            # The unit is already in the cart.
            logger.warning("wishlist entry %s kept after move to cart: %s", entry_id, removed.error)
        return line
