from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from havendrip.core.auth import require_shopper
from havendrip.core.results import Err, Ok, RemoteFailure
from havendrip.main import app
from havendrip.routers import deps
from havendrip.schemas.cart import CartLine, WishlistEntry
from havendrip.schemas.coupon import Coupon
from havendrip.schemas.principal import Principal
from havendrip.schemas.profile import Profile

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
USER_ID = "user-1"


def fixed_clock():
    return NOW


def make_line(line_id, price, mrp=None, quantity=1, seller="s1", shipping=0, days=0,
              product_id=None, size=None, color=None) -> CartLine:
    return CartLine(
        line_id=line_id,
        product_id=product_id or f"p-{line_id}",
        name=f"Product {line_id}",
        selling_price=Decimal(str(price)),
        mrp=Decimal(str(mrp if mrp is not None else price)),
        quantity=quantity,
        selected_size=size,
        selected_color=color,
        seller_id=seller,
        shipping_charge=Decimal(str(shipping)),
        delivery_days=days,
    )


def make_coupon(code="SAVE10", discount_type="percentage", value=10, max_discount=None,
                min_order=None, brand_id=None, brand_name=None, expiry=None) -> Coupon:
    return Coupon(
        code=code,
        discount_type=discount_type,
        discount_value=Decimal(str(value)),
        max_discount=Decimal(str(max_discount)) if max_discount is not None else None,
        min_order_value=Decimal(str(min_order)) if min_order is not None else None,
        brand_id=brand_id,
        brand_name=brand_name,
        expiry_date=expiry or datetime(2027, 1, 1, tzinfo=timezone.utc),
    )


class FakeCouponDirectory:
    def __init__(self, *coupons: Coupon):
        self.coupons: Dict[str, Coupon] = {c.code: c for c in coupons}
        self.failing = False
        self.lookups: List[str] = []
        self.usage: List[str] = []

    def get_coupon_by_code(self, code):
        self.lookups.append(code)
        if self.failing:
            return Err(RemoteFailure("get_coupon_by_code", "deadline exceeded"))
        return Ok(self.coupons.get(code))

    def increment_coupon_usage(self, code):
        if self.failing:
            return Err(RemoteFailure("increment_coupon_usage", "unavailable"))
        self.usage.append(code)
        return Ok(None)


class FakeCartStore:
    """Keeps rows the way Firestore would; `catalog` maps product_id -> template CartLine."""

    def __init__(self, catalog: Optional[Dict[str, CartLine]] = None):
        self.catalog: Dict[str, CartLine] = dict(catalog or {})
        self.lines: Dict[str, List[CartLine]] = {}
        self.wishlists: Dict[str, List[WishlistEntry]] = {}
        self.coupon_codes: Dict[str, Optional[str]] = {}
        self.failing = False
        self._seq = 0

    def _next_id(self, prefix):
        self._seq += 1
        return f"{prefix}{self._seq}"

    def _fail(self, op):
        return Err(RemoteFailure(op, "service unavailable"))

    def _owner(self, line_id):
        for uid, lines in self.lines.items():
            if any(line.line_id == line_id for line in lines):
                return uid
        return None

    def list_cart_lines(self, user_id):
        if self.failing:
            return self._fail("list_cart_lines")
        return Ok(list(self.lines.get(user_id, [])))

    def list_wishlist(self, user_id):
        if self.failing:
            return self._fail("list_wishlist")
        return Ok(list(self.wishlists.get(user_id, [])))

    def insert_cart_line(self, user_id, product_id, quantity, size, color):
        if self.failing:
            return self._fail("insert_cart_line")
        template = self.catalog.get(product_id)
        if template is None:
            return Ok(None)
        line = template.model_copy(update={
            "line_id": self._next_id("line-"),
            "quantity": quantity,
            "selected_size": size,
            "selected_color": color,
        })
        self.lines.setdefault(user_id, []).append(line)
        return Ok(line)

    def update_cart_line_quantity(self, line_id, quantity):
        if self.failing:
            return self._fail("update_cart_line_quantity")
        uid = self._owner(line_id)
        if uid is not None:
            self.lines[uid] = [
                line.model_copy(update={"quantity": quantity}) if line.line_id == line_id else line
                for line in self.lines[uid]
            ]
        return Ok(None)

    def delete_cart_line(self, line_id):
        if self.failing:
            return self._fail("delete_cart_line")
        uid = self._owner(line_id)
        if uid is not None:
            self.lines[uid] = [line for line in self.lines[uid] if line.line_id != line_id]
        return Ok(None)

    def delete_all_cart_lines(self, user_id):
        if self.failing:
            return self._fail("delete_all_cart_lines")
        self.lines[user_id] = []
        return Ok(None)

    def insert_wishlist_entry(self, user_id, product_id, size=None, color=None):
        if self.failing:
            return self._fail("insert_wishlist_entry")
        template = self.catalog.get(product_id)
        if template is None:
            return Ok(None)
        entry = WishlistEntry(
            entry_id=self._next_id("wish-"),
            product_id=product_id,
            name=template.name,
            selling_price=template.selling_price,
            mrp=template.mrp,
            selected_size=size,
            selected_color=color,
        )
        self.wishlists.setdefault(user_id, []).append(entry)
        return Ok(entry)

    def delete_wishlist_entry(self, entry_id):
        if self.failing:
            return self._fail("delete_wishlist_entry")
        for uid, entries in self.wishlists.items():
            self.wishlists[uid] = [e for e in entries if e.entry_id != entry_id]
        return Ok(None)

    def get_applied_coupon_code(self, user_id):
        if self.failing:
            return self._fail("get_applied_coupon_code")
        return Ok(self.coupon_codes.get(user_id))

    def set_applied_coupon_code(self, user_id, code):
        if self.failing:
            return self._fail("set_applied_coupon_code")
        self.coupon_codes[user_id] = code
        return Ok(None)


class FakeOrderGateway:
    def __init__(self):
        self.orders: Dict[str, tuple] = {}
        self.failing = False
        # the next write lands but the caller sees a timeout
        self.lose_next_response = False

    def place_complete_order(self, user_id, payload):
        if self.failing:
            return Err(RemoteFailure("place_complete_order", "internal error"))
        for order_id, (uid, existing) in self.orders.items():
            if uid == user_id and existing.transaction_id == payload.transaction_id:
                return Ok(order_id)
        order_id = f"order-{len(self.orders) + 1}"
        self.orders[order_id] = (user_id, payload)
        if self.lose_next_response:
            self.lose_next_response = False
            return Err(RemoteFailure("place_complete_order", "deadline exceeded"))
        return Ok(order_id)


class FakeProfileStore:
    def __init__(self, profile: Optional[Profile] = None):
        self.profile = profile
        self.saved_phones: List[str] = []
        self.failing_save = False

    def get_profile(self, user_id):
        return Ok(self.profile)

    def update_phone_number(self, user_id, phone_number):
        if self.failing_save:
            return Err(RemoteFailure("update_phone_number", "permission denied"))
        self.saved_phones.append(phone_number)
        return Ok(None)


# ---------- fixtures ----------
@pytest.fixture
def catalog():
    return {
        "tee": make_line("tmpl-tee", 400, mrp=500, seller="brand-a", shipping=50, days=5, product_id="tee"),
        "jeans": make_line("tmpl-jeans", 500, mrp=500, seller="brand-b", shipping=40, days=7, product_id="jeans"),
        "cap": make_line("tmpl-cap", 200, mrp=250, seller="brand-a", shipping=30, days=3, product_id="cap"),
    }


@pytest.fixture
def cart_store(catalog):
    return FakeCartStore(catalog)


@pytest.fixture
def coupons():
    return FakeCouponDirectory(
        make_coupon("SAVE10", "percentage", 10),
        make_coupon("FLAT100", "fixed", 100),
        make_coupon("BRANDA20", "percentage", 20, brand_id="brand-a", brand_name="Brand A"),
        make_coupon("BIG", "fixed", 50, min_order=2000),
        make_coupon("OLD", "fixed", 50, expiry=datetime(2025, 1, 1, tzinfo=timezone.utc)),
    )


@pytest.fixture
def orders():
    return FakeOrderGateway()


@pytest.fixture
def profiles():
    return FakeProfileStore(Profile(
        user_id=USER_ID,
        full_name="Asha Rao",
        phone_number="9876543210",
        address="12 MG Road",
        city="Bengaluru",
        state="KA",
        pincode="560001",
    ))


@pytest.fixture
def client(cart_store, coupons, orders, profiles):
    async def _shopper():
        return Principal(uid=USER_ID, role="user", email="asha@example.com")

    app.dependency_overrides[require_shopper] = _shopper
    app.dependency_overrides[deps.get_cart_store] = lambda: cart_store
    app.dependency_overrides[deps.get_coupon_directory] = lambda: coupons
    app.dependency_overrides[deps.get_order_gateway] = lambda: orders
    app.dependency_overrides[deps.get_profile_store] = lambda: profiles
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
