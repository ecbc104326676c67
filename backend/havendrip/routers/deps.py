# havendrip/routers/deps.py
"""
FastAPI dependencies that build the request-scoped collaborators.

Tests replace `get_cart_store`, `get_coupon_directory`, `get_order_gateway`,
`get_profile_store` and `require_shopper` through `app.dependency_overrides`.
"""
from fastapi import Depends

from havendrip.config import get_db
from havendrip.core.auth import require_shopper
from havendrip.repositories.base import CartStore, CouponDirectory, OrderGateway, ProfileStore
from havendrip.repositories.cart_store import FirestoreCartStore
from havendrip.repositories.coupon_directory import FirestoreCouponDirectory
from havendrip.repositories.orders import FirestoreOrderGateway
from havendrip.repositories.profiles import FirestoreProfileStore
from havendrip.schemas.principal import Principal
from havendrip.services.cart_session import CartSession
from havendrip.services.checkout import CheckoutService


def get_cart_store() -> CartStore:
    return FirestoreCartStore(get_db())


def get_coupon_directory() -> CouponDirectory:
    return FirestoreCouponDirectory(get_db())


def get_order_gateway() -> OrderGateway:
    return FirestoreOrderGateway(get_db())


def get_profile_store() -> ProfileStore:
    return FirestoreProfileStore(get_db())


def get_cart_session(
    principal: Principal = Depends(require_shopper),
    store: CartStore = Depends(get_cart_store),
    coupons: CouponDirectory = Depends(get_coupon_directory),
) -> CartSession:
    return CartSession.load(principal.uid, store, coupons)


def get_checkout_service(
    orders: OrderGateway = Depends(get_order_gateway),
    coupons: CouponDirectory = Depends(get_coupon_directory),
    profiles: ProfileStore = Depends(get_profile_store),
) -> CheckoutService:
    return CheckoutService(orders, coupons, profiles)
