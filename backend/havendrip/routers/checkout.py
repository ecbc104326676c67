"""
havendrip/routers/checkout.py
Checkout endpoints.

- GET  /checkout/payment-methods : methods with availability (only COD is live)
- POST /checkout                 : places one order for the whole cart, then clears it

The order amounts are exactly the cart's price breakdown at the time of the call.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from havendrip.routers.deps import get_cart_session, get_checkout_service
from havendrip.schemas.order import OrderPlaced, PaymentMethod, PlaceOrderRequest
from havendrip.services.cart_session import CartSession
from havendrip.services.checkout import CheckoutService

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.get("/payment-methods", response_model=List[PaymentMethod])
def payment_methods():
    return CheckoutService.payment_methods()


@router.post("", response_model=OrderPlaced, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: PlaceOrderRequest,
    session: CartSession = Depends(get_cart_session),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    return checkout.place_order(session, payload)
