"""
havendrip/core/errors.py - Error taxonomy and HTTP translation.

Pricing and coupon logic reports problems as values (`CouponErrorKind`,
`RemoteFailure`). Services raise `CartError` subclasses; `cart_error_handler`
turns them into JSON responses.
"""
import logging
from enum import Enum

from fastapi import Request, status
from fastapi.responses import JSONResponse

from havendrip.core.results import RemoteFailure

logger = logging.getLogger("havendrip.errors")


class CouponErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    BRAND_MISMATCH = "brand_mismatch"
    BELOW_MINIMUM = "below_minimum"
    REMOTE_FAILURE = "remote_failure"


class CartError(Exception):
    """Raised by CartSession / CheckoutService for caller mistakes."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInput(CartError):
    status_code = status.HTTP_400_BAD_REQUEST


class LineNotFound(CartError):
    status_code = status.HTTP_404_NOT_FOUND


class RemoteCallFailed(CartError):
    """Wraps a RemoteFailure so it can cross a service boundary as an exception."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, failure: RemoteFailure):
        super().__init__(str(failure))
        self.failure = failure


async def cart_error_handler(request: Request, exc: CartError) -> JSONResponse:
    """Registered on the app: CartError subclasses carry their own status code."""
    if isinstance(exc, RemoteCallFailed):
        logger.warning("%s %s -> upstream failure: %s", request.method, request.url.path, exc.failure)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
