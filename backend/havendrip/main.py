"""
havendrip/main.py - Application entry point.

Builds the FastAPI app: CORS from `ALLOWED_ORIGINS`, logging from `LOG_LEVEL`/`DEBUG`,
the `CartError` handler, and the cart, wishlist and checkout routers.
`GET /health` needs no token and never touches Firestore.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from havendrip.config import get_settings
from havendrip.core.errors import CartError, cart_error_handler
from havendrip.core.logs import configure_logging
from havendrip.routers import carts, checkout, wishlist

settings = get_settings()
configure_logging(settings.log_level, settings.debug)

# Initialize FastAPI app
app = FastAPI(
    title="Havendrip Cart & Checkout API",
    description="Cart pricing, coupons, wishlist and Cash-on-Delivery checkout for the Havendrip storefront.",
    version="1.0.0",
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CartError, cart_error_handler)

app.include_router(carts.router)
app.include_router(wishlist.router)
app.include_router(checkout.router)


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok", "currency": settings.currency}


# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("havendrip.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
