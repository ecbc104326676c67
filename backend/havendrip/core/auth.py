# havendrip/core/auth.py
import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from firebase_admin import auth as fb_auth

from havendrip.config import get_firebase_app
from havendrip.schemas.principal import Principal

logger = logging.getLogger("havendrip.auth")


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Reads the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_id_token(id_token: str) -> dict:
    """
    Firebase ID token verification (with revocation check).
    Invalid/revoked/expired tokens produce 401.
    """
    try:
        return fb_auth.verify_id_token(id_token, app=get_firebase_app(), check_revoked=True)
    except fb_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired",
                            headers={"WWW-Authenticate": "Bearer"})
    except fb_auth.RevokedIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session revoked",
                            headers={"WWW-Authenticate": "Bearer"})
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.CertificateFetchError) as exc:
        logger.info("rejected ID token: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication token",
                            headers={"WWW-Authenticate": "Bearer"})


def token_to_principal(decoded: dict) -> Principal:
    """
    Builds a Principal from verified claims.
    - anonymous provider        → role='guest'
    - custom claim admin=True   → role='admin'
    - custom claim seller=True  → role='seller'
    - otherwise                 → role='user'
    """
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise HTTPException(status_code=401, detail="Token missing uid.")

    firebase_info = decoded.get("firebase") or {}
    provider = firebase_info.get("sign_in_provider")

    if provider == "anonymous":
        role = "guest"
    elif decoded.get("admin") is True:
        role = "admin"
    elif decoded.get("seller") is True:
        role = "seller"
    else:
        role = "user"

    return Principal(
        uid=uid,
        role=role,
        email=decoded.get("email"),
        display_name=decoded.get("name"),
    )


# --------- FastAPI Dependencies --------- #

async def get_principal(request: Request) -> Principal:
    """
    Token required: verifies it and returns the Principal.
    """
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Missing Authorization header.",
                            headers={"WWW-Authenticate": "Bearer"})
    decoded = _decode_id_token(token)
    return token_to_principal(decoded)


async def require_shopper(request: Request) -> Principal:
    """
    Guests browse but do not keep carts; they get 403 on cart/checkout endpoints.
    """
    principal = await get_principal(request)
    if principal.role == "guest":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Please log in to use the cart.")
    return principal
