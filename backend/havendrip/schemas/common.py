"""
havendrip/schemas/common.py - Shared field types.
"""
from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Amounts stay Decimal in Python and go out as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Firestore hands back int/float/str; never build a Decimal from a float directly."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
