"""
havendrip/schemas/profile.py - Shopper profile (address + phone) as read at checkout.
"""
from typing import Optional

from pydantic import BaseModel


class Profile(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    landmark: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    def formatted_address(self) -> Optional[str]:
        """`address, landmark, city, state, pincode`, skipping blanks; None without a street line."""
        if not self.address:
            return None
        parts = [self.address, self.landmark, self.city, self.state, self.pincode]
        return ", ".join(str(p).strip() for p in parts if p and str(p).strip())
