"""
Storefront Backend — Auth Schemas
===================================

What:  Login request/response and identity lookup response.

Why the login fields are optional:
    Presence is checked by the validation layer so a missing email comes back
    in the same `errors` envelope as every other field error, not as a
    framework-level 422.
"""

import uuid
from typing import Optional

from pydantic import BaseModel

from storefront.schemas.common import Envelope


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(Envelope):
    token: str


class UserOut(BaseModel):
    id: uuid.UUID
    email: str

    model_config = {"from_attributes": True}


class MeResponse(Envelope):
    user: UserOut
