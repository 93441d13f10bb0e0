"""Schemas for phone verification and session tokens."""

from pydantic import BaseModel, ConfigDict, Field

PHONE_PATTERN = r"^\d{10,13}$"


class PhoneRequest(BaseModel):
    """Request a one-time code for a phone number."""

    phone: str = Field(..., pattern=PHONE_PATTERN, description="Digits only, no separators")


class PhoneLoginRequest(PhoneRequest):
    """Sign in with the code delivered to the phone."""

    authorization_code: str = Field(..., pattern=r"^\d{6}$")


class TokenPairResponse(BaseModel):
    """Freshly issued access and refresh tokens."""

    user_id: int
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

    model_config = ConfigDict(from_attributes=True)
