"""Phone verification and session token endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from downtown.api.v1.dependencies import BearerTokenDep, CurrentUserDep, SessionDep, SmsDep
from downtown.schemas.common import MessageResponse
from downtown.schemas.token import PhoneLoginRequest, PhoneRequest, TokenPairResponse
from downtown.services import authentication, users, verification

router = APIRouter(prefix="/user/authentication", tags=["authentication"])


@router.patch("", response_model=TokenPairResponse)
def refresh_tokens(token: BearerTokenDep, db: SessionDep) -> TokenPairResponse:
    """Exchange the current refresh token, sent as the bearer credential, for a new pair.

    Any refresh token other than the most recently issued one is rejected.
    """
    pair = authentication.refresh(db, token)
    return TokenPairResponse.model_validate(pair)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(db: SessionDep, current_user: CurrentUserDep) -> None:
    """Revoke the stored refresh token of the signed-in user."""
    authentication.revoke(db, current_user)


@router.post("/phone", response_model=MessageResponse)
def send_code(payload: PhoneRequest, db: SessionDep, sms: SmsDep) -> MessageResponse:
    """Send a one-time code to the phone, replacing any pending one."""
    verification.send(db, payload.phone, sms)
    return MessageResponse(message="verification code sent")


@router.put("/phone", response_model=TokenPairResponse)
def verify_phone(payload: PhoneLoginRequest, db: SessionDep) -> TokenPairResponse:
    """Sign in an existing user with the code delivered to their phone."""
    pair = users.login_by_phone(db, payload.phone, payload.authorization_code)
    return TokenPairResponse.model_validate(pair)
