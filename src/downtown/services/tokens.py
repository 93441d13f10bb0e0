"""Signed session tokens.

Tokens are RS256 JWTs carrying the issuer, issue time, expiry, a random token
id and the user id as subject. Signing needs the PEM private key; verifying
needs only the public key.
"""

from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from downtown.core.errors import InvalidToken, TokenError, TokenExpired, TokenNotExists
from downtown.db.time import utcnow

ALGORITHM = "RS256"


@dataclass(frozen=True)
class Claims:
    """Registered claims embedded in every token."""

    iss: str
    iat: int
    exp: int
    sub: str
    # Random id; keeps two tokens minted in the same second distinct.
    jti: str

    @property
    def expires_in(self) -> int:
        return self.exp - self.iat

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=UTC)


@dataclass(frozen=True)
class Token:
    claims: Claims
    encoded_token: str
    user_id: int


def issue(
    private_key: str,
    ttl: timedelta,
    user_id: int,
    *,
    issuer: str,
    now: datetime | None = None,
) -> Token:
    """Sign a token for ``user_id`` valid for ``ttl`` from ``now``.

    Args:
        private_key: PEM-encoded RSA private key.
        ttl: Lifetime of the token; must be positive.
        user_id: Subject of the token.
        issuer: Value of the ``iss`` claim.
        now: Issue time, defaults to the current UTC time.

    Returns:
        The encoded token together with its parsed claims.
    """
    if ttl <= timedelta(0):
        raise ValueError("token ttl must be positive")

    issued_at = now or utcnow()
    claims = Claims(
        iss=issuer,
        iat=int(issued_at.timestamp()),
        exp=int((issued_at + ttl).timestamp()),
        sub=str(user_id),
        jti=secrets.token_hex(16),
    )
    encoded = jwt.encode(asdict(claims), private_key, algorithm=ALGORITHM)
    return Token(claims=claims, encoded_token=encoded, user_id=user_id)


def decode(
    encoded: str | None,
    public_key: str,
    *,
    issuer: str | None = None,
    now: datetime | None = None,
) -> Token:
    """Verify ``encoded`` and return the token it carries.

    Raises:
        TokenNotExists: No token was supplied.
        InvalidToken: The token is empty or not a structurally valid JWT.
        TokenExpired: The signature is valid but ``now`` is at or past expiry.
        TokenError: Any other failure (signature, algorithm, issuer, claims).
    """
    if encoded is None:
        raise TokenNotExists()
    if not encoded:
        raise InvalidToken()

    try:
        jwt.get_unverified_header(encoded)
    except JWTError as err:
        raise InvalidToken() from err

    try:
        payload = jwt.decode(
            encoded,
            public_key,
            algorithms=[ALGORITHM],
            issuer=issuer,
            # Expiry is checked below so that the boundary is inclusive.
            options={"verify_exp": False, "verify_aud": False},
        )
    except JWTError as err:
        raise TokenError() from err

    try:
        claims = Claims(
            iss=str(payload["iss"]),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
            sub=str(payload["sub"]),
            jti=str(payload.get("jti", "")),
        )
        user_id = int(claims.sub)
    except (KeyError, TypeError, ValueError) as err:
        raise TokenError("malformed token claims") from err

    current = int((now or utcnow()).timestamp())
    if current >= claims.exp:
        raise TokenExpired()

    return Token(claims=claims, encoded_token=encoded, user_id=user_id)
