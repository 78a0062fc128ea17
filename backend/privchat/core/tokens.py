# privchat/core/tokens.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from privchat.core.errors import TokenExpired, TokenInvalid

ALGORITHM = "HS256"

EXPIRED = "expired"
INVALID = "invalid"


@dataclass(frozen=True)
class TokenCheck:
    valid: bool
    reason: str | None = None


def issue_token(secret: str, ttl_seconds: int, now: datetime | None = None) -> str:
    """Signed session token: authenticated flag, iat, exp"""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "authenticated": True,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> dict:
    """
    Return the claims of a valid token.

    Raises TokenExpired when only the expiry fails, TokenInvalid for
    everything else (bad signature, garbage, missing flag).
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenInvalid(f"Invalid token: {e}") from e

    if claims.get("authenticated") is not True:
        raise TokenInvalid("Token is missing the authenticated flag")
    return claims


def verify_token(token: str | None, secret: str) -> TokenCheck:
    if not token:
        return TokenCheck(valid=False, reason=INVALID)
    try:
        decode_token(token, secret)
    except TokenExpired:
        return TokenCheck(valid=False, reason=EXPIRED)
    except TokenInvalid:
        return TokenCheck(valid=False, reason=INVALID)
    return TokenCheck(valid=True)
