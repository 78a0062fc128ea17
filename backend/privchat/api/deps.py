# privchat/api/deps.py

from fastapi import Depends, HTTPException, Request

from privchat.core.config import Settings, get_settings
from privchat.core.keys import KeyPair, get_key_pair
from privchat.core.tokens import EXPIRED, verify_token


def current_key_pair() -> KeyPair:
    return get_key_pair()


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def require_token(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """
    401 when the token is missing or expired (client logs in again),
    403 when it is invalid (treated as tampering).
    """
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    check = verify_token(token, settings.token_secret)
    if check.valid:
        return
    if check.reason == EXPIRED:
        raise HTTPException(status_code=401, detail="Token expired. Please login again.")
    raise HTTPException(status_code=403, detail="Invalid token.")
