# privchat/api/auth.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from privchat.api.deps import current_key_pair, require_token
from privchat.core.auth import (
    DECRYPTION_FAILED,
    EXPIRED_CREDENTIAL_POLICY,
    authenticate,
    public_key_info,
)
from privchat.core.config import Settings, get_settings
from privchat.core.errors import MalformedSecret
from privchat.core.keys import KeyPair
from privchat.core.rate_limit import AUTH_HOURLY_LIMIT, AUTH_LIMIT, PUBLIC_KEY_LIMIT, limiter
from privchat.core.tokens import issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

FAILURE_STATUS = {
    DECRYPTION_FAILED: 400,
    EXPIRED_CREDENTIAL_POLICY: 403,
}


class AuthSchema(BaseModel):
    encryptedPassword: str | None = None
    password: str | None = None


@router.get("/public-key")
@limiter.limit(PUBLIC_KEY_LIMIT)
def get_public_key(request: Request, key_pair: KeyPair = Depends(current_key_pair)):
    info = public_key_info(key_pair)
    return {
        "success": True,
        "publicKey": info["pem"],
        "keyFingerprint": info["fingerprint"],
    }


# Sync on purpose: bcrypt runs in FastAPI's threadpool, off the event loop
@router.post("")
@limiter.limit(f"{AUTH_LIMIT};{AUTH_HOURLY_LIMIT}")
def login(
    request: Request,
    payload: AuthSchema,
    settings: Settings = Depends(get_settings),
    key_pair: KeyPair = Depends(current_key_pair),
):
    try:
        result = authenticate(
            settings,
            key_pair,
            encrypted_credential=payload.encryptedPassword,
            credential=payload.password,
        )
    except MalformedSecret as e:
        logger.error("Cannot verify login, CHAT_PASSWORD is misconfigured: %s", e)
        raise HTTPException(status_code=500, detail="Authentication is misconfigured")

    if not result.ok:
        body = {"success": False, "message": result.message, "kind": result.kind}
        if result.kind == EXPIRED_CREDENTIAL_POLICY:
            body["expired"] = True
        return JSONResponse(status_code=FAILURE_STATUS.get(result.kind, 401), content=body)

    return {
        "success": True,
        "token": result.token,
        "expiresIn": result.ttl,
        "passwordExpiresInDays": result.password_expires_in_days,
    }


@router.post("/refresh", dependencies=[Depends(require_token)])
def refresh(settings: Settings = Depends(get_settings)):
    token = issue_token(settings.token_secret, settings.token_ttl_seconds)
    return {"success": True, "token": token, "expiresIn": settings.token_ttl_seconds}


@router.get("/verify", dependencies=[Depends(require_token)])
def verify():
    return {"success": True, "valid": True}
