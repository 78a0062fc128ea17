# privchat/core/auth.py

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from privchat.core.config import Settings
from privchat.core.crypto import decrypt_credential, fingerprint
from privchat.core.errors import CredentialMismatch, DecryptionFailure
from privchat.core.keys import KeyPair
from privchat.core.security import verify_secret
from privchat.core.tokens import issue_token

logger = logging.getLogger(__name__)

# Failure kinds returned to the client
DECRYPTION_FAILED = "decryption-failed"
INVALID_CREDENTIAL = "invalid-credential"
EXPIRED_CREDENTIAL_POLICY = "expired-credential-policy"

FAILURE_MESSAGES = {
    DECRYPTION_FAILED: "Could not decrypt password. Refresh the page and try again.",
    INVALID_CREDENTIAL: "Invalid password",
    EXPIRED_CREDENTIAL_POLICY: "Password has expired. Please update CHAT_PASSWORD and PASSWORD_SET_DATE.",
}


@dataclass(frozen=True)
class AuthResult:
    ok: bool
    token: str | None = None
    ttl: int | None = None
    kind: str | None = None
    detail: str | None = None
    password_expires_in_days: int | None = None

    @property
    def message(self) -> str:
        return FAILURE_MESSAGES.get(self.kind, "Authentication failed")


def public_key_info(key_pair: KeyPair) -> dict:
    return {"pem": key_pair.public_pem, "fingerprint": fingerprint(key_pair.public_pem)}


def password_expiry_date(settings: Settings) -> datetime | None:
    if settings.password_set_date is None:
        return None
    return settings.password_set_date + timedelta(days=settings.password_expiry_days)


def is_password_expired(settings: Settings, now: datetime | None = None) -> bool:
    expiry = password_expiry_date(settings)
    if expiry is None:
        return False
    return (now or datetime.now()) > expiry


def password_expires_in_days(settings: Settings, now: datetime | None = None) -> int | None:
    expiry = password_expiry_date(settings)
    if expiry is None:
        return None
    remaining = expiry - (now or datetime.now())
    return math.ceil(remaining.total_seconds() / 86400)


def _check_credential(plaintext: str, settings: Settings) -> None:
    if not verify_secret(plaintext, settings.chat_password):
        raise CredentialMismatch("Credential does not match")


def authenticate(
    settings: Settings,
    key_pair: KeyPair,
    encrypted_credential: str | None = None,
    credential: str | None = None,
    now: datetime | None = None,
) -> AuthResult:
    """
    Full login: expiry policy → decrypt → verify → token.

    Runs bcrypt, so call it from a worker thread. Expected failures come
    back as AuthResult.kind; only a malformed stored secret raises.
    """
    if is_password_expired(settings, now):
        logger.warning("Login refused: configured password has expired")
        return AuthResult(ok=False, kind=EXPIRED_CREDENTIAL_POLICY)

    if encrypted_credential:
        try:
            plaintext = decrypt_credential(encrypted_credential, key_pair.private_key)
        except DecryptionFailure as e:
            logger.warning("Password decryption failed (%s)", e.reason)
            return AuthResult(ok=False, kind=DECRYPTION_FAILED, detail=e.reason)
    elif credential:
        logger.warning("Login with unencrypted password; client should fetch the public key")
        plaintext = credential
    else:
        return AuthResult(ok=False, kind=INVALID_CREDENTIAL)

    try:
        _check_credential(plaintext, settings)
    except CredentialMismatch:
        logger.info("Login failed: invalid password")
        return AuthResult(ok=False, kind=INVALID_CREDENTIAL)

    ttl = settings.token_ttl_seconds
    # policy dates are naive local time; the token needs an absolute instant
    issued_at = now.astimezone(timezone.utc) if now is not None else None
    return AuthResult(
        ok=True,
        token=issue_token(settings.token_secret, ttl, now=issued_at),
        ttl=ttl,
        password_expires_in_days=password_expires_in_days(settings, now),
    )
