# privchat/core/security.py

import logging

import bcrypt

from privchat.core.errors import MalformedSecret

logger = logging.getLogger(__name__)

# Stored secrets starting with one of these are bcrypt hashes; anything
# else is a legacy plaintext password.
HASHED_SECRET_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only looks at the first 72 bytes of the password
BCRYPT_MAX_BYTES = 72

DEFAULT_ROUNDS = 10


def _password_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


def is_hashed_secret(stored: str) -> bool:
    """Classify a stored secret by its structural prefix"""
    return stored.startswith(HASHED_SECRET_PREFIXES)


def hash_secret(plaintext: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Salted bcrypt hash of a credential. Two calls on the same input give
    two different strings; both verify.
    """
    if not plaintext:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(plaintext), salt).decode("ascii")


def verify_secret(plaintext: str, stored: str) -> bool:
    """
    Check a plaintext credential against the configured secret.

    bcrypt is deliberately slow (tens of ms at 10 rounds). Only call this
    from a worker thread, never from the event loop or a batch.

    Returns False on mismatch. Raises MalformedSecret when the stored
    value is empty or carries the hash prefix without being a valid hash.
    """
    if not stored:
        raise MalformedSecret("Stored secret is empty")

    if is_hashed_secret(stored):
        try:
            return bcrypt.checkpw(_password_bytes(plaintext), stored.encode("ascii"))
        except (ValueError, UnicodeEncodeError) as e:
            raise MalformedSecret(f"Stored secret is not a valid bcrypt hash: {e}") from e

    logger.warning(
        "CHAT_PASSWORD is stored in plaintext. Generate a bcrypt hash with "
        "privchat-hash and store that instead."
    )
    return plaintext == stored
