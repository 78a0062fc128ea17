# privchat/core/crypto.py

import base64
import binascii
import hashlib

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from privchat.core.errors import CredentialTooLong, DecryptionFailure

FINGERPRINT_LENGTH = 16

_OAEP_HASH = hashes.SHA256


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=_OAEP_HASH()),
        algorithm=_OAEP_HASH(),
        label=None,
    )


def _load_public_key(public_key) -> rsa.RSAPublicKey:
    if isinstance(public_key, rsa.RSAPublicKey):
        return public_key
    if isinstance(public_key, str):
        public_key = public_key.encode("ascii")
    key = serialization.load_pem_public_key(public_key)
    if not isinstance(key, rsa.RSAPublicKey):
        raise TypeError("public_key must be an RSA public key")
    return key


def _load_private_key(private_key) -> rsa.RSAPrivateKey:
    if isinstance(private_key, rsa.RSAPrivateKey):
        return private_key
    if isinstance(private_key, str):
        private_key = private_key.encode("ascii")
    key = serialization.load_pem_private_key(private_key, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise TypeError("private_key must be an RSA private key")
    return key


# ---------- SIZE LIMITS ----------

def max_plaintext_size(public_key) -> int:
    """
    Largest plaintext (bytes) one OAEP block can carry.
    190 for RSA-2048 with SHA-256.
    """
    key = _load_public_key(public_key)
    return key.key_size // 8 - 2 * _OAEP_HASH.digest_size - 2


# ---------- ENCRYPTION ----------

def encrypt_credential(plaintext: str, public_key) -> str:
    """
    RSA-OAEP(SHA-256) → base64 string

    This is what the browser does before POSTing /api/auth; kept here for
    tests and scripted clients.
    """
    key = _load_public_key(public_key)
    data = plaintext.encode("utf-8")

    limit = max_plaintext_size(key)
    if len(data) > limit:
        raise CredentialTooLong(
            f"Credential is {len(data)} bytes, key accepts at most {limit}"
        )

    ciphertext = key.encrypt(data, _oaep())
    return base64.b64encode(ciphertext).decode("ascii")


# ---------- DECRYPTION ----------

def decrypt_credential(ciphertext_b64: str, private_key) -> str:
    """
    Decrypt a base64 RSA-OAEP credential.

    Raises DecryptionFailure with reason "malformed" for input that could
    never have come from encrypt_credential, and "key-mismatch" when the
    block is well formed but does not open under this key.
    """
    key = _load_private_key(private_key)

    if not isinstance(ciphertext_b64, str) or not ciphertext_b64.strip():
        raise DecryptionFailure(DecryptionFailure.MALFORMED, "Empty encrypted credential")

    try:
        ciphertext = base64.b64decode(ciphertext_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionFailure(
            DecryptionFailure.MALFORMED, "Encrypted credential is not valid base64"
        ) from e

    if len(ciphertext) != key.key_size // 8:
        raise DecryptionFailure(
            DecryptionFailure.MALFORMED,
            f"Ciphertext must be {key.key_size // 8} bytes, got {len(ciphertext)}",
        )

    try:
        data = key.decrypt(ciphertext, _oaep())
    except ValueError as e:
        raise DecryptionFailure(
            DecryptionFailure.KEY_MISMATCH,
            "Credential was not encrypted with the current public key",
        ) from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionFailure(
            DecryptionFailure.MALFORMED, "Decrypted credential is not valid UTF-8"
        ) from e


# ---------- FINGERPRINT ----------

def fingerprint(public_key) -> str:
    """First 16 hex chars of SHA-256 over the PEM text. Log correlation only."""
    if isinstance(public_key, rsa.RSAPublicKey):
        public_key = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    if isinstance(public_key, str):
        public_key = public_key.encode("utf-8")
    return hashlib.sha256(public_key).hexdigest()[:FINGERPRINT_LENGTH]
