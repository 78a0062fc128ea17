# privchat/core/keys.py

import logging
from dataclasses import dataclass
from functools import lru_cache

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from privchat.core.crypto import fingerprint
from privchat.core.errors import KeyGenerationFailure

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


@dataclass(frozen=True)
class KeyPair:
    """
    Process-lifetime RSA key pair.

    Never persisted: a restart produces a new pair and every public key a
    client still holds stops working.
    """

    public_pem: str
    private_pem: str
    public_key: rsa.RSAPublicKey
    private_key: rsa.RSAPrivateKey

    def __repr__(self) -> str:
        return f"KeyPair(fingerprint={fingerprint(self.public_pem)})"


def generate_key_pair() -> KeyPair:
    """
    RSA-2048 → SPKI PEM public half + PKCS8 PEM private half
    """
    try:
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=RSA_KEY_SIZE,
        )
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")
        public_key = private_key.public_key()
        public_pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")
    except Exception as e:
        raise KeyGenerationFailure(f"RSA key generation failed: {e}") from e

    return KeyPair(
        public_pem=public_pem,
        private_pem=private_pem,
        public_key=public_key,
        private_key=private_key,
    )


@lru_cache(maxsize=1)
def get_key_pair() -> KeyPair:
    """
    The one key pair of this process. First call generates it; the app
    lifespan makes that call before any request is accepted.
    """
    key_pair = generate_key_pair()
    logger.info("RSA key pair generated for password encryption")
    logger.info("Public key fingerprint: %s", fingerprint(key_pair.public_pem))
    return key_pair
