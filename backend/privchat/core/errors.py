# privchat/core/errors.py


class PrivchatError(Exception):
    """Base class for every error raised by the privchat core"""


class KeyGenerationFailure(PrivchatError):
    """The process could not produce its RSA key pair. Fatal at startup."""


class DecryptionFailure(PrivchatError):
    """
    An encrypted credential could not be decrypted.

    reason is "key-mismatch" when the ciphertext is well formed but was
    produced under another key pair (client should refetch the public key),
    or "malformed" when the input itself is broken (reject the request).
    """

    KEY_MISMATCH = "key-mismatch"
    MALFORMED = "malformed"

    def __init__(self, reason: str, message: str = ""):
        self.reason = reason
        super().__init__(message or f"Credential decryption failed ({reason})")


class CredentialTooLong(PrivchatError, ValueError):
    """Plaintext does not fit in one OAEP block for the given key"""


class CredentialMismatch(PrivchatError):
    """Credential decrypted fine but does not match the stored secret"""


class MalformedSecret(PrivchatError):
    """The configured secret looks hashed but cannot be parsed"""


class CodecCorruption(PrivchatError):
    """A stored payload could not be unwrapped or inflated"""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class TokenExpired(PrivchatError):
    """Signature checks out but the token is past its expiry"""


class TokenInvalid(PrivchatError):
    """Token signature, structure or claims are wrong"""
