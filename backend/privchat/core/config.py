# privchat/core/config.py

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# =========================
# DEFAULTS
# =========================

DEFAULT_TOKEN_SECRET = "change-me-in-production"
DEFAULT_TOKEN_TTL = "24h"
DEFAULT_HASH_ROUNDS = 10
DEFAULT_COMPRESSION_THRESHOLD = 100
DEFAULT_PASSWORD_EXPIRY_DAYS = 90
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_CLIENT_URL = "http://localhost:5173"

_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")


def parse_duration(value: str) -> int:
    """Parse "90", "30s", "15m", "24h" or "7d" into seconds"""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit or "s"]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Read-only configuration, loaded once at startup"""

    chat_password: str | None = None
    token_secret: str = DEFAULT_TOKEN_SECRET
    token_ttl_seconds: int = 24 * 3600
    hash_rounds: int = DEFAULT_HASH_ROUNDS
    compression_threshold: int = DEFAULT_COMPRESSION_THRESHOLD
    password_expiry_days: int = DEFAULT_PASSWORD_EXPIRY_DAYS
    password_set_date: datetime | None = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_origins: tuple[str, ...] = field(default=(DEFAULT_CLIENT_URL,))
    rate_limit_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        set_date = os.getenv("PASSWORD_SET_DATE")
        password_set_date = datetime.fromisoformat(set_date) if set_date else None
        if password_set_date is not None and password_set_date.tzinfo is not None:
            # expiry checks compare against naive local time
            password_set_date = password_set_date.astimezone().replace(tzinfo=None)

        origins = os.getenv("CLIENT_URL", DEFAULT_CLIENT_URL)

        return cls(
            chat_password=os.getenv("CHAT_PASSWORD") or None,
            token_secret=os.getenv("JWT_SECRET") or DEFAULT_TOKEN_SECRET,
            token_ttl_seconds=parse_duration(os.getenv("JWT_EXPIRY", DEFAULT_TOKEN_TTL)),
            hash_rounds=_env_int("BCRYPT_SALT_ROUNDS", DEFAULT_HASH_ROUNDS),
            compression_threshold=_env_int("COMPRESSION_THRESHOLD", DEFAULT_COMPRESSION_THRESHOLD),
            password_expiry_days=_env_int("PASSWORD_EXPIRY_DAYS", DEFAULT_PASSWORD_EXPIRY_DAYS),
            password_set_date=password_set_date,
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
        )

    def check(self) -> None:
        """Fail fast on settings the server cannot run without"""
        if not self.chat_password:
            raise RuntimeError("CHAT_PASSWORD environment variable not set")
        if self.token_secret == DEFAULT_TOKEN_SECRET:
            logger.warning("JWT_SECRET not set, using the built-in default secret")
        if self.password_set_date is None:
            logger.warning("PASSWORD_SET_DATE not set, password expiration check disabled")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """FastAPI dependency; override it in tests"""
    return Settings.from_env()
