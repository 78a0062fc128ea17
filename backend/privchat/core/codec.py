# privchat/core/codec.py
"""
Storage codec for message payloads.

Write path: gzip the bytes, then wrap them in a CBOR byte string so the
stored blob carries its own length. Text at or under the compression
threshold skips both steps and is stored as a plain string.

Read path reverses it. Stored text is a tagged union, RawText or
CompressedText, so every read site matches on the type instead of
sniffing str vs bytes.
"""

import gzip
import logging
import zlib
from dataclasses import dataclass
from typing import Union

import cbor2

from privchat.core.errors import CodecCorruption

logger = logging.getLogger(__name__)

# Text strictly longer than this is compressed. Length is counted in UTF-16
# code units, as browsers count it, so a character outside the BMP counts 2.
COMPRESSION_THRESHOLD = 100

GZIP_LEVEL = 9


@dataclass(frozen=True)
class RawText:
    value: str


@dataclass(frozen=True)
class CompressedText:
    blob: bytes


StoredText = Union[RawText, CompressedText]


@dataclass(frozen=True)
class FieldResult:
    """Outcome of decoding one stored field. error is set when value is None."""

    value: Union[str, bytes, None] = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------- PIPELINE STAGES ----------

def compress(data: bytes) -> bytes:
    # mtime=0 keeps output a pure function of the input
    return gzip.compress(data, compresslevel=GZIP_LEVEL, mtime=0)


def decompress(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CodecCorruption(f"Inflate failed: {e}") from e


def wrap(data: bytes) -> bytes:
    """Envelope: a single CBOR byte string"""
    return cbor2.dumps(bytes(data))


def unwrap(blob: bytes) -> bytes:
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise CodecCorruption(f"Envelope must be bytes, got {type(blob).__name__}")
    try:
        payload = cbor2.loads(bytes(blob))
    except (cbor2.CBORDecodeError, ValueError, EOFError) as e:
        raise CodecCorruption(f"Envelope decode failed: {e}") from e
    if not isinstance(payload, bytes):
        raise CodecCorruption(
            f"Envelope must hold a byte string, got {type(payload).__name__}"
        )
    return payload


# ---------- TEXT ----------

def text_length(text: str) -> int:
    """Length in UTF-16 code units"""
    return len(text.encode("utf-16-le")) // 2


def should_compress(text: str, threshold: int = COMPRESSION_THRESHOLD) -> bool:
    return text_length(text) > threshold


def encode_text(text: str | None, threshold: int = COMPRESSION_THRESHOLD) -> StoredText | None:
    """
    Empty or whitespace-only text is absent and returns None.
    The original string is kept untouched, surrounding whitespace included.
    """
    if text is None or not text.strip():
        return None
    if not should_compress(text, threshold):
        return RawText(text)
    return CompressedText(wrap(compress(text.encode("utf-8"))))


def decode_text(stored: StoredText) -> str:
    if isinstance(stored, RawText):
        return stored.value
    if isinstance(stored, CompressedText):
        raw = decompress(unwrap(stored.blob))
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodecCorruption(f"Inflated text is not UTF-8: {e}") from e
    raise TypeError(f"Unknown stored text type: {type(stored).__name__}")


# ---------- BINARY ----------

def encode_binary(data: bytes) -> bytes:
    """Images and files are always compressed, whatever their size"""
    return wrap(compress(bytes(data)))


def decode_binary(blob: bytes) -> bytes:
    return decompress(unwrap(blob))


# ---------- STORAGE BOUNDARY ----------

def encode_field(raw: Union[str, bytes, None], threshold: int = COMPRESSION_THRESHOLD):
    """str → StoredText | None, bytes → envelope bytes, None → None"""
    if raw is None:
        return None
    if isinstance(raw, str):
        return encode_text(raw, threshold)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return encode_binary(bytes(raw))
    raise TypeError(f"Cannot encode {type(raw).__name__}")


def decode_field(stored, field: str = "field") -> FieldResult:
    """
    Decode one stored field without ever raising for bad data.

    Corruption is logged and reported through FieldResult.error so the
    caller can drop the field and keep serving the rest of the message.
    """
    if stored is None:
        return FieldResult()
    try:
        if isinstance(stored, (RawText, CompressedText)):
            return FieldResult(value=decode_text(stored))
        return FieldResult(value=decode_binary(stored))
    except CodecCorruption as e:
        e.field = field
        logger.error("Error decoding %s: %s", field, e)
        return FieldResult(error=str(e))
