# privchat/models/message.py

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, LargeBinary, String, Text

from privchat.core.codec import CompressedText, RawText, StoredText
from privchat.models.base import Base


def utcnow() -> datetime:
    """Naive UTC, the form the DateTime columns hold"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)

    # Stored text is RawText | CompressedText: short text lives in `text`,
    # long text as an envelope in `text_blob`. Never both.
    text = Column(Text, nullable=True)
    text_blob = Column(LargeBinary, nullable=True)

    image_data = Column(LargeBinary, nullable=True)
    image_mime_type = Column(String(255), nullable=True)

    file_data = Column(LargeBinary, nullable=True)
    file_name = Column(String(255), nullable=True)
    file_mime_type = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)

    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)

    @property
    def stored_text(self) -> StoredText | None:
        if self.text_blob is not None:
            return CompressedText(bytes(self.text_blob))
        if self.text is not None:
            return RawText(self.text)
        return None

    @stored_text.setter
    def stored_text(self, value: StoredText | None) -> None:
        if value is None:
            self.text, self.text_blob = None, None
        elif isinstance(value, RawText):
            self.text, self.text_blob = value.value, None
        elif isinstance(value, CompressedText):
            self.text, self.text_blob = None, value.blob
        else:
            raise TypeError(f"Unknown stored text type: {type(value).__name__}")
