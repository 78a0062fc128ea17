# privchat/core/message.py

import base64
import logging
from dataclasses import dataclass
from datetime import date as date_type, datetime, time

from sqlalchemy.orm import Session

from privchat.core import codec
from privchat.core.errors import CodecCorruption
from privchat.models.message import Message, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class Attachment:
    data: bytes
    mime_type: str | None = None
    file_name: str | None = None


def create_message(
    db: Session,
    text: str | None = None,
    image: Attachment | None = None,
    file: Attachment | None = None,
    threshold: int = codec.COMPRESSION_THRESHOLD,
) -> Message:
    """Encode every present field and persist a new message"""
    stored_text = codec.encode_text(text, threshold)
    if stored_text is None and image is None and file is None:
        raise ValueError("Message must have text, an image or a file")

    message = Message()
    message.stored_text = stored_text

    if image is not None:
        message.image_data = codec.encode_binary(image.data)
        message.image_mime_type = image.mime_type

    if file is not None:
        message.file_data = codec.encode_binary(file.data)
        message.file_name = file.file_name
        message.file_mime_type = file.mime_type
        message.file_size = len(file.data)

    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def get_message(db: Session, message_id: int) -> Message | None:
    return db.get(Message, message_id)


def edit_message(
    db: Session,
    message_id: int,
    text: str | None,
    threshold: int = codec.COMPRESSION_THRESHOLD,
) -> Message | None:
    """
    Replace the text of a message. The new text goes through the encoder
    from scratch; attachments are never touched. Blank text leaves the
    message as it was.
    """
    message = get_message(db, message_id)
    if message is None:
        return None

    stored_text = codec.encode_text(text, threshold)
    if stored_text is not None:
        message.stored_text = stored_text
        message.edited = True
        message.edited_at = utcnow()
        db.commit()
        db.refresh(message)

    return message


def delete_message(db: Session, message_id: int) -> bool:
    message = get_message(db, message_id)
    if message is None:
        return False
    db.delete(message)
    db.commit()
    return True


def list_messages(
    db: Session,
    search: str | None = None,
    day: date_type | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    skip: int = 0,
) -> list[Message]:
    """
    Oldest first. search is a case-insensitive substring match on short
    (uncompressed) text; day keeps messages from that calendar day.
    """
    query = db.query(Message)

    if search:
        query = query.filter(Message.text.icontains(search, autoescape=True))

    if day is not None:
        start = datetime.combine(day, time.min)
        end = datetime.combine(day, time.max)
        query = query.filter(Message.timestamp >= start, Message.timestamp <= end)

    return (
        query.order_by(Message.timestamp.asc(), Message.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def message_date_range(db: Session) -> dict:
    oldest = db.query(Message).order_by(Message.timestamp.asc()).first()
    newest = db.query(Message).order_by(Message.timestamp.desc()).first()
    now = utcnow()
    return {
        "oldest": oldest.timestamp if oldest else now,
        "newest": newest.timestamp if newest else now,
    }


def read_file_attachment(message: Message) -> bytes:
    """Inflate the file of a message. Raises CodecCorruption."""
    if message.file_data is None:
        raise LookupError("Message has no file")
    try:
        return codec.decode_binary(message.file_data)
    except CodecCorruption as e:
        e.field = "file"
        raise


def serialize_message(message: Message) -> dict:
    """
    JSON-ready view of a stored message.

    A field that fails to decode is logged and left out; the rest of the
    message is still returned. Files are listed by metadata only.
    """
    result = {
        "id": message.id,
        "timestamp": message.timestamp.isoformat() if message.timestamp else None,
        "edited": bool(message.edited),
        "editedAt": message.edited_at.isoformat() if message.edited_at else None,
    }

    stored_text = message.stored_text
    if stored_text is not None:
        decoded = codec.decode_field(stored_text, field=f"text of message {message.id}")
        if decoded.ok:
            result["text"] = decoded.value

    if message.image_data is not None:
        decoded = codec.decode_field(message.image_data, field=f"image of message {message.id}")
        if decoded.ok:
            result["imageData"] = base64.b64encode(decoded.value).decode("ascii")
            result["imageMimeType"] = message.image_mime_type

    if message.file_data is not None:
        result["fileName"] = message.file_name
        result["fileMimeType"] = message.file_mime_type
        result["fileSize"] = message.file_size

    return result
