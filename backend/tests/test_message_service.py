# tests/test_message_service.py

import base64
import warnings
from datetime import date, datetime, timedelta, timezone

import pytest

from privchat.core import codec
from privchat.core.codec import CompressedText, RawText
from privchat.core.errors import CodecCorruption
from privchat.core.message import (
    Attachment,
    create_message,
    delete_message,
    edit_message,
    list_messages,
    message_date_range,
    read_file_attachment,
    serialize_message,
)
from privchat.models.message import Message

PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


def test_short_text_stored_raw(db):
    message = create_message(db, text="hello")

    assert message.text == "hello"
    assert message.text_blob is None
    assert message.stored_text == RawText("hello")
    assert serialize_message(message)["text"] == "hello"


def test_long_text_stored_compressed(db):
    long_text = "a" * 101
    message = create_message(db, text=long_text)

    assert message.text is None
    assert isinstance(message.stored_text, CompressedText)
    assert serialize_message(message)["text"] == long_text


def test_threshold_from_settings_is_honoured(db):
    message = create_message(db, text="twelve chars", threshold=5)
    assert message.text_blob is not None


def test_attachments_are_encoded_with_metadata(db):
    message = create_message(
        db,
        text="see attached",
        image=Attachment(PNG, "image/png"),
        file=Attachment(b"%PDF-1.7 body", "application/pdf", "doc.pdf"),
    )

    assert codec.decode_binary(message.image_data) == PNG
    assert message.file_size == len(b"%PDF-1.7 body")
    assert read_file_attachment(message) == b"%PDF-1.7 body"

    view = serialize_message(message)
    assert base64.b64decode(view["imageData"]) == PNG
    assert view["imageMimeType"] == "image/png"
    assert view["fileName"] == "doc.pdf"
    assert view["fileMimeType"] == "application/pdf"
    assert view["fileSize"] == 13
    assert "fileData" not in view


def test_empty_message_is_rejected(db):
    with pytest.raises(ValueError):
        create_message(db, text="   ")


def test_attachment_only_message(db):
    message = create_message(db, image=Attachment(PNG, "image/png"))
    assert message.stored_text is None
    assert "text" not in serialize_message(message)


def test_legacy_string_row_decodes(db):
    # rows written before compression existed hold long text as a plain string
    legacy_text = "legacy " * 40
    db.add(Message(text=legacy_text, timestamp=datetime(2024, 5, 1)))
    db.commit()

    [message] = list_messages(db)
    assert serialize_message(message)["text"] == legacy_text


def test_edit_reencodes_from_scratch(db):
    message = create_message(db, text="b" * 300, image=Attachment(PNG, "image/png"))
    image_before = message.image_data

    edited = edit_message(db, message.id, "short now")

    assert edited.stored_text == RawText("short now")
    assert edited.text_blob is None
    assert edited.edited is True
    assert edited.edited_at is not None
    assert edited.image_data == image_before

    edited = edit_message(db, message.id, "c" * 200)
    assert edited.text is None
    assert serialize_message(edited)["text"] == "c" * 200


def test_timestamps_are_naive_utc(db):
    before = datetime.now(timezone.utc).replace(tzinfo=None)

    with warnings.catch_warnings():
        warnings.filterwarnings("error", message=".*utcnow", category=DeprecationWarning)
        message = create_message(db, text="clock")
        edited = edit_message(db, message.id, "clock again")

    assert message.timestamp.tzinfo is None
    assert edited.edited_at.tzinfo is None
    assert before - timedelta(seconds=1) <= edited.edited_at <= before + timedelta(minutes=1)


def test_blank_edit_leaves_message_untouched(db):
    message = create_message(db, text="keep me")
    edited = edit_message(db, message.id, "  ")
    assert edited.text == "keep me"
    assert edited.edited is False


def test_edit_missing_message(db):
    assert edit_message(db, 999, "text") is None


def test_delete(db):
    message = create_message(db, text="bye")
    assert delete_message(db, message.id)
    assert not delete_message(db, message.id)
    assert list_messages(db) == []


def test_corrupted_field_is_contained(db):
    for i in range(5):
        create_message(db, text=f"message {i}", image=Attachment(PNG, "image/png"))

    victim = list_messages(db)[2]
    victim.image_data = b"\x00corrupted"
    db.commit()

    views = [serialize_message(m) for m in list_messages(db)]

    assert len(views) == 5
    missing = [v for v in views if "imageData" not in v]
    assert len(missing) == 1
    assert missing[0]["id"] == victim.id
    assert missing[0]["text"] == "message 2"
    for view in views:
        if view["id"] != victim.id:
            assert base64.b64decode(view["imageData"]) == PNG


def test_corrupted_text_is_omitted(db):
    message = create_message(db, text="d" * 150)
    message.text_blob = b"broken"
    db.commit()

    view = serialize_message(message)
    assert "text" not in view
    assert view["id"] == message.id


def test_corrupted_file_raises_on_download(db):
    message = create_message(db, file=Attachment(b"data", "text/plain", "a.txt"))
    message.file_data = codec.wrap(b"not gzip")
    db.commit()

    with pytest.raises(CodecCorruption) as excinfo:
        read_file_attachment(message)
    assert excinfo.value.field == "file"
    # listing still shows the metadata
    assert serialize_message(message)["fileName"] == "a.txt"


def test_list_filters_and_paging(db):
    db.add_all(
        [
            Message(text="Morning coffee", timestamp=datetime(2026, 3, 1, 8, 0)),
            Message(text="lunch plans", timestamp=datetime(2026, 3, 1, 12, 0)),
            Message(text="more COFFEE", timestamp=datetime(2026, 3, 2, 9, 0)),
            Message(text="100% done", timestamp=datetime(2026, 3, 3, 9, 0)),
        ]
    )
    db.commit()

    assert [m.text for m in list_messages(db, search="coffee")] == ["Morning coffee", "more COFFEE"]
    assert [m.text for m in list_messages(db, day=date(2026, 3, 1))] == ["Morning coffee", "lunch plans"]
    assert [m.text for m in list_messages(db, search="%")] == ["100% done"]
    assert [m.text for m in list_messages(db, limit=2, skip=1)] == ["lunch plans", "more COFFEE"]


def test_date_range(db):
    db.add_all(
        [
            Message(text="first", timestamp=datetime(2025, 1, 1)),
            Message(text="last", timestamp=datetime(2026, 6, 1)),
        ]
    )
    db.commit()

    dates = message_date_range(db)
    assert dates["oldest"] == datetime(2025, 1, 1)
    assert dates["newest"] == datetime(2026, 6, 1)


def test_date_range_empty(db):
    dates = message_date_range(db)
    assert dates["oldest"] == dates["newest"]
