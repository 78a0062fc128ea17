# privchat/api/messages.py

import logging
import traceback
from datetime import date as date_type

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from privchat.api.deps import require_token
from privchat.core.config import Settings, get_settings
from privchat.core.errors import CodecCorruption
from privchat.core.message import (
    DEFAULT_PAGE_SIZE,
    Attachment,
    create_message,
    delete_message,
    edit_message,
    get_message,
    list_messages,
    message_date_range,
    read_file_attachment,
    serialize_message,
)
from privchat.core.rate_limit import UPLOAD_LIMIT, limiter
from privchat.infra.database import get_db
from privchat.services.broadcast import (
    MESSAGE_CREATED,
    MESSAGE_DELETED,
    MESSAGE_EDITED,
    Broadcaster,
    get_broadcaster,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", dependencies=[Depends(require_token)])


class EditMessageSchema(BaseModel):
    text: str | None = None


def _read_upload(upload: UploadFile | None, limit: int) -> bytes | None:
    if upload is None:
        return None
    data = upload.file.read()
    if len(data) > limit:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {limit} bytes")
    return data


def _parse_day(value: str | None) -> date_type | None:
    if not value:
        return None
    try:
        return date_type.fromisoformat(value[:10])
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")


@router.get("")
def get_messages(
    search: str | None = None,
    date: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    skip: int = 0,
    db: Session = Depends(get_db),
):
    day = _parse_day(date)
    try:
        messages = list_messages(db, search=search, day=day, limit=limit, skip=skip)
        return [serialize_message(m) for m in messages]
    except Exception as e:
        logger.error("Error fetching messages: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to fetch messages")


@router.get("/dates")
def get_date_range(db: Session = Depends(get_db)):
    dates = message_date_range(db)
    return {"oldest": dates["oldest"].isoformat(), "newest": dates["newest"].isoformat()}


@router.post("", status_code=201)
@limiter.limit(UPLOAD_LIMIT)
def send_message(
    request: Request,
    text: str | None = Form(None),
    image: UploadFile | None = File(None),
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    try:
        image_data = _read_upload(image, settings.max_upload_bytes)
        file_data = _read_upload(file, settings.max_upload_bytes)

        message = create_message(
            db,
            text=text,
            image=Attachment(image_data, image.content_type) if image_data is not None else None,
            file=(
                Attachment(file_data, file.content_type, file.filename)
                if file_data is not None
                else None
            ),
            threshold=settings.compression_threshold,
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error creating message: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to create message")

    response = serialize_message(message)
    broadcaster.publish(MESSAGE_CREATED, response)
    return response


@router.put("/{message_id}")
def update_message(
    message_id: int,
    payload: EditMessageSchema,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    message = edit_message(db, message_id, payload.text, threshold=settings.compression_threshold)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")

    response = serialize_message(message)
    broadcaster.publish(MESSAGE_EDITED, response)
    return response


@router.get("/{message_id}/file")
def download_file(message_id: int, db: Session = Depends(get_db)):
    message = get_message(db, message_id)
    if message is None or message.file_data is None:
        raise HTTPException(status_code=404, detail="File not found")

    try:
        data = read_file_attachment(message)
    except CodecCorruption as e:
        logger.error("Error decoding file of message %s: %s", message_id, e)
        raise HTTPException(status_code=404, detail="File not available")

    return Response(
        content=data,
        media_type=message.file_mime_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{message.file_name}"'},
    )


@router.delete("/{message_id}")
def remove_message(
    message_id: int,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    if not delete_message(db, message_id):
        raise HTTPException(status_code=404, detail="Message not found")

    broadcaster.publish(MESSAGE_DELETED, message_id)
    return {"success": True, "message": "Message deleted"}
