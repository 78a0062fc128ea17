# privchat/api/realtime.py

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from privchat.core.config import Settings, get_settings
from privchat.core.tokens import verify_token
from privchat.services.broadcast import Broadcaster, get_broadcaster

router = APIRouter()


@router.websocket("/ws")
async def events(
    websocket: WebSocket,
    token: str | None = None,
    settings: Settings = Depends(get_settings),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Push channel for message / message-edited / message-deleted events"""
    if not verify_token(token, settings.token_secret).valid:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await broadcaster.connect(websocket)
    try:
        while True:
            # clients only listen; drain anything they send
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
