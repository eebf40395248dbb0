import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from pymongo.collection import Collection

from app.api.deps import decode_session_token, get_current_session, require_registered_session
from app.core.database import get_messages_collection, get_revoked_tokens_collection
from app.models.models import ChatMessage, SessionContext
from app.schemas.schemas import MessageCreate
from app.services.forum import ForumSubscription, list_messages, send_message

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/messages", response_model=List[ChatMessage])
def get_messages(
    session: SessionContext = Depends(get_current_session),
    messages: Collection = Depends(get_messages_collection),
):
    return list_messages(messages, session)


@router.post("/messages", status_code=status.HTTP_202_ACCEPTED)
def post_message(
    data: MessageCreate,
    session: SessionContext = Depends(require_registered_session),
    messages: Collection = Depends(get_messages_collection),
):
    """Publica un mensaje; el texto vacío se ignora sin escribir nada"""
    message_id = send_message(messages, session, data.text)
    return {"id": message_id, "sent": message_id is not None}


@router.websocket("/ws")
async def forum_ws(
    websocket: WebSocket,
    token: str,
    messages: Collection = Depends(get_messages_collection),
    revoked: Collection = Depends(get_revoked_tokens_collection),
):
    """Envía la lista completa de mensajes cada vez que cambia la colección"""
    try:
        session = decode_session_token(token, revoked)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_snapshot(snapshot: List[ChatMessage]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, {"type": "snapshot", "messages": snapshot})

    def on_error(error: Exception) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, {"type": "error", "message": "No se pudieron cargar los mensajes"})

    subscription = ForumSubscription(messages, session, on_snapshot, on_error)
    subscription.start()
    receiver = asyncio.create_task(websocket.receive_text())
    getter = asyncio.create_task(queue.get())
    try:
        while True:
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                # El cliente no envía datos por este canal; solo detectamos la desconexión
                receiver.result()
                receiver = asyncio.create_task(websocket.receive_text())
            if getter in done:
                await websocket.send_json(jsonable_encoder(getter.result()))
                getter = asyncio.create_task(queue.get())
    except WebSocketDisconnect:
        logger.info(f"Foro desconectado: {session.user_id}")
    finally:
        getter.cancel()
        receiver.cancel()
        await asyncio.to_thread(subscription.close)
