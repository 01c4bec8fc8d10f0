"""WebSocket endpoint pushing notifications and balance updates to web clients."""
import json
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from quickpe.core.security import resolve_token_user
from quickpe.infrastructure.database.session import session_scope

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_PING = "ping"
MESSAGE_PONG = "pong"


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(...)):
    container = websocket.app.state.container
    try:
        async with session_scope(container.session_factory) as db:
            user = await resolve_token_user(token, db, container.settings)
    except HTTPException as exc:
        logger.warning("WebSocket token rejected: %s", exc.detail)
        await websocket.close(code=1008, reason="Invalid token")
        return

    connections = container.connections
    await connections.connect_web(user.id, websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            connections.update_heartbeat(user.id)
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("type") == MESSAGE_PING:
                await websocket.send_text(json.dumps({"type": MESSAGE_PONG}))
    except WebSocketDisconnect:
        logger.debug("Web user %s closed the socket", user.id)
    finally:
        await connections.disconnect_web(user.id, websocket)
