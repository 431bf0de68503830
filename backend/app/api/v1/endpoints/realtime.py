"""
Real-time announcement feed

Connection URL: WS /api/v1/realtime/ws?token=<jwt>

Server events:
- connected: sent once the subscription is registered
- new-announcement: snapshot of a newly published announcement
- pong: reply to a client {"type": "ping"}
- error: unparseable or unknown client message
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query

from app.core.database import get_session_local
from app.core.exceptions import AuthenticationError
from app.core.logging_config import logger
from app.modules.auth import resolve_principal
from app.services.announcement_hub import HubEvent

router = APIRouter()


@router.websocket("/ws")
async def announcement_feed(
    websocket: WebSocket,
    token: str = Query(...)
):
    # The session only lives for the token check; the feed itself needs no database
    async with get_session_local()() as db:
        try:
            principal = await resolve_principal(db, token)
        except AuthenticationError as e:
            logger.log_auth_event("websocket_connect", False, reason=e.message)
            await websocket.close(code=4001, reason=e.message)
            return

    hub = websocket.app.state.services.hub
    subscriber = await hub.subscribe(websocket, principal.id, principal.role.value)

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await hub.send(subscriber, HubEvent.ERROR.value, {"message": "Invalid JSON"})
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await hub.handle_ping(subscriber)
            else:
                await hub.send(subscriber, HubEvent.ERROR.value, {"message": "Unknown message type"})

    except WebSocketDisconnect:
        logger.debug(f"[Realtime] {principal.role.value} {principal.id} disconnected")
    finally:
        await hub.unsubscribe(websocket)
