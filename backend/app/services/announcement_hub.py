"""
Announcement Hub

Registry of live WebSocket subscribers for campus announcements.
Broadcasts are fire-and-forget: no acknowledgement, no replay. A client
that connects after an event never sees it; the stored announcement is
the durable record.
"""

import asyncio
from typing import Dict, Any
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from fastapi import WebSocket

from app.core.logging_config import logger


class HubEvent(str, Enum):
    """WebSocket event types"""
    CONNECTED = "connected"
    NEW_ANNOUNCEMENT = "new-announcement"
    PONG = "pong"
    ERROR = "error"


@dataclass
class Subscriber:
    """One open WebSocket"""
    websocket: WebSocket
    principal_id: str
    role: str
    connected_at: datetime = field(default_factory=datetime.utcnow)
    last_activity: datetime = field(default_factory=datetime.utcnow)


def build_message(event: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": event,
        "data": data,
        "timestamp": datetime.utcnow().isoformat()
    }


class AnnouncementHub:
    """Constructed once per application and stored on app.state"""

    def __init__(self):
        # connection key -> Subscriber; one principal may hold several tabs
        self._subscribers: Dict[int, Subscriber] = {}
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, websocket: WebSocket, principal_id: str, role: str) -> Subscriber:
        """Accept the socket and register it"""
        await websocket.accept()
        subscriber = Subscriber(websocket=websocket, principal_id=principal_id, role=role)

        async with self._lock:
            self._subscribers[id(websocket)] = subscriber

        logger.info(f"[Hub] {role} {principal_id} subscribed ({self.subscriber_count} live)")
        await self.send(subscriber, HubEvent.CONNECTED.value, {"principal_id": principal_id, "role": role})
        return subscriber

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            subscriber = self._subscribers.pop(id(websocket), None)
        if subscriber:
            logger.info(f"[Hub] {subscriber.role} {subscriber.principal_id} unsubscribed")

    async def send(self, subscriber: Subscriber, event: str, data: Dict[str, Any]) -> bool:
        try:
            await subscriber.websocket.send_json(build_message(event, data))
            subscriber.last_activity = datetime.utcnow()
            return True
        except Exception as e:
            logger.warning(f"[Hub] Send to {subscriber.principal_id} failed: {e}")
            return False

    async def broadcast(self, event: str, data: Dict[str, Any]) -> int:
        """
        Send `event` to every live subscriber.

        Dead sockets are discarded. Returns the number of subscribers that
        received the message.
        """
        async with self._lock:
            subscribers = list(self._subscribers.values())

        message = build_message(event, data)
        delivered = 0
        dead = []

        for subscriber in subscribers:
            try:
                await subscriber.websocket.send_json(message)
                subscriber.last_activity = datetime.utcnow()
                delivered += 1
            except Exception as e:
                logger.warning(f"[Hub] Broadcast to {subscriber.principal_id} failed: {e}")
                dead.append(subscriber.websocket)

        for websocket in dead:
            await self.unsubscribe(websocket)

        logger.info(f"[Hub] Broadcast {event} to {delivered} subscriber(s)")
        return delivered

    async def handle_ping(self, subscriber: Subscriber) -> None:
        await self.send(subscriber, HubEvent.PONG.value, {"server_time": datetime.utcnow().isoformat()})

    async def close_all(self) -> None:
        async with self._lock:
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
        for subscriber in subscribers:
            try:
                await subscriber.websocket.close()
            except Exception as e:
                logger.debug(f"[Hub] Close failed for {subscriber.principal_id}: {e}")
