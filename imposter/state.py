"""Centralised in-memory runtime state.

One ``GameState`` is built per application in ``create_app`` and kept on
``app.state.game``. Everything the websocket layer needs (rooms, live
connections, the stats store) hangs off it, so there are no module-level
singletons to import.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from .registry import RoomRegistry
from .schemas import UserIdentity

logger = logging.getLogger(__name__)


class Connection:
    """A live websocket, the identity bound to it and its current room."""

    def __init__(self, ws: WebSocket):
        self.id = uuid.uuid4().hex
        self.ws = ws
        self.user: Optional[UserIdentity] = None
        self.room_id: Optional[str] = None

    async def send(self, msg_type: str, data: Any = None) -> None:
        await self.ws.send_json({"type": msg_type, "data": data})


class GameState:
    def __init__(self, stats_store, token_secret: str, reset_delay: float = 10):
        self.registry = RoomRegistry()
        self.connections: Dict[str, Connection] = {}
        self.stats_store = stats_store
        self.token_secret = token_secret
        self.reset_delay = reset_delay
        # Fire-and-forget tasks, referenced until done so they are not collected
        self.background_tasks: Set[asyncio.Task] = set()

    def track(self, task: asyncio.Task) -> asyncio.Task:
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        return task

    # -------------------- Connections -------------------- #

    def connect(self, ws: WebSocket) -> Connection:
        conn = Connection(ws)
        self.connections[conn.id] = conn
        return conn

    def disconnect(self, conn: Connection) -> None:
        self.connections.pop(conn.id, None)

    def members(self, room_id: str) -> List[Connection]:
        """Connections currently associated with *room_id*."""
        return [c for c in self.connections.values() if c.room_id == room_id]

    # -------------------- Broadcasting -------------------- #

    async def broadcast(self, room_id: str, msg_type: str, data: Any = None) -> None:
        """Send a message to every connection in the room, skipping dead sockets."""
        for conn in self.members(room_id):
            try:
                await conn.send(msg_type, data)
            except Exception:
                # Client went away mid-send; its own disconnect handler cleans up
                logger.warning("Failed to send %s to connection %s", msg_type, conn.id)

    def shutdown(self) -> None:
        self.registry.clear()
        self.connections.clear()


__all__ = ["Connection", "GameState"]
