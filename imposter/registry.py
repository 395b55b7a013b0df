"""Process-wide room lookup: room id -> ``Room``."""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional

from .constants import ROOM_ID_ALPHABET, ROOM_ID_LENGTH
from .room import Room
from .schemas import Player

logger = logging.getLogger(__name__)


class RoomRegistry:
    def __init__(self, id_length: int = ROOM_ID_LENGTH):
        self.id_length = id_length
        self._rooms: Dict[str, Room] = {}

    @staticmethod
    def normalize_id(room_id: str) -> str:
        return str(room_id or "").strip().upper()

    def generate_id(self) -> str:
        """Generate a short room id that is not in use by a live room."""
        while True:
            room_id = "".join(random.choices(ROOM_ID_ALPHABET, k=self.id_length))
            if room_id not in self._rooms:
                return room_id
            logger.debug("Room id %s collided, retrying", room_id)

    def create(self, name: str, admin: Player) -> Room:
        room = Room(self.generate_id(), name, admin)
        self._rooms[room.room_id] = room
        logger.info("Room %s (%r) created by %s", room.room_id, name, admin.username)
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(self.normalize_id(room_id))

    def remove(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(self.normalize_id(room_id), None)
        if room is not None:
            room.cancel_timers()
            logger.info("Room %s deleted", room.room_id)
        return room

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def clear(self) -> None:
        for room in self.rooms():
            self.remove(room.room_id)

    def __contains__(self, room_id: object) -> bool:
        return isinstance(room_id, str) and self.normalize_id(room_id) in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


__all__ = ["RoomRegistry"]
