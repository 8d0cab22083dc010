"""Live room membership: which connection is in which room, under what name.

Process-local and authoritative only for who is present right now. All
persisted room content (timer, chat, notes, files) outlives it.
"""

import threading
from typing import Dict, List, NamedTuple, Optional, Set

from hackroom.services.errors import UsernameTakenError


class Departure(NamedTuple):
    room_id: str
    sid: str
    username: str
    room_empty: bool


class RoomRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: Dict[str, Dict[str, str]] = {}  # room_id -> sid -> username
        self._sid_rooms: Dict[str, Set[str]] = {}

    def check_username(self, room_id: str, username: str) -> bool:
        username = (username or '').strip()
        if not username:
            return False
        with self._lock:
            return username not in self._rooms.get(room_id, {}).values()

    def join(self, room_id: str, sid: str, username: str) -> bool:
        """Claim ``username`` in the room for this connection.

        Check and claim happen under one lock, so two connections racing for
        the same name cannot both get it. Returns False if the connection is
        already present under that name.
        """
        with self._lock:
            members = self._rooms.get(room_id, {})
            if members.get(sid) == username:
                return False
            if any(name == username for other, name in members.items() if other != sid):
                raise UsernameTakenError(room_id, username)
            self._rooms.setdefault(room_id, {})[sid] = username
            self._sid_rooms.setdefault(sid, set()).add(room_id)
            return True

    def leave(self, room_id: str, sid: str) -> Optional[Departure]:
        with self._lock:
            departure = self._leave_unlocked(room_id, sid)
            rooms = self._sid_rooms.get(sid)
            if rooms is not None:
                rooms.discard(room_id)
                if not rooms:
                    del self._sid_rooms[sid]
            return departure

    def disconnect(self, sid: str) -> List[Departure]:
        with self._lock:
            departures = []
            for room_id in sorted(self._sid_rooms.pop(sid, set())):
                departure = self._leave_unlocked(room_id, sid)
                if departure:
                    departures.append(departure)
            return departures

    def _leave_unlocked(self, room_id: str, sid: str) -> Optional[Departure]:
        members = self._rooms.get(room_id)
        if not members or sid not in members:
            return None
        username = members.pop(sid)
        if not members:
            del self._rooms[room_id]
        return Departure(room_id, sid, username, room_empty=not members)

    def name_for(self, room_id: str, sid: str) -> Optional[str]:
        with self._lock:
            return self._rooms.get(room_id, {}).get(sid)

    def has_room(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    def members(self, room_id: str) -> Dict[str, str]:
        with self._lock:
            return dict(self._rooms.get(room_id, {}))

    def rooms_for(self, sid: str) -> Set[str]:
        with self._lock:
            return set(self._sid_rooms.get(sid, set()))
