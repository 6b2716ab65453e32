import threading
from typing import Dict, Iterable, List

from courtside.errors import DuplicateKey, RoomNotFound
from courtside.models import Court, Room, is_room_key, normalize_room_key


class SessionStore:
    """In-memory registry of live rooms keyed by room key.

    The structural lock only guards the key -> Room map. Room contents are
    guarded by each room's own lock, so work on different rooms never contends
    here for longer than a dict operation. Never acquire a room lock while
    holding ``_lock``.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def create(self, key: str, initial_courts: Iterable[Court]) -> Room:
        key = normalize_room_key(key)
        if not is_room_key(key):
            raise ValueError(f'Malformed room key: {key!r}')
        courts = list(initial_courts)
        if not courts:
            raise ValueError('A room needs at least one court')
        room = Room(key=key, courts=courts)
        with self._lock:
            if key in self._rooms:
                raise DuplicateKey(key)
            self._rooms[key] = room
        return room

    def get(self, key: str) -> Room:
        key = normalize_room_key(key)
        with self._lock:
            room = self._rooms.get(key)
        if room is None:
            raise RoomNotFound(key)
        return room

    def touch(self, key: str) -> Room:
        room = self.get(key)
        with room.lock:
            room.touch()
        return room

    def delete(self, key: str) -> None:
        key = normalize_room_key(key)
        with self._lock:
            self._rooms.pop(key, None)

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __contains__(self, key) -> bool:
        with self._lock:
            return normalize_room_key(key) in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
