import logging
import threading
from typing import Dict, Optional

from courtside.errors import RoomNotFound
from courtside.models import Room, normalize_room_key
from courtside.store import SessionStore

NAMESPACE = '/'


class RoomChannel:
    """Join/broadcast protocol for rooms held in a :class:`SessionStore`.

    A connection (Socket.IO sid) subscribes to at most one room. Mutations are
    applied and broadcast while holding the room lock, so every subscriber sees
    a room's events in the order they were applied. ``socketio.emit`` only
    queues packets on each client's outbound queue, so a slow client never
    holds the lock on network I/O.

    Lock order: room lock, then ``_lock``. ``_lock`` is never held while
    waiting for a room lock.
    """

    def __init__(self, socketio, store: SessionStore, namespace: str = NAMESPACE, logger=None):
        self.socketio = socketio
        self.store = store
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)
        self._memberships: Dict[str, str] = {}
        self._lock = threading.Lock()

    # ---- membership ----

    def room_of(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._memberships.get(sid)

    def join(self, sid: str, key: str) -> Room:
        room = self.store.get(key)
        previous = self.room_of(sid)
        if previous and previous != room.key:
            self.leave(sid)

        with room.lock:
            if room.closed:
                raise RoomNotFound(room.key)
            others = [s for s in room.subscribers if s != sid]
            room.subscribers.add(sid)
            with self._lock:
                self._memberships[sid] = room.key
            # A disconnect that ran before registration found nothing to clean up
            if not self._connected(sid):
                room.subscribers.discard(sid)
                with self._lock:
                    if self._memberships.get(sid) == room.key:
                        del self._memberships[sid]
                self.logger.debug(f"[join-abandoned] sid={sid} room={room.key}")
                return room
            room.touch()
            self._send(sid, 'room-joined', room.to_dict())
            for other in others:
                self._send(other, 'user-joined', {'userId': sid})
        self.logger.info(f"[join] sid={sid} room={room.key} subscribers={len(others) + 1}")
        return room

    def leave(self, sid: str) -> None:
        with self._lock:
            key = self._memberships.pop(sid, None)
        if not key:
            return
        try:
            room = self.store.get(key)
        except RoomNotFound:
            return
        with room.lock:
            room.subscribers.discard(sid)
        self.logger.debug(f"[leave] sid={sid} room={key}")

    def sever(self, room: Room) -> None:
        """Drop every subscription to ``room`` without notifying anyone."""
        with room.lock:
            sids = list(room.subscribers)
            room.subscribers.clear()
            with self._lock:
                for sid in sids:
                    if self._memberships.get(sid) == room.key:
                        del self._memberships[sid]

    # ---- mutations ----

    def dispatch(self, sid: str, key: Optional[str], mutation) -> dict:
        """Apply ``mutation`` to the room and broadcast the result to all its subscribers."""
        key = normalize_room_key(key) or self.room_of(sid)
        if not key:
            raise RoomNotFound('')
        room = self.store.get(key)
        with room.lock:
            if room.closed:
                raise RoomNotFound(room.key)
            payload = mutation.apply(room)
            for subscriber in list(room.subscribers):
                self._send(subscriber, mutation.event, payload)
        self.logger.debug(f"[{mutation.event}] sid={sid} room={room.key}")
        return payload

    def _connected(self, sid: str) -> bool:
        # Socket.IO marks a sid disconnected before running its disconnect handler
        return self.socketio.server.manager.is_connected(sid, self.namespace)

    def _send(self, sid: str, event: str, payload) -> None:
        try:
            self.socketio.emit(event, payload, to=sid, namespace=self.namespace)
        except Exception:
            # One broken connection must not fail the mutation for the others
            self.logger.exception(f"[emit-failed] sid={sid} event={event}")
