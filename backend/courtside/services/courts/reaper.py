import logging
import time
from typing import List, Optional

from courtside.store import SessionStore


class SessionReaper:
    """Evict rooms that have seen no join or mutation for ``idle_timeout`` seconds.

    - No-ops in TESTING mode unless ENABLE_REAPER_IN_TESTS is set
    - Takes the room lock before deleting, so an in-flight mutation finishes first
    - Former subscribers get no notice; their next dispatch fails with RoomNotFound
    """

    def __init__(self, store: SessionStore, channel, interval: float, idle_timeout: float, logger=None):
        self.store = store
        self.channel = channel
        self.interval = interval
        self.idle_timeout = idle_timeout
        self.logger = logger or logging.getLogger(__name__)
        self._running = False

    def sweep(self, now: Optional[float] = None) -> List[str]:
        now = time.time() if now is None else now
        removed = []
        for room in self.store.rooms():
            with room.lock:
                if room.closed or now - room.last_activity_at <= self.idle_timeout:
                    continue
                idle_for = int(now - room.last_activity_at)
                self.store.delete(room.key)
                room.closed = True
                self.channel.sever(room)
            removed.append(room.key)
            self.logger.info(f"[reap] room={room.key} idle={idle_for}s")
        return removed

    def start(self, app, socketio) -> bool:
        if app.config.get('TESTING') and not app.config.get('ENABLE_REAPER_IN_TESTS'):
            return False
        if self._running:
            return False
        self._running = True
        app.logger.info(
            f"[reaper-start] interval={self.interval}s idle_timeout={self.idle_timeout}s"
        )

        def _worker():
            while self._running:
                socketio.sleep(self.interval)
                if not self._running:
                    break
                try:
                    self.sweep()
                except Exception:
                    # Keep sweeping on the next tick
                    app.logger.exception("[reaper-error] sweep failed")

        socketio.start_background_task(_worker)
        return True

    def stop(self) -> None:
        self._running = False
