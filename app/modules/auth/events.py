import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class SessionEvent:
    type: str
    user_id: Optional[str] = None
    access_token: Optional[str] = None


SessionListener = Callable[[SessionEvent], None]


class SessionEvents:
    """Subscription channel for sign-in / sign-out notifications"""

    def __init__(self):
        self._listeners: List[SessionListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: SessionEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        logger.info(f"Session event {event.type} for user {event.user_id}")
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Session listener {listener!r} failed on {event.type}: {e}")


session_events = SessionEvents()
