"""Best-effort user notifications and completion cues."""
import contextlib
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Optional

from app.models.session import Notification

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[Notification], None]
CueHandler = Callable[[], None]


class SessionNotifier:
    """
    Fan out notifications to subscribed handlers.

    Delivery never fails the caller: a handler that raises is logged and
    skipped, and a disabled notifier simply drops the message.
    """

    def __init__(self, enabled: bool = True, history: int = 50):
        self.enabled = enabled
        self.recent: deque[Notification] = deque(maxlen=history)
        self._handlers: list[NotificationHandler] = []
        self._cue_handlers: list[CueHandler] = []

    def subscribe(self, handler: NotificationHandler) -> Callable[[], None]:
        """Register a notification handler. Returns an unsubscribe callable."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.remove(handler)

        return _unsubscribe

    def subscribe_cue(self, handler: CueHandler) -> Callable[[], None]:
        """Register a completion cue player. Returns an unsubscribe callable."""
        self._cue_handlers.append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._cue_handlers.remove(handler)

        return _unsubscribe

    def notify(self, title: str, body: str) -> Optional[Notification]:
        """Publish a notification. Returns None when notifications are disabled."""
        if not self.enabled:
            logger.debug("Notifications disabled, dropping %r", title)
            return None

        notification = Notification(
            title=title,
            body=body,
            created_at=datetime.now(timezone.utc),
        )
        self.recent.append(notification)
        for handler in list(self._handlers):
            try:
                handler(notification)
            except Exception:
                logger.warning("Notification handler failed", exc_info=True)
        return notification

    def play_cue(self) -> None:
        """Play the completion cue on every registered player."""
        if not self._cue_handlers:
            logger.debug("No completion cue player registered")
            return
        for handler in list(self._cue_handlers):
            try:
                handler()
            except Exception:
                logger.warning("Completion cue failed", exc_info=True)

    def session_expired(self, task_title: str) -> None:
        """Announce that a session's countdown reached zero."""
        self.notify("Time's up!", f"Session finished for: {task_title}")
        self.play_cue()
