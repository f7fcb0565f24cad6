"""Process-owned engine handle and FastAPI dependencies."""
import logging
import time
from typing import Optional

from app.config import settings
from app.models.session import Notification
from app.services.entity_store import EntityStore
from app.services.notifier import SessionNotifier
from app.services.persistence import StatePersistence
from app.services.session_service import AsyncioTicker, Clock, SessionManager, TickerFactory

logger = logging.getLogger(__name__)


def log_notification(notification: Notification) -> None:
    """Deliver a notification to the service log."""
    logger.info("%s %s", notification.title, notification.body)


class Engine:
    """Owns the entity store, session registry, notifier and persistence."""

    store: EntityStore | None = None
    sessions: SessionManager | None = None
    notifier: SessionNotifier | None = None
    persistence: StatePersistence | None = None

    def attach(
        self,
        store: EntityStore,
        persistence: Optional[StatePersistence] = None,
        clock: Clock = time.monotonic,
        ticker_factory: TickerFactory = AsyncioTicker,
    ) -> None:
        """Wire the engine around a store, hooking persistence when given."""
        self.store = store
        self.persistence = persistence
        if persistence is not None:
            store.on_change = persistence.schedule
        self.notifier = SessionNotifier(
            enabled=settings.notifications_enabled,
            history=settings.notification_history,
        )
        self.notifier.subscribe(log_notification)
        self.sessions = SessionManager(
            store,
            notifier=self.notifier,
            clock=clock,
            ticker_factory=ticker_factory,
        )

    async def start(self, db) -> None:
        """Load persisted state and wire the engine."""
        persistence = StatePersistence(db)
        goals, tasks = await persistence.load()
        self.attach(EntityStore(goals, tasks), persistence=persistence)

    async def stop(self) -> None:
        """Tear down sessions and flush pending writes."""
        if self.sessions is not None:
            self.sessions.shutdown()
        if self.persistence is not None:
            await self.persistence.flush()
        self.detach()

    def detach(self) -> None:
        self.store = None
        self.sessions = None
        self.notifier = None
        self.persistence = None


# Global engine instance
engine = Engine()


def get_store() -> EntityStore:
    """Dependency to get the entity store."""
    if engine.store is None:
        raise RuntimeError("Engine not started")
    return engine.store


def get_session_manager() -> SessionManager:
    """Dependency to get the session registry."""
    if engine.sessions is None:
        raise RuntimeError("Engine not started")
    return engine.sessions


def get_notifier() -> SessionNotifier:
    """Dependency to get the notifier."""
    if engine.notifier is None:
        raise RuntimeError("Engine not started")
    return engine.notifier
