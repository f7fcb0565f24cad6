"""Session service - focus session state machine and registry."""
import asyncio
import logging
import math
import time
from typing import Callable, Optional

from app.config import settings
from app.exceptions import InvalidSessionError, NotFoundError
from app.models.goal import Goal
from app.models.session import SessionResult, SessionSnapshot, SessionState
from app.models.task import Task
from app.services.aggregation_service import AggregationService
from app.services.entity_store import EntityStore
from app.services.notifier import SessionNotifier

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

TERMINAL_STATES = {SessionState.COMMITTED, SessionState.DISCARDED}


class AsyncioTicker:
    """
    Call a function every `interval` seconds on the running event loop.

    cancel() is the single release point and is safe to call from inside
    the callback itself.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        return self._task is not None and not self._cancelled

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                break
            self.callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is None:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if self._task is not current:
            self._task.cancel()
        self._task = None


TickerFactory = Callable[[float, Callable[[], None]], AsyncioTicker]


class FocusSession:
    """
    One timed focus interval against a single task.

    setup -> running <-> paused -> review -> committed, with discarded
    reachable from any state before review. Elapsed time is measured from a
    monotonic clock over closed running segments plus the open one, so tick
    jitter never accumulates; ticks only drive the expiry check.
    """

    def __init__(
        self,
        task: Task,
        notifier: Optional[SessionNotifier] = None,
        clock: Clock = time.monotonic,
        ticker_factory: TickerFactory = AsyncioTicker,
        tick_interval: float = settings.session_tick_seconds,
    ):
        self.task_id = task.id
        self.task_title = task.title
        self.state = SessionState.SETUP
        self.planned_seconds = task.planned_duration_minutes * 60
        self.working_subtasks = [s.model_copy(deep=True) for s in task.subtasks]
        self.result: Optional[SessionResult] = None

        self._notifier = notifier
        self._clock = clock
        self._ticker_factory = ticker_factory
        self._tick_interval = tick_interval
        self._ticker: Optional[AsyncioTicker] = None
        self._banked = 0.0
        self._segment_start: Optional[float] = None

    # Time

    @property
    def elapsed_seconds(self) -> int:
        total = self._banked
        if self._segment_start is not None:
            total += self._clock() - self._segment_start
        return min(int(total), self.planned_seconds)

    @property
    def remaining_seconds(self) -> int:
        return self.planned_seconds - self.elapsed_seconds

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def _begin_segment(self) -> None:
        self._segment_start = self._clock()
        self._ticker = self._ticker_factory(self._tick_interval, self.tick)
        self._ticker.start()

    def _end_segment(self) -> None:
        self._release_ticker()
        if self._segment_start is not None:
            self._banked += self._clock() - self._segment_start
            self._segment_start = None

    def _release_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _require(self, action: str, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidSessionError(
                f"Cannot {action} a session in {self.state.value} state"
            )

    # Transitions

    def configure(self, hours: int, minutes: int) -> None:
        """Override the planned duration before starting."""
        self._require("configure", SessionState.SETUP)
        self.planned_seconds = hours * 3600 + minutes * 60

    def start(self) -> None:
        """
        Start the countdown.

        Raises:
            InvalidSessionError: If not in setup, or the duration is zero
        """
        self._require("start", SessionState.SETUP)
        if self.planned_seconds <= 0:
            raise InvalidSessionError("Session duration must be greater than zero")
        self.state = SessionState.RUNNING
        self._begin_segment()
        logger.info("Session started for task %s (%ds)", self.task_id, self.planned_seconds)

    def pause(self) -> None:
        self.tick()
        self._require("pause", SessionState.RUNNING)
        self._end_segment()
        self.state = SessionState.PAUSED

    def resume(self) -> None:
        self._require("resume", SessionState.PAUSED)
        self.state = SessionState.RUNNING
        self._begin_segment()

    def toggle(self) -> None:
        """Pause a running session or resume a paused one."""
        self.tick()
        if self.state == SessionState.RUNNING:
            self.pause()
        else:
            self.resume()

    def finish(self) -> None:
        """Stop early and go to review."""
        self.tick()
        if self.state == SessionState.REVIEW:
            return
        self._require("finish", SessionState.RUNNING, SessionState.PAUSED)
        self._end_segment()
        self.state = SessionState.REVIEW

    def tick(self) -> None:
        """Move a running session to review once its countdown reaches zero."""
        if self.state == SessionState.RUNNING and self.remaining_seconds <= 0:
            self._expire()

    def _expire(self) -> None:
        self._end_segment()
        self.state = SessionState.REVIEW
        logger.info("Session for task %s reached zero", self.task_id)
        if self._notifier is not None:
            self._notifier.session_expired(self.task_title)

    def toggle_subtask(self, subtask_id: str) -> None:
        """
        Flip completion of a subtask in the working copy.

        Raises:
            NotFoundError: If subtask not found
        """
        self._require(
            "edit",
            SessionState.SETUP,
            SessionState.RUNNING,
            SessionState.PAUSED,
            SessionState.REVIEW,
        )
        for index, subtask in enumerate(self.working_subtasks):
            if subtask.id == subtask_id:
                self.working_subtasks[index] = subtask.model_copy(
                    update={"is_completed": not subtask.is_completed}
                )
                return
        raise NotFoundError("Subtask not found")

    def commit(self, task_done: bool) -> SessionResult:
        """
        Close the review and produce the session result.

        Raises:
            InvalidSessionError: If not in review
        """
        self.tick()
        self._require("commit", SessionState.REVIEW)
        self.result = SessionResult(
            duration_minutes=math.ceil(self.elapsed_seconds / 60),
            task_done=task_done,
            subtasks=[s.model_copy(deep=True) for s in self.working_subtasks],
        )
        self.state = SessionState.COMMITTED
        return self.result

    def save_progress(self) -> SessionResult:
        return self.commit(task_done=False)

    def mark_complete(self) -> SessionResult:
        return self.commit(task_done=True)

    def discard(self) -> None:
        """
        Abandon the session before review. No time is recorded.

        Raises:
            InvalidSessionError: If the session already reached review
        """
        self.tick()
        self._require(
            "discard",
            SessionState.SETUP,
            SessionState.RUNNING,
            SessionState.PAUSED,
        )
        self._release_ticker()
        self._segment_start = None
        self._banked = 0.0
        self.state = SessionState.DISCARDED
        logger.info("Session for task %s discarded", self.task_id)

    def teardown(self) -> None:
        """Release the tick source regardless of state."""
        self._release_ticker()
        if not self.is_terminal:
            self._segment_start = None
            self.state = SessionState.DISCARDED

    def snapshot(self) -> SessionSnapshot:
        self.tick()
        return SessionSnapshot(
            task_id=self.task_id,
            task_title=self.task_title,
            state=self.state,
            planned_seconds=self.planned_seconds,
            elapsed_seconds=self.elapsed_seconds,
            remaining_seconds=self.remaining_seconds,
            subtasks=[s.model_copy(deep=True) for s in self.working_subtasks],
        )


class SessionManager:
    """Registry of focus sessions; routes commits into the aggregation service."""

    def __init__(
        self,
        store: EntityStore,
        notifier: Optional[SessionNotifier] = None,
        clock: Clock = time.monotonic,
        ticker_factory: TickerFactory = AsyncioTicker,
        tick_interval: float = settings.session_tick_seconds,
    ):
        self.store = store
        self.aggregation = AggregationService(store)
        self.notifier = notifier
        self._clock = clock
        self._ticker_factory = ticker_factory
        self._tick_interval = tick_interval
        self._sessions: dict[str, FocusSession] = {}

    def active(self) -> Optional[FocusSession]:
        """The session that is not yet committed or discarded, if any."""
        for session in self._sessions.values():
            if not session.is_terminal:
                return session
        return None

    def open(self, task_id: str) -> FocusSession:
        """
        Open a session in setup state for a task.

        Raises:
            NotFoundError: If task not found
            InvalidSessionError: If the task is completed or a session is active
        """
        task = self.store.get_task(task_id)
        if task.is_completed:
            raise InvalidSessionError("Task already completed")
        if self.active() is not None:
            raise InvalidSessionError("Session already active")

        session = FocusSession(
            task,
            notifier=self.notifier,
            clock=self._clock,
            ticker_factory=self._ticker_factory,
            tick_interval=self._tick_interval,
        )
        self._sessions[task_id] = session
        return session

    def get(self, task_id: str) -> FocusSession:
        """
        Get the session for a task.

        Raises:
            NotFoundError: If no session is open for the task
        """
        session = self._sessions.get(task_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    def commit(self, task_id: str, task_done: bool) -> tuple[SessionResult, Task, Optional[Goal]]:
        """
        Commit a reviewed session into the store and close it.

        If the task was deleted while the session sat in review, the session
        is dropped and NotFoundError is raised.

        Raises:
            NotFoundError: If the session or its task no longer exists
            InvalidSessionError: If the session is not in review
        """
        session = self.get(task_id)
        session.tick()
        if session.state != SessionState.REVIEW:
            raise InvalidSessionError(
                f"Cannot commit a session in {session.state.value} state"
            )
        if self.store.find_task(task_id) is None:
            # Nothing left to commit into; close the session so it does not
            # block every later open().
            session.teardown()
            del self._sessions[task_id]
            logger.warning("Task %s vanished during review, session dropped", task_id)
            raise NotFoundError("Task not found")

        result = session.commit(task_done)
        task, goal = self.aggregation.commit(task_id, result)
        del self._sessions[task_id]
        return result, task, goal

    def discard(self, task_id: str) -> None:
        """Discard a session before review and forget it."""
        session = self.get(task_id)
        session.discard()
        del self._sessions[task_id]

    def shutdown(self) -> None:
        """Release every session's tick source."""
        for session in self._sessions.values():
            session.teardown()
        self._sessions.clear()
