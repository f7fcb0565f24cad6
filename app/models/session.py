"""Focus session model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.goal import Goal
from app.models.task import Subtask, Task


class SessionState(str, Enum):
    """Focus session states."""

    SETUP = "setup"
    RUNNING = "running"
    PAUSED = "paused"
    REVIEW = "review"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class SessionSetup(CamelModel):
    """Duration override entered before a session starts."""

    hours: int = Field(default=0, ge=0, le=24)
    minutes: int = Field(default=0, ge=0, le=59)


class SessionResult(CamelModel):
    """Outcome of a reviewed session, ready to commit."""

    duration_minutes: int = Field(ge=0)
    task_done: bool
    subtasks: list[Subtask] = Field(default_factory=list)


class SessionSnapshot(CamelModel):
    """Read-only view of a session."""

    task_id: str
    task_title: str
    state: SessionState
    planned_seconds: int
    elapsed_seconds: int
    remaining_seconds: int
    subtasks: list[Subtask]


class CommitResponse(CamelModel):
    """Entities written by a session commit."""

    result: SessionResult
    task: Task
    goal: Optional[Goal] = None


class Notification(CamelModel):
    """User-facing notification raised by the engine."""

    title: str
    body: str
    created_at: datetime
