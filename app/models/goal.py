"""Goal model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel, UpdateModel
from app.models.task import TaskCategory


class GoalType(str, Enum):
    """Goal types."""

    RECURRING_MONTHLY = "recurring-monthly"
    LONG_TERM_FORECAST = "long-term-forecast"


class TimeOfDay(str, Enum):
    """Preferred time of day for working on a goal."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


class GoalBase(CamelModel):
    """Base goal fields."""

    title: str
    type: GoalType = GoalType.RECURRING_MONTHLY
    deadline: datetime
    target_hours: float = Field(gt=0)
    description: Optional[str] = None
    daily_target: Optional[float] = Field(default=None, gt=0)
    preferred_time_of_day: Optional[TimeOfDay] = None


class BankItem(CamelModel):
    """A task-bank entry captured while creating a project."""

    title: str
    category: TaskCategory = TaskCategory.LEARNING


class GoalCreate(GoalBase):
    """Goal creation model. The task bank becomes backlog tasks."""

    task_bank: list[BankItem] = Field(default_factory=list)


class GoalUpdate(UpdateModel):
    """Goal update model - whitelisted fields only.

    logged_hours is owned by session commits and imports.
    """

    title: Optional[str] = None
    type: Optional[GoalType] = None
    deadline: Optional[datetime] = None
    target_hours: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = None
    daily_target: Optional[float] = Field(default=None, gt=0)
    preferred_time_of_day: Optional[TimeOfDay] = None


class Goal(GoalBase):
    """Full goal model."""

    id: str
    logged_hours: float = Field(default=0, ge=0)


class GoalProgress(CamelModel):
    """Progress summary for a goal."""

    goal_id: str
    logged_hours: float
    target_hours: float
    remaining_hours: float
    percent: int
    capped_percent: int
    days_remaining: int
