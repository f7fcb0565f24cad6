"""Task and subtask model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel, UpdateModel
from app.utils.ids import new_id


class TaskCategory(str, Enum):
    """Task categories."""

    RESEARCH = "research"
    CREATION = "creation"
    LEARNING = "learning"
    ACTIVITY = "activity"
    LEISURE = "leisure"
    OTHER = "other"


class TaskStatus(str, Enum):
    """Task states."""

    TODO = "todo"
    COMPLETED = "completed"


class Subtask(CamelModel):
    """Checklist item owned by a task. Not time-tracked on its own."""

    id: str = Field(default_factory=new_id)
    title: str
    is_completed: bool = False
    category: Optional[TaskCategory] = None
    allocated_minutes: Optional[int] = Field(default=None, gt=0)

    def effective_category(self, parent: TaskCategory) -> TaskCategory:
        """Subtask category, falling back to the parent task's."""
        return self.category or parent


class TaskBase(CamelModel):
    """Base task fields."""

    title: str
    category: TaskCategory = TaskCategory.OTHER
    planned_duration_minutes: int = Field(default=30, gt=0)
    linked_goal_id: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)
    is_backlog: bool = False


class TaskCreate(TaskBase):
    """Task creation model."""

    pass


class TaskUpdate(UpdateModel):
    """Task update model - whitelisted fields only.

    Status and actual duration belong to session commits, id and
    created_at to the store.
    """

    title: Optional[str] = None
    category: Optional[TaskCategory] = None
    planned_duration_minutes: Optional[int] = Field(default=None, gt=0)
    linked_goal_id: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    subtasks: Optional[list[Subtask]] = None
    is_backlog: Optional[bool] = None


class Task(TaskBase):
    """Full task model."""

    id: str
    actual_duration_minutes: int = Field(default=0, ge=0)
    status: TaskStatus = TaskStatus.TODO
    created_at: datetime

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


class SubtaskPromotion(CamelModel):
    """Request model for promoting subtasks into backlog tasks."""

    subtasks: list[Subtask]
    goal_id: Optional[str] = None


class SubtaskMove(CamelModel):
    """Request model for moving a task's subtasks into the backlog."""

    subtask_ids: list[str]
