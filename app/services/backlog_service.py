"""Backlog service - the task bank."""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.config import settings
from app.exceptions import NotFoundError
from app.models.task import Subtask, Task, TaskCategory, TaskStatus
from app.services.entity_store import EntityStore
from app.utils.ids import new_id

logger = logging.getLogger(__name__)


def build_backlog_task(
    subtask: Subtask,
    goal_id: Optional[str],
    default_minutes: int,
) -> Task:
    """
    Turn a subtask into a standalone backlog task.

    Args:
        subtask: Source subtask (left untouched)
        goal_id: Goal to link the new task to, if any
        default_minutes: Planned duration when the subtask has no allocation

    Returns:
        New backlog task with a fresh id
    """
    return Task(
        id=new_id(),
        title=subtask.title,
        category=subtask.category or TaskCategory.OTHER,
        planned_duration_minutes=subtask.allocated_minutes or default_minutes,
        actual_duration_minutes=0,
        status=TaskStatus.TODO,
        linked_goal_id=goal_id,
        created_at=datetime.now(timezone.utc),
        subtasks=[],
        is_backlog=True,
    )


class BacklogService:
    """Service for moving work in and out of the backlog."""

    def __init__(
        self,
        store: EntityStore,
        default_minutes: int = settings.backlog_default_minutes,
    ):
        """Initialize service with the entity store."""
        self.store = store
        self.default_minutes = default_minutes

    def toggle_backlog(self, task_id: str) -> Task:
        """
        Flip a task's backlog flag.

        Raises:
            NotFoundError: If task not found
        """
        task = self.store.get_task(task_id)
        updated = task.model_copy(update={"is_backlog": not task.is_backlog})
        self.store.apply(tasks=[updated])
        return updated

    def promote_subtasks_to_backlog(
        self,
        subtasks: Iterable[Subtask],
        goal_id: Optional[str] = None,
    ) -> list[Task]:
        """
        Create one backlog task per subtask.

        The source subtasks are not removed from their parent; use
        move_subtasks_to_backlog for that.

        Args:
            subtasks: Subtasks to promote
            goal_id: Optional goal to link the new tasks to

        Returns:
            The new tasks, in input order (empty for empty input)
        """
        new_tasks = [
            build_backlog_task(subtask, goal_id, self.default_minutes)
            for subtask in subtasks
        ]
        if not new_tasks:
            return []

        self.store.add_tasks(new_tasks)
        logger.info("Promoted %d subtasks to the backlog", len(new_tasks))
        return new_tasks

    def move_subtasks_to_backlog(
        self,
        task_id: str,
        subtask_ids: list[str],
    ) -> list[Task]:
        """
        Promote a task's subtasks and remove them from the task.

        The new tasks inherit the source task's goal link and, where the
        subtask has none, its category.

        Args:
            task_id: Task owning the subtasks
            subtask_ids: Ids of the subtasks to move

        Returns:
            The new backlog tasks

        Raises:
            NotFoundError: If the task or any subtask id is unknown
        """
        task = self.store.get_task(task_id)
        wanted = set(subtask_ids)
        moving = [s for s in task.subtasks if s.id in wanted]
        if {s.id for s in moving} != wanted:
            raise NotFoundError("Subtask not found")
        if not moving:
            return []

        new_tasks = []
        for subtask in moving:
            subtask = subtask.model_copy(
                update={"category": subtask.effective_category(task.category)}
            )
            new_tasks.append(
                build_backlog_task(subtask, task.linked_goal_id, self.default_minutes)
            )

        remaining = [s for s in task.subtasks if s.id not in wanted]
        self.store.apply(
            tasks=[task.model_copy(update={"subtasks": remaining})],
            added_tasks=new_tasks,
        )
        logger.info("Moved %d subtasks of task %s to the backlog", len(new_tasks), task.id)
        return new_tasks
