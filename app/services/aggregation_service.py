"""Aggregation service - commit finished sessions into tasks and goals."""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from app.models.goal import Goal
from app.models.session import SessionResult
from app.models.task import Task, TaskStatus
from app.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

HUNDREDTH = Decimal("0.01")


def round2(value: float) -> float:
    """
    Round to two decimals, ties away from zero on the exact binary value.

    Matches JavaScript's Number.prototype.toFixed(2), which is how stored
    hours have always been rounded.

    Examples:
        >>> round2(12 + 45 / 60)
        12.75
        >>> round2(0.125)
        0.13
        >>> round2(1 / 3)
        0.33
    """
    return float(Decimal(value).quantize(HUNDREDTH, rounding=ROUND_HALF_UP))


def apply_session_result(task: Task, result: SessionResult) -> Task:
    """
    Return the task as it stands after a committed session.

    Args:
        task: Task the session ran against
        result: Reviewed session outcome

    Returns:
        Updated copy of the task
    """
    return task.model_copy(
        update={
            "status": TaskStatus.COMPLETED if result.task_done else TaskStatus.TODO,
            "actual_duration_minutes": task.actual_duration_minutes + result.duration_minutes,
            "subtasks": [s.model_copy(deep=True) for s in result.subtasks],
        },
        deep=True,
    )


def log_time(goal: Goal, duration_minutes: int) -> Goal:
    """Return the goal with duration_minutes added to its logged hours."""
    return goal.model_copy(
        update={"logged_hours": round2(goal.logged_hours + duration_minutes / 60)}
    )


class AggregationService:
    """Service for committing session results into the entity store."""

    def __init__(self, store: EntityStore):
        """Initialize service with the entity store."""
        self.store = store

    def commit(
        self,
        task_id: str,
        result: SessionResult,
    ) -> tuple[Task, Optional[Goal]]:
        """
        Commit a session result.

        The task and, when its linked goal resolves, the goal are written
        in one store operation. An unresolved goal link is skipped.

        Args:
            task_id: Task the session ran against
            result: Reviewed session outcome

        Returns:
            Tuple of (updated task, updated goal or None)

        Raises:
            NotFoundError: If task not found
        """
        task = self.store.get_task(task_id)
        updated_task = apply_session_result(task, result)

        updated_goal = None
        if task.linked_goal_id:
            goal = self.store.find_goal(task.linked_goal_id)
            if goal is None:
                logger.debug(
                    "Task %s links to missing goal %s, skipping goal update",
                    task.id,
                    task.linked_goal_id,
                )
            else:
                updated_goal = log_time(goal, result.duration_minutes)

        self.store.apply(
            tasks=[updated_task],
            goals=[updated_goal] if updated_goal else [],
        )
        logger.info(
            "Committed %d min to task %s (done=%s)",
            result.duration_minutes,
            task.id,
            result.task_done,
        )
        return updated_task, updated_goal
