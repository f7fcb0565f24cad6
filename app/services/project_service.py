"""Project service - goals together with their task bank."""
import logging
import math
from datetime import datetime, timezone
from typing import Optional

from app.config import settings
from app.models.goal import Goal, GoalCreate, GoalProgress
from app.models.task import Task, TaskStatus
from app.services.aggregation_service import round2
from app.services.entity_store import EntityStore
from app.utils.ids import bank_task_id

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class ProjectService:
    """Service for handling project operations."""

    def __init__(
        self,
        store: EntityStore,
        bank_minutes: int = settings.project_bank_minutes,
    ):
        """Initialize service with the entity store."""
        self.store = store
        self.bank_minutes = bank_minutes

    def create_project(self, goal_create: GoalCreate) -> tuple[Goal, list[Task]]:
        """
        Create a new goal and file its task bank as backlog tasks.

        Args:
            goal_create: Goal creation data, with optional task bank

        Returns:
            Tuple of (created goal, created backlog tasks)
        """
        goal = self.store.create_goal(goal_create)

        now = datetime.now(timezone.utc)
        tasks = [
            Task(
                id=bank_task_id(goal.id, index),
                title=item.title,
                category=item.category,
                planned_duration_minutes=self.bank_minutes,
                actual_duration_minutes=0,
                status=TaskStatus.TODO,
                linked_goal_id=goal.id,
                created_at=now,
                subtasks=[],
                is_backlog=True,
            )
            for index, item in enumerate(goal_create.task_bank)
        ]
        self.store.add_tasks(tasks)

        logger.info("Created project %s with %d bank tasks", goal.id, len(tasks))
        return goal, tasks

    def progress(
        self,
        goal_id: str,
        now: Optional[datetime] = None,
    ) -> GoalProgress:
        """
        Summarize how far a goal has come.

        Args:
            goal_id: Goal id
            now: Optional reference time (defaults to now)

        Returns:
            Progress summary

        Raises:
            NotFoundError: If goal not found
        """
        goal = self.store.get_goal(goal_id)
        now = now or datetime.now(timezone.utc)

        deadline = goal.deadline
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)

        # half-up, like the percentages shown on goal cards
        percent = math.floor(goal.logged_hours / goal.target_hours * 100 + 0.5)
        return GoalProgress(
            goal_id=goal.id,
            logged_hours=goal.logged_hours,
            target_hours=goal.target_hours,
            remaining_hours=max(0.0, round2(goal.target_hours - goal.logged_hours)),
            percent=percent,
            capped_percent=min(100, percent),
            days_remaining=math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY),
        )

    def tasks_in_progress(self) -> list[Task]:
        """Tasks that have time recorded but are not completed yet."""
        return [
            task for task in self.store.tasks
            if task.status != TaskStatus.COMPLETED and task.actual_duration_minutes > 0
        ]
