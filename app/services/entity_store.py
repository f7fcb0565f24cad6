"""Entity store - owned in-memory collections of goals and tasks."""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from app.exceptions import NotFoundError
from app.models.goal import Goal, GoalCreate, GoalUpdate
from app.models.task import Task, TaskCreate, TaskStatus, TaskUpdate
from app.utils.ids import new_id

logger = logging.getLogger(__name__)

TASKS_RECORD = "tasks"
GOALS_RECORD = "goals"

ChangeHook = Callable[[str, list[dict]], None]


class EntityStore:
    """
    Authoritative owner of goals and tasks.

    Every mutation is applied in one step and then reported to the change
    hook once per affected record with a JSON snapshot of that whole
    collection. Accessors hand out deep copies, so callers can only change
    state through the methods below.
    """

    def __init__(
        self,
        goals: Iterable[Goal] = (),
        tasks: Iterable[Task] = (),
        on_change: Optional[ChangeHook] = None,
    ):
        """Initialize the store with optional preloaded entities."""
        self._goals: list[Goal] = list(goals)
        self._tasks: list[Task] = list(tasks)
        self.on_change = on_change

    # Queries

    @property
    def goals(self) -> list[Goal]:
        return [goal.model_copy(deep=True) for goal in self._goals]

    @property
    def tasks(self) -> list[Task]:
        return [task.model_copy(deep=True) for task in self._tasks]

    def find_goal(self, goal_id: str) -> Optional[Goal]:
        """Return a copy of the goal, or None if the id does not resolve."""
        for goal in self._goals:
            if goal.id == goal_id:
                return goal.model_copy(deep=True)
        return None

    def get_goal(self, goal_id: str) -> Goal:
        """
        Get a goal by id.

        Raises:
            NotFoundError: If goal not found
        """
        goal = self.find_goal(goal_id)
        if goal is None:
            raise NotFoundError("Goal not found")
        return goal

    def find_task(self, task_id: str) -> Optional[Task]:
        """Return a copy of the task, or None if the id does not resolve."""
        for task in self._tasks:
            if task.id == task_id:
                return task.model_copy(deep=True)
        return None

    def get_task(self, task_id: str) -> Task:
        """
        Get a task by id.

        Raises:
            NotFoundError: If task not found
        """
        task = self.find_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def list_tasks(
        self,
        goal_id: Optional[str] = None,
        backlog: Optional[bool] = None,
        status: Optional[TaskStatus] = None,
    ) -> list[Task]:
        """
        List tasks with optional filtering, in store order.

        Args:
            goal_id: Only tasks linked to this goal id
            backlog: Only backlog (True) or active (False) tasks
            status: Only tasks in this status

        Returns:
            List of tasks
        """
        tasks = self._tasks
        if goal_id is not None:
            tasks = [t for t in tasks if t.linked_goal_id == goal_id]
        if backlog is not None:
            tasks = [t for t in tasks if t.is_backlog == backlog]
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        return [task.model_copy(deep=True) for task in tasks]

    def tasks_for_goal(self, goal_id: str) -> list[Task]:
        """All tasks whose linked goal id equals goal_id."""
        return self.list_tasks(goal_id=goal_id)

    # Mutations

    def create_goal(self, goal_create: GoalCreate) -> Goal:
        """
        Create a new goal with no logged time.

        The task bank on goal_create is ignored here; see ProjectService.
        """
        data = goal_create.model_dump(exclude={"task_bank"})
        goal = Goal(id=new_id(), logged_hours=0, **data)
        self._goals.append(goal)
        self._changed(GOALS_RECORD)
        return goal.model_copy(deep=True)

    def create_task(self, task_create: TaskCreate) -> Task:
        """Create a new todo task with no recorded time."""
        task = Task(
            id=new_id(),
            actual_duration_minutes=0,
            status=TaskStatus.TODO,
            created_at=datetime.now(timezone.utc),
            **task_create.model_dump(),
        )
        self._tasks.append(task)
        self._changed(TASKS_RECORD)
        return task.model_copy(deep=True)

    def add_goals(self, goals: Iterable[Goal]) -> None:
        """Append fully-formed goals."""
        goals = [goal.model_copy(deep=True) for goal in goals]
        if not goals:
            return
        self._goals.extend(goals)
        self._changed(GOALS_RECORD)

    def add_tasks(self, tasks: Iterable[Task]) -> None:
        """Append fully-formed tasks. A no-op for an empty input."""
        tasks = [task.model_copy(deep=True) for task in tasks]
        if not tasks:
            return
        self._tasks.extend(tasks)
        self._changed(TASKS_RECORD)

    def update_goal(self, goal_id: str, goal_update: GoalUpdate) -> Goal:
        """
        Apply whitelisted changes to a goal.

        Raises:
            NotFoundError: If goal not found
            ValidationError: If the merged goal is invalid
        """
        existing = self.get_goal(goal_id)
        updated = Goal.model_validate({**existing.model_dump(), **goal_update.changes()})
        self.apply(goals=[updated])
        return updated

    def update_task(self, task_id: str, task_update: TaskUpdate) -> Task:
        """
        Apply whitelisted changes to a task.

        Raises:
            NotFoundError: If task not found
            ValidationError: If the merged task is invalid
        """
        existing = self.get_task(task_id)
        updated = Task.model_validate({**existing.model_dump(), **task_update.changes()})
        self.apply(tasks=[updated])
        return updated

    def delete_goal(self, goal_id: str) -> None:
        """
        Delete a goal. Tasks linked to it keep their (now dangling) reference.

        Raises:
            NotFoundError: If goal not found
        """
        self.get_goal(goal_id)
        self._goals = [g for g in self._goals if g.id != goal_id]
        self._changed(GOALS_RECORD)

    def delete_task(self, task_id: str) -> None:
        """
        Delete a task.

        Raises:
            NotFoundError: If task not found
        """
        self.get_task(task_id)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._changed(TASKS_RECORD)

    def apply(
        self,
        tasks: Iterable[Task] = (),
        goals: Iterable[Goal] = (),
        added_tasks: Iterable[Task] = (),
    ) -> None:
        """
        Replace existing tasks and goals by id in a single step.

        Every replaced id must already exist; otherwise nothing is written.
        added_tasks are appended in the same step.

        Raises:
            NotFoundError: If any id does not resolve
        """
        tasks = {task.id: task.model_copy(deep=True) for task in tasks}
        goals = {goal.id: goal.model_copy(deep=True) for goal in goals}
        added = [task.model_copy(deep=True) for task in added_tasks]

        known_tasks = {t.id for t in self._tasks}
        known_goals = {g.id for g in self._goals}
        if not tasks.keys() <= known_tasks:
            raise NotFoundError("Task not found")
        if not goals.keys() <= known_goals:
            raise NotFoundError("Goal not found")

        if tasks or added:
            self._tasks = [tasks.get(t.id, t) for t in self._tasks] + added
        if goals:
            self._goals = [goals.get(g.id, g) for g in self._goals]

        if tasks or added:
            self._changed(TASKS_RECORD)
        if goals:
            self._changed(GOALS_RECORD)

    def replace_project(self, goal: Goal, tasks: list[Task]) -> int:
        """
        Replace a goal and its tasks wholesale.

        Drops any goal with the same id, and any task that is linked to the
        goal or shares an id with one of the incoming tasks, then appends the
        incoming entities.

        Returns:
            Number of existing tasks removed
        """
        incoming_ids = {task.id for task in tasks}
        kept_tasks = [
            t for t in self._tasks
            if t.linked_goal_id != goal.id and t.id not in incoming_ids
        ]
        removed = len(self._tasks) - len(kept_tasks)

        self._goals = [g for g in self._goals if g.id != goal.id]
        self._goals.append(goal.model_copy(deep=True))
        self._tasks = kept_tasks + [task.model_copy(deep=True) for task in tasks]

        self._changed(GOALS_RECORD)
        self._changed(TASKS_RECORD)
        return removed

    def snapshot(self, record: str) -> list[dict]:
        """JSON-ready documents for one persisted record."""
        items = self._tasks if record == TASKS_RECORD else self._goals
        return [item.model_dump(mode="json", by_alias=True) for item in items]

    def _changed(self, record: str) -> None:
        if self.on_change is None:
            return
        self.on_change(record, self.snapshot(record))
