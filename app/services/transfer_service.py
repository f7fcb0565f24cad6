"""Transfer service - project export, timesheet report and import."""
import csv
import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from app.exceptions import ImportValidationError
from app.models.goal import Goal
from app.models.task import Task
from app.models.transfer import REPORT_HEADER, ExportDocument, ImportResult
from app.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


def _first_error(error: ValidationError) -> str:
    detail = error.errors()[0]
    location = ".".join(str(part) for part in detail["loc"])
    return f"{location}: {detail['msg']}" if location else detail["msg"]


def report_row(task: Task) -> list[str]:
    """Project a task to one timesheet row. Dates are UTC calendar days."""
    created_at = task.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return [
        created_at.astimezone(timezone.utc).strftime("%Y-%m-%d"),
        task.title,
        task.category.value,
        str(task.actual_duration_minutes),
        task.status.value,
        task.description or "",
    ]


class TransferService:
    """Service for moving a goal and its tasks in and out of the store."""

    def __init__(self, store: EntityStore):
        """Initialize service with the entity store."""
        self.store = store

    def export_project(
        self,
        goal_id: str,
        exported_at: Optional[datetime] = None,
    ) -> ExportDocument:
        """
        Export a goal with every task linked to it.

        Args:
            goal_id: Goal id
            exported_at: Optional export time (defaults to now)

        Returns:
            Export document

        Raises:
            NotFoundError: If goal not found
        """
        goal = self.store.get_goal(goal_id)
        return ExportDocument(
            exported_at=exported_at or datetime.now(timezone.utc),
            goal=goal,
            tasks=self.store.tasks_for_goal(goal_id),
        )

    def build_report(self, goal_id: str) -> str:
        """
        Render the timesheet report for a goal's tasks as CSV.

        Tasks referencing the id are reported even when the goal itself
        no longer exists.

        Args:
            goal_id: Goal id

        Returns:
            CSV text with header row
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(REPORT_HEADER)
        for task in self.store.tasks_for_goal(goal_id):
            writer.writerow(report_row(task))
        return buffer.getvalue()

    def report_filename(self, goal_id: str) -> str:
        goal = self.store.find_goal(goal_id)
        stem = goal.title if goal else goal_id
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in stem)
        return f"{safe}_timesheet.csv"

    def parse_document(self, payload: Any) -> tuple[Goal, list[Task]]:
        """
        Validate an import document.

        Args:
            payload: Parsed JSON value, or raw JSON text / bytes

        Returns:
            Tuple of (goal, tasks)

        Raises:
            ImportValidationError: If the document is malformed
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError:
                raise ImportValidationError("document", "Document is not valid JSON")

        if not isinstance(payload, dict):
            raise ImportValidationError("document", "Document must be a JSON object")
        if payload.get("goal") is None:
            raise ImportValidationError("goal", "Missing required field: goal")
        if "tasks" not in payload or payload["tasks"] is None:
            raise ImportValidationError("tasks", "Missing required field: tasks")
        if not isinstance(payload["tasks"], list):
            raise ImportValidationError("tasks", "Field tasks must be a list")

        try:
            goal = Goal.model_validate(payload["goal"])
        except ValidationError as e:
            raise ImportValidationError("goal", f"Invalid goal: {_first_error(e)}")

        tasks = []
        for index, item in enumerate(payload["tasks"]):
            try:
                tasks.append(Task.model_validate(item))
            except ValidationError as e:
                raise ImportValidationError(
                    f"tasks[{index}]",
                    f"Invalid task at index {index}: {_first_error(e)}",
                )

        return goal, tasks

    def import_project(self, payload: Any) -> ImportResult:
        """
        Merge an exported project into the store by full replacement.

        Nothing is written unless the whole document validates.

        Args:
            payload: Parsed JSON value, or raw JSON text / bytes

        Returns:
            Import summary

        Raises:
            ImportValidationError: If the document is malformed
        """
        goal, tasks = self.parse_document(payload)
        replaced = self.store.replace_project(goal, tasks)
        logger.info(
            "Imported goal %s with %d tasks (%d replaced)",
            goal.id,
            len(tasks),
            replaced,
        )
        return ImportResult(
            goal_id=goal.id,
            goal_title=goal.title,
            imported_tasks=len(tasks),
            replaced_tasks=replaced,
        )
