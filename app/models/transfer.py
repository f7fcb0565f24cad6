"""Project transfer model definitions."""
from datetime import datetime

from app.models.base import CamelModel
from app.models.goal import Goal
from app.models.task import Task

EXPORT_VERSION = 1

REPORT_HEADER = ["Date", "Task Title", "Category", "Duration (min)", "Status", "Notes"]


class ExportDocument(CamelModel):
    """A goal and its tasks in interchange form."""

    version: int = EXPORT_VERSION
    exported_at: datetime
    goal: Goal
    tasks: list[Task]


class ImportResult(CamelModel):
    """Summary of a successful import."""

    goal_id: str
    goal_title: str
    imported_tasks: int
    replaced_tasks: int
