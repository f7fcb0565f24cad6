"""Project router - project creation, export, report and import."""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from app.exceptions import ImportValidationError, NotFoundError
from app.models.base import CamelModel
from app.models.goal import Goal, GoalCreate
from app.models.task import Task
from app.models.transfer import ExportDocument, ImportResult
from app.services.entity_store import EntityStore
from app.services.project_service import ProjectService
from app.services.transfer_service import TransferService
from app.state import get_store


router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectResponse(CamelModel):
    """Response model for a created project."""

    goal: Goal
    tasks: list[Task]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: GoalCreate,
    store: EntityStore = Depends(get_store),
):
    """
    Create a new project.

    - Creates the goal with zero logged hours
    - Files every task bank entry as a backlog task linked to the goal
    """
    service = ProjectService(store)
    goal, tasks = service.create_project(project)
    return ProjectResponse(goal=goal, tasks=tasks)


@router.post("/import", response_model=ImportResult)
async def import_project(
    document: Any = Body(...),
    store: EntityStore = Depends(get_store),
):
    """
    Import an exported project.

    - Replaces the goal and every task linked to it
    - Returns 400 naming the offending field if the document is malformed
    """
    service = TransferService(store)
    try:
        return service.import_project(document)
    except ImportValidationError as e:
        raise HTTPException(status_code=400, detail={"field": e.field, "message": str(e)})


@router.get("/{goal_id}/export", response_model=ExportDocument)
async def export_project(
    goal_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Export a goal with its tasks.

    - Returns 404 if goal not found
    """
    service = TransferService(store)
    try:
        return service.export_project(goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{goal_id}/report", response_class=PlainTextResponse)
async def export_report(
    goal_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Timesheet report for a goal's tasks as CSV.

    - Works for tasks whose goal no longer exists
    """
    service = TransferService(store)
    return PlainTextResponse(
        service.build_report(goal_id),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{service.report_filename(goal_id)}"',
        },
    )
