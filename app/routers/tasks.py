"""Task router - API endpoints for tasks and the backlog."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.exceptions import NotFoundError
from app.models.task import SubtaskMove, SubtaskPromotion, Task, TaskCreate, TaskStatus, TaskUpdate
from app.services.backlog_service import BacklogService
from app.services.entity_store import EntityStore
from app.services.project_service import ProjectService
from app.state import get_store


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    store: EntityStore = Depends(get_store),
):
    """
    Create a new task.

    - Starts as todo with no recorded time
    - The goal link is not checked; dangling links are allowed
    """
    return store.create_task(task)


@router.get("", response_model=list[Task])
async def list_tasks(
    goal_id: Optional[str] = Query(None, description="Filter by linked goal"),
    backlog: Optional[bool] = Query(None, description="Filter by backlog flag"),
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    store: EntityStore = Depends(get_store),
):
    """
    List tasks.

    - Optional filters: goal_id, backlog, status
    """
    return store.list_tasks(goal_id=goal_id, backlog=backlog, status=status)


@router.get("/in-progress", response_model=list[Task])
async def list_tasks_in_progress(
    store: EntityStore = Depends(get_store),
):
    """List tasks with recorded time that are not completed yet."""
    return ProjectService(store).tasks_in_progress()


@router.post("/backlog", response_model=list[Task], status_code=status.HTTP_201_CREATED)
async def promote_subtasks(
    promotion: SubtaskPromotion,
    store: EntityStore = Depends(get_store),
):
    """
    Create backlog tasks from subtasks.

    - One task per subtask, planned for its allocated minutes or the default
    - Source subtasks are not touched
    """
    service = BacklogService(store)
    return service.promote_subtasks_to_backlog(promotion.subtasks, promotion.goal_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Get a single task by id.

    - Returns 404 if task not found
    """
    try:
        return store.get_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_update: TaskUpdate,
    store: EntityStore = Depends(get_store),
):
    """
    Update a task.

    - Status and recorded time only change through sessions
    - Returns 404 if task not found
    """
    try:
        return store.update_task(task_id, task_update)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Delete a task.

    - Returns 404 if task not found
    """
    try:
        store.delete_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted_count": 1}


@router.post("/{task_id}/backlog/toggle", response_model=Task)
async def toggle_backlog(
    task_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Move a task into or out of the backlog.

    - Returns 404 if task not found
    """
    service = BacklogService(store)
    try:
        return service.toggle_backlog(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/{task_id}/subtasks/backlog",
    response_model=list[Task],
    status_code=status.HTTP_201_CREATED,
)
async def move_subtasks_to_backlog(
    task_id: str,
    move: SubtaskMove,
    store: EntityStore = Depends(get_store),
):
    """
    Move subtasks out of a task into the backlog.

    - New tasks keep the source task's goal link
    - Returns 404 if the task or a subtask is not found
    """
    service = BacklogService(store)
    try:
        return service.move_subtasks_to_backlog(task_id, move.subtask_ids)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
