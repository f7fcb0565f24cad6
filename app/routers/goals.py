"""Goal router - API endpoints for goal management."""
from fastapi import APIRouter, Depends, HTTPException, status

from app.exceptions import NotFoundError
from app.models.goal import Goal, GoalCreate, GoalProgress, GoalUpdate
from app.services.entity_store import EntityStore
from app.services.project_service import ProjectService
from app.state import get_store


router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    store: EntityStore = Depends(get_store),
):
    """
    Create a new goal.

    - Starts with zero logged hours
    - Any task bank is ignored; use POST /projects to file it as backlog
    """
    return store.create_goal(goal)


@router.get("", response_model=list[Goal])
async def list_goals(
    store: EntityStore = Depends(get_store),
):
    """List all goals in store order."""
    return store.goals


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(
    goal_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Get a single goal by id.

    - Returns 404 if goal not found
    """
    try:
        return store.get_goal(goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    store: EntityStore = Depends(get_store),
):
    """
    Update a goal.

    - Only descriptive fields can change; logged hours cannot
    - Returns 404 if goal not found
    """
    try:
        return store.update_goal(goal_id, goal_update)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Delete a goal.

    - Linked tasks are kept with a dangling goal reference
    - Returns 404 if goal not found
    """
    try:
        store.delete_goal(goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted_count": 1}


@router.get("/{goal_id}/progress", response_model=GoalProgress)
async def get_goal_progress(
    goal_id: str,
    store: EntityStore = Depends(get_store),
):
    """
    Get progress toward a goal.

    - Returns 404 if goal not found
    """
    service = ProjectService(store)
    try:
        return service.progress(goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
