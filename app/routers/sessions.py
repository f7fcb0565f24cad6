"""Session endpoints - focus session operations."""
from fastapi import APIRouter, Depends, HTTPException, status

from app.exceptions import NotFoundError
from app.models.session import CommitResponse, Notification, SessionSetup, SessionSnapshot
from app.services.notifier import SessionNotifier
from app.services.session_service import SessionManager
from app.state import get_notifier, get_session_manager


router = APIRouter(prefix="/sessions", tags=["sessions"])


def _lookup(sessions: SessionManager, task_id: str):
    try:
        return sessions.get(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/notifications", response_model=list[Notification])
async def list_notifications(
    notifier: SessionNotifier = Depends(get_notifier),
):
    """Recent notifications, oldest first."""
    return list(notifier.recent)


@router.post("/{task_id}", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def open_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Open a session in setup state.

    - Duration defaults to the task's planned duration
    - Only one session can be active at a time
    - Completed tasks cannot be worked again
    """
    try:
        return sessions.open(task_id).snapshot()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{task_id}", response_model=SessionSnapshot)
async def get_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Get the current state of a session.

    - Returns 404 if no session is open for the task
    """
    return _lookup(sessions, task_id).snapshot()


@router.put("/{task_id}/duration", response_model=SessionSnapshot)
async def configure_session(
    task_id: str,
    setup: SessionSetup,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Override the session duration.

    - Only allowed before the session starts
    """
    session = _lookup(sessions, task_id)
    try:
        session.configure(setup.hours, setup.minutes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


async def _transition(sessions: SessionManager, task_id: str, action: str) -> SessionSnapshot:
    session = _lookup(sessions, task_id)
    try:
        getattr(session, action)()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@router.post("/{task_id}/start", response_model=SessionSnapshot)
async def start_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Start the countdown.

    - Rejected when the duration is zero
    """
    return await _transition(sessions, task_id, "start")


@router.post("/{task_id}/pause", response_model=SessionSnapshot)
async def pause_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Pause a running session."""
    return await _transition(sessions, task_id, "pause")


@router.post("/{task_id}/resume", response_model=SessionSnapshot)
async def resume_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Resume a paused session."""
    return await _transition(sessions, task_id, "resume")


@router.post("/{task_id}/toggle", response_model=SessionSnapshot)
async def toggle_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Pause a running session or resume a paused one."""
    return await _transition(sessions, task_id, "toggle")


@router.post("/{task_id}/finish", response_model=SessionSnapshot)
async def finish_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Stop early and move to review."""
    return await _transition(sessions, task_id, "finish")


@router.post("/{task_id}/subtasks/{subtask_id}/toggle", response_model=SessionSnapshot)
async def toggle_session_subtask(
    task_id: str,
    subtask_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Flip a subtask in the session's working copy.

    - The task itself is only updated on commit
    """
    session = _lookup(sessions, task_id)
    try:
        session.toggle_subtask(subtask_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


async def _commit(sessions: SessionManager, task_id: str, task_done: bool) -> CommitResponse:
    try:
        result, task, goal = sessions.commit(task_id, task_done)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CommitResponse(result=result, task=task, goal=goal)


@router.post("/{task_id}/save", response_model=CommitResponse)
async def save_progress(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Commit the session and keep the task open.

    - Session must be in review
    - Adds the rounded-up minutes to the task and its linked goal
    """
    return await _commit(sessions, task_id, task_done=False)


@router.post("/{task_id}/complete", response_model=CommitResponse)
async def mark_complete(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Commit the session and mark the task completed.

    - Session must be in review
    """
    return await _commit(sessions, task_id, task_done=True)


@router.delete("/{task_id}")
async def discard_session(
    task_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Discard a session before review.

    - No time is recorded
    """
    _lookup(sessions, task_id)
    try:
        sessions.discard(task_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"discarded": True}
