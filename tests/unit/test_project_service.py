"""Tests for ProjectService."""
import pytest
from datetime import datetime, timezone


class TestProjectServiceCreate:
    """Tests for creating projects."""

    def test_create_project_files_task_bank(self):
        """Test bank items become linked backlog tasks."""
        from app.models.goal import GoalCreate
        from app.models.task import TaskCategory, TaskStatus
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore()
        service = ProjectService(store, bank_minutes=60)

        goal, tasks = service.create_project(GoalCreate.model_validate({
            "title": "Pilot training",
            "type": "long-term-forecast",
            "deadline": "2030-06-01T00:00:00Z",
            "targetHours": 100,
            "taskBank": [
                {"title": "Ground school"},
                {"title": "Simulator", "category": "activity"},
            ],
        }))

        assert goal.logged_hours == 0
        assert [t.id for t in tasks] == [f"{goal.id}_t_0", f"{goal.id}_t_1"]
        assert [t.category for t in tasks] == [TaskCategory.LEARNING, TaskCategory.ACTIVITY]
        assert all(t.planned_duration_minutes == 60 for t in tasks)
        assert all(t.is_backlog for t in tasks)
        assert all(t.linked_goal_id == goal.id for t in tasks)
        assert all(t.status == TaskStatus.TODO for t in tasks)
        assert len(store.tasks_for_goal(goal.id)) == 2

    def test_create_project_without_bank(self):
        """Test a project with no task bank creates only the goal."""
        from app.models.goal import GoalCreate
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore()

        goal, tasks = ProjectService(store).create_project(GoalCreate(
            title="Consulting internship",
            deadline=datetime(2030, 1, 31, tzinfo=timezone.utc),
            target_hours=40,
        ))

        assert tasks == []
        assert store.tasks == []
        assert store.get_goal(goal.id).title == "Consulting internship"


class TestProjectServiceProgress:
    """Tests for goal progress."""

    def test_progress_summary(self, make_goal):
        """Test percent, remaining hours and days left."""
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore(goals=[make_goal(logged_hours=12.75)])

        progress = ProjectService(store).progress(
            "g1", now=datetime(2030, 1, 1, tzinfo=timezone.utc)
        )

        assert progress.percent == 32
        assert progress.capped_percent == 32
        assert progress.remaining_hours == 27.25
        assert progress.days_remaining == 30

    def test_progress_over_target(self, make_goal):
        """Test progress past the target is capped for display."""
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore(goals=[make_goal(logged_hours=45)])

        progress = ProjectService(store).progress(
            "g1", now=datetime(2030, 1, 1, tzinfo=timezone.utc)
        )

        assert progress.percent == 113
        assert progress.capped_percent == 100
        assert progress.remaining_hours == 0

    def test_progress_past_deadline(self, make_goal):
        """Test days remaining goes negative after the deadline."""
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore(goals=[make_goal()])

        progress = ProjectService(store).progress(
            "g1", now=datetime(2030, 2, 2, tzinfo=timezone.utc)
        )

        assert progress.days_remaining == -2

    def test_progress_unknown_goal(self):
        """Test progress for a missing goal."""
        from app.exceptions import NotFoundError
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        with pytest.raises(NotFoundError):
            ProjectService(EntityStore()).progress("missing")


class TestTasksInProgress:
    """Tests for the in-progress task list."""

    def test_tasks_in_progress(self, make_task):
        """Test only unfinished tasks with recorded time are listed."""
        from app.models.task import TaskStatus
        from app.services.entity_store import EntityStore
        from app.services.project_service import ProjectService

        store = EntityStore(tasks=[
            make_task(id="fresh"),
            make_task(id="started", actual_duration_minutes=45),
            make_task(id="done", actual_duration_minutes=90, status=TaskStatus.COMPLETED),
        ])

        assert [t.id for t in ProjectService(store).tasks_in_progress()] == ["started"]
