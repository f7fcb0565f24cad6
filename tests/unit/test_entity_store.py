"""Tests for EntityStore."""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from pydantic import ValidationError


class TestEntityStoreQueries:
    """Tests for reading from the store."""

    def test_find_and_get_goal(self, make_goal):
        """Test goal lookup by id."""
        from app.exceptions import NotFoundError
        from app.services.entity_store import EntityStore

        store = EntityStore(goals=[make_goal()])

        assert store.find_goal("g1").title == "Consulting internship"
        assert store.find_goal("missing") is None
        with pytest.raises(NotFoundError, match="Goal not found"):
            store.get_goal("missing")

    def test_get_task_not_found(self):
        """Test task lookup for an unknown id."""
        from app.exceptions import NotFoundError
        from app.services.entity_store import EntityStore

        with pytest.raises(NotFoundError, match="Task not found"):
            EntityStore().get_task("missing")

    def test_accessors_return_copies(self, make_task):
        """Test that mutating a returned task does not touch the store."""
        from app.services.entity_store import EntityStore

        store = EntityStore(tasks=[make_task()])

        task = store.get_task("t1")
        task.title = "Changed"
        store.tasks[0].tags.append("leak")

        assert store.get_task("t1").title == "Learn more about quantity surveying"
        assert store.get_task("t1").tags == []

    def test_list_tasks_filters(self, make_task):
        """Test filtering tasks by goal, backlog flag and status."""
        from app.models.task import TaskStatus
        from app.services.entity_store import EntityStore

        store = EntityStore(tasks=[
            make_task(id="a"),
            make_task(id="b", is_backlog=True),
            make_task(id="c", linked_goal_id="g2", status=TaskStatus.COMPLETED),
            make_task(id="d", linked_goal_id=None),
        ])

        assert [t.id for t in store.list_tasks(goal_id="g1")] == ["a", "b"]
        assert [t.id for t in store.list_tasks(backlog=True)] == ["b"]
        assert [t.id for t in store.list_tasks(status=TaskStatus.COMPLETED)] == ["c"]
        assert [t.id for t in store.list_tasks(goal_id="g1", backlog=False)] == ["a"]
        assert [t.id for t in store.tasks_for_goal("g2")] == ["c"]


class TestEntityStoreMutations:
    """Tests for changing the store."""

    def test_create_goal_starts_at_zero(self):
        """Test created goals have a fresh id and no logged time."""
        from app.models.goal import GoalCreate
        from app.services.entity_store import EntityStore

        store = EntityStore()
        goal = store.create_goal(GoalCreate(
            title="Pilot training",
            deadline=datetime(2030, 6, 1, tzinfo=timezone.utc),
            target_hours=100,
        ))

        assert goal.id
        assert goal.logged_hours == 0
        assert store.get_goal(goal.id).title == "Pilot training"

    def test_create_task_defaults(self):
        """Test created tasks start as todo with no recorded time."""
        from app.models.task import TaskCreate, TaskStatus
        from app.services.entity_store import EntityStore

        store = EntityStore()
        task = store.create_task(TaskCreate(title="Mindmap app", linked_goal_id="nowhere"))

        assert task.status == TaskStatus.TODO
        assert task.actual_duration_minutes == 0
        assert task.created_at.tzinfo is not None
        # dangling goal links are allowed
        assert store.get_task(task.id).linked_goal_id == "nowhere"

    def test_update_task_applies_whitelisted_fields(self, make_task):
        """Test a task update keeps identity and lifecycle fields."""
        from app.models.task import TaskUpdate
        from app.services.entity_store import EntityStore

        original = make_task(actual_duration_minutes=30)
        store = EntityStore(tasks=[original])

        updated = store.update_task("t1", TaskUpdate(title="Renamed", tags=["study"]))

        assert updated.title == "Renamed"
        assert updated.tags == ["study"]
        assert updated.id == "t1"
        assert updated.created_at == original.created_at
        assert updated.actual_duration_minutes == 30

    def test_update_task_can_unlink_goal(self, make_task):
        """Test sending null clears the goal link."""
        from app.models.task import TaskUpdate
        from app.services.entity_store import EntityStore

        store = EntityStore(tasks=[make_task()])

        updated = store.update_task("t1", TaskUpdate.model_validate({"linkedGoalId": None}))

        assert updated.linked_goal_id is None

    def test_update_task_rejects_null_title(self, make_task):
        """Test a merged task that fails validation is not written."""
        from app.models.task import TaskUpdate
        from app.services.entity_store import EntityStore

        store = EntityStore(tasks=[make_task()])

        with pytest.raises(ValidationError):
            store.update_task("t1", TaskUpdate.model_validate({"title": None}))
        assert store.get_task("t1").title == "Learn more about quantity surveying"

    def test_update_goal_keeps_logged_hours(self, make_goal):
        """Test a goal update never touches logged hours."""
        from app.models.goal import GoalUpdate
        from app.services.entity_store import EntityStore

        store = EntityStore(goals=[make_goal()])

        updated = store.update_goal("g1", GoalUpdate(target_hours=60))

        assert updated.target_hours == 60
        assert updated.logged_hours == 12

    def test_delete_goal_leaves_tasks(self, make_goal, make_task):
        """Test deleting a goal keeps its tasks with a dangling link."""
        from app.services.entity_store import EntityStore

        store = EntityStore(goals=[make_goal()], tasks=[make_task()])

        store.delete_goal("g1")

        assert store.goals == []
        assert store.get_task("t1").linked_goal_id == "g1"

    def test_delete_task(self, make_task):
        """Test deleting a task."""
        from app.exceptions import NotFoundError
        from app.services.entity_store import EntityStore

        store = EntityStore(tasks=[make_task()])
        store.delete_task("t1")

        assert store.tasks == []
        with pytest.raises(NotFoundError):
            store.delete_task("t1")

    def test_apply_is_all_or_nothing(self, make_goal, make_task):
        """Test that an unknown id in apply writes nothing."""
        from app.exceptions import NotFoundError
        from app.services.entity_store import EntityStore

        store = EntityStore(goals=[make_goal()], tasks=[make_task()])
        task = store.get_task("t1").model_copy(update={"title": "Changed"})
        ghost = make_goal(id="ghost", logged_hours=99)

        with pytest.raises(NotFoundError):
            store.apply(tasks=[task], goals=[ghost])

        assert store.get_task("t1").title == "Learn more about quantity surveying"

    def test_apply_appends_added_tasks(self, make_task):
        """Test added tasks land after existing ones in one step."""
        from app.services.entity_store import EntityStore

        on_change = MagicMock()
        store = EntityStore(tasks=[make_task()], on_change=on_change)

        store.apply(
            tasks=[store.get_task("t1").model_copy(update={"title": "Changed"})],
            added_tasks=[make_task(id="t2")],
        )

        assert [t.id for t in store.tasks] == ["t1", "t2"]
        assert store.get_task("t1").title == "Changed"
        on_change.assert_called_once()

    def test_replace_project(self, make_goal, make_task):
        """Test project replacement drops stale and colliding tasks."""
        from app.services.entity_store import EntityStore

        store = EntityStore(
            goals=[make_goal(), make_goal(id="g2")],
            tasks=[
                make_task(id="stale"),
                make_task(id="shared", linked_goal_id="g2"),
                make_task(id="other", linked_goal_id="g2"),
            ],
        )

        removed = store.replace_project(
            make_goal(logged_hours=20),
            [make_task(id="fresh"), make_task(id="shared")],
        )

        assert removed == 2
        assert [g.id for g in store.goals] == ["g2", "g1"]
        assert store.get_goal("g1").logged_hours == 20
        assert [t.id for t in store.tasks] == ["other", "fresh", "shared"]


class TestEntityStoreChangeHook:
    """Tests for change notifications."""

    def test_hook_receives_full_snapshot(self, make_task):
        """Test the hook gets the whole task collection in camelCase."""
        from app.models.task import TaskCreate
        from app.services.entity_store import EntityStore, TASKS_RECORD

        on_change = MagicMock()
        store = EntityStore(tasks=[make_task()], on_change=on_change)

        store.create_task(TaskCreate(title="Second"))

        record, documents = on_change.call_args.args
        assert record == TASKS_RECORD
        assert [d["title"] for d in documents] == [
            "Learn more about quantity surveying",
            "Second",
        ]
        assert "linkedGoalId" in documents[0]

    def test_hook_fires_per_record(self, make_goal, make_task):
        """Test a project replacement reports both records."""
        from app.services.entity_store import EntityStore, GOALS_RECORD, TASKS_RECORD

        on_change = MagicMock()
        store = EntityStore(on_change=on_change)

        store.replace_project(make_goal(), [make_task()])

        records = [c.args[0] for c in on_change.call_args_list]
        assert records == [GOALS_RECORD, TASKS_RECORD]

    def test_empty_add_is_silent(self):
        """Test adding nothing does not trigger persistence."""
        from app.services.entity_store import EntityStore

        on_change = MagicMock()
        store = EntityStore(on_change=on_change)

        store.add_tasks([])

        on_change.assert_not_called()
