"""Tests for tracker/tasks.py: validation, lifecycle, sub-tasks and rollup."""

import pytest

from tests.helpers import utc
from tracker.errors import (
    HierarchyDepthExceeded,
    InvalidParentState,
    NotFound,
    ValidationFailed,
)
from tracker.models import Task, TaskDifficulty, TaskStatus
from tracker.tasks import lifecycle_fields, validate_update


# ── Create ────────────────────────────────────────────────────


def test_create_defaults(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "  Write   release notes ")
    assert task.id
    assert task.title == "Write release notes"
    assert task.difficulty == TaskDifficulty.MEDIUM
    assert task.status == TaskStatus.BACKLOG
    assert task.progress == 0
    assert task.actual_minutes == 0
    assert task.parent_task_id is None
    assert task.completed_at is None
    assert task.created_at == utc(2026, 2, 12, 9, 0)


def test_create_with_options(tracker, project):
    task = tracker.tasks.create(
        "user-1", project.id, "Refactor",
        difficulty="HARD",
        estimated_minutes=60,
        max_minutes=90,
        due_date="2026-02-12",
        task_type_id="type-dev",
        description="  split the parser  ",
        planned_for_date="2026-02-13",
    )
    assert task.difficulty == TaskDifficulty.HARD
    assert task.estimated_minutes == 60
    assert task.max_minutes == 90
    assert task.due_date == "2026-02-12"
    assert task.description == "split the parser"
    assert tracker.tasks.find_by_planned_date("user-1", "2026-02-13") == [task]


@pytest.mark.parametrize("kwargs,field", [
    ({"title": ""}, "title"),
    ({"title": "\x01\x02"}, "title"),
    ({"title": "   "}, "title"),
    ({"title": "x" * 201}, "title"),
    ({"user_id": ""}, "userId"),
    ({"project_id": ""}, "projectId"),
    ({"estimated_minutes": -1}, "estimatedMinutes"),
    ({"max_minutes": -5}, "maxMinutes"),
    ({"estimated_minutes": 90, "max_minutes": 60}, "estimatedMinutes"),
    ({"difficulty": "IMPOSSIBLE"}, "difficulty"),
    ({"due_date": "2026-02-11"}, "dueDate"),
    ({"due_date": "12/02/2026"}, "dueDate"),
    ({"description": "d" * 5001}, "description"),
])
def test_create_validation(tracker, repos, project, kwargs, field):
    params = {"user_id": "user-1", "project_id": project.id, "title": "Task"}
    params.update(kwargs)
    with pytest.raises(ValidationFailed) as exc:
        tracker.tasks.create(**params)
    assert exc.value.field == field
    assert exc.value.code == "VALIDATION_ERROR"
    assert repos.tasks.find_all() == []


def test_create_title_at_limit(tracker, project):
    assert len(tracker.tasks.create("user-1", project.id, "x" * 200).title) == 200


def test_create_unknown_project(tracker):
    with pytest.raises(NotFound) as exc:
        tracker.tasks.create("user-1", "no-such-project", "Task")
    assert exc.value.entity == "Project"


# ── Sub-tasks ─────────────────────────────────────────────────


def test_create_subtask(tracker, project):
    parent = tracker.tasks.create("user-1", project.id, "Parent")
    child = tracker.tasks.create("user-1", project.id, "Child", parent_task_id=parent.id)
    assert child.parent_task_id == parent.id
    assert child.is_subtask
    assert tracker.tasks.find_subtasks(parent.id) == [child]


def test_subtask_of_subtask_rejected(tracker, repos, project):
    parent = tracker.tasks.create("user-1", project.id, "Parent")
    child = tracker.tasks.create("user-1", project.id, "Child", parent_task_id=parent.id)
    with pytest.raises(HierarchyDepthExceeded):
        tracker.tasks.create("user-1", project.id, "Grandchild", parent_task_id=child.id)
    assert len(repos.tasks.find_all()) == 2


def test_subtask_under_archived_parent_rejected(tracker, project):
    parent = tracker.tasks.create("user-1", project.id, "Parent")
    tracker.tasks.update_status(parent.id, "ARCHIVED")
    with pytest.raises(InvalidParentState):
        tracker.tasks.create("user-1", project.id, "Child", parent_task_id=parent.id)


def test_subtask_under_missing_parent(tracker, project):
    with pytest.raises(NotFound):
        tracker.tasks.create("user-1", project.id, "Child", parent_task_id="ghost")


# ── Lifecycle ─────────────────────────────────────────────────


def test_progress_100_completes(tracker, project, clock):
    task = tracker.tasks.create("user-1", project.id, "Task")
    clock.advance(minutes=30)
    done = tracker.tasks.update_progress(task.id, 100)
    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at == utc(2026, 2, 12, 9, 30)


def test_complete_sets_progress(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "Task")
    done = tracker.tasks.complete(task.id)
    assert done.progress == 100
    assert done.status == TaskStatus.COMPLETED
    assert tracker.tasks.find_completed("user-1") == [done]


def test_leaving_completed_clears_completed_at(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "Task")
    tracker.tasks.complete(task.id)
    reopened = tracker.tasks.update_status(task.id, TaskStatus.IN_PROGRESS)
    assert reopened.status == TaskStatus.IN_PROGRESS
    assert reopened.completed_at is None
    assert reopened.progress == 100


def test_recompleting_keeps_original_timestamp(tracker, project, clock):
    task = tracker.tasks.create("user-1", project.id, "Task")
    first = tracker.tasks.complete(task.id)
    clock.advance(minutes=10)
    again = tracker.tasks.update(task.id, progress=100)
    assert again.completed_at == first.completed_at


def test_explicit_status_wins_over_progress():
    task = Task(status=TaskStatus.TODO)
    fields = lifecycle_fields(task, 100, TaskStatus.IN_PROGRESS, utc(2026, 2, 12))
    assert fields == {"progress": 100, "status": TaskStatus.IN_PROGRESS}


@pytest.mark.parametrize("params,field", [
    ({"progress": 101}, "progress"),
    ({"progress": -1}, "progress"),
    ({"progress": 50.5}, "progress"),
    ({"status": "DONE"}, "status"),
    ({"title": ""}, "title"),
    ({"user_id": "someone-else"}, "user_id"),
])
def test_update_validation(params, field):
    with pytest.raises(ValidationFailed) as exc:
        validate_update(params)
    assert exc.value.field == field


def test_update_missing_task(tracker):
    with pytest.raises(NotFound):
        tracker.tasks.update("ghost", title="x")


def test_update_plain_fields(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "Task")
    updated = tracker.tasks.update(task.id, title=" Renamed ", difficulty="EASY", estimated_minutes=25)
    assert updated.title == "Renamed"
    assert updated.difficulty == TaskDifficulty.EASY
    assert updated.estimated_minutes == 25
    assert updated.status == TaskStatus.BACKLOG


# ── Rollup ────────────────────────────────────────────────────


@pytest.fixture
def family(tracker, project):
    parent = tracker.tasks.create("user-1", project.id, "Parent")
    a = tracker.tasks.create("user-1", project.id, "A", parent_task_id=parent.id)
    b = tracker.tasks.create("user-1", project.id, "B", parent_task_id=parent.id)
    return parent, a, b


def test_subtask_progress_rolls_up(tracker, family):
    parent, a, b = family
    tracker.tasks.update_progress(a.id, 100)
    tracker.tasks.update_progress(b.id, 25)
    # (100 + 25) / 2 = 62.5
    assert tracker.tasks.find_by_id(parent.id).progress == 63


def test_all_subtasks_done_completes_parent(tracker, family):
    parent, a, b = family
    tracker.tasks.complete(a.id)
    tracker.tasks.complete(b.id)
    rolled = tracker.tasks.find_by_id(parent.id)
    assert rolled.progress == 100
    assert rolled.status == TaskStatus.COMPLETED
    assert rolled.completed_at is not None


def test_deleting_subtask_recomputes_parent_once(tracker, repos, family, monkeypatch):
    parent, a, b = family
    tracker.tasks.update_progress(a.id, 80)
    tracker.tasks.update_progress(b.id, 20)
    assert tracker.tasks.find_by_id(parent.id).progress == 50

    writes = []
    original = repos.tasks.update

    def spy(task_id, fields):
        writes.append(task_id)
        return original(task_id, fields)

    monkeypatch.setattr(repos.tasks, "update", spy)
    tracker.tasks.delete(b.id)

    assert writes == [parent.id]
    assert tracker.tasks.find_by_id(parent.id).progress == 80
    assert tracker.tasks.find_by_id(b.id) is None


def test_deleting_last_subtask_leaves_parent(tracker, family):
    parent, a, b = family
    tracker.tasks.update_progress(a.id, 40)
    tracker.tasks.update_progress(b.id, 60)
    tracker.tasks.delete(a.id)
    tracker.tasks.delete(b.id)
    assert tracker.tasks.find_by_id(parent.id).progress == 60
    assert tracker.tasks.update_parent_progress(parent.id) is None


def test_delete_missing_task(tracker):
    with pytest.raises(NotFound):
        tracker.tasks.delete("ghost")


def test_queries(tracker, project):
    t1 = tracker.tasks.create("user-1", project.id, "One")
    tracker.tasks.create("user-2", project.id, "Other user")
    t2 = tracker.tasks.update_status(tracker.tasks.create("user-1", project.id, "Two").id, "TODO")
    assert {t.id for t in tracker.tasks.find_by_user("user-1")} == {t1.id, t2.id}
    assert len(tracker.tasks.find_by_project(project.id)) == 3
    assert tracker.tasks.find_by_status("user-1", "TODO") == [t2]
    with pytest.raises(ValidationFailed):
        tracker.tasks.find_by_status("user-1", "NOPE")


def test_update_rejects_title_that_sanitizes_to_empty(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "Keep me")
    with pytest.raises(ValidationFailed) as exc:
        tracker.tasks.update(task.id, title="\x01\x02 \x7f")
    assert exc.value.field == "title"
    assert tracker.tasks.find_by_id(task.id).title == "Keep me"


def test_update_sanitizes_title(tracker, project):
    task = tracker.tasks.create("user-1", project.id, "Old")
    assert tracker.tasks.update(task.id, title="  New \x07  name ").title == "New name"
