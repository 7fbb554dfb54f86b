"""Task CRUD, validation, lifecycle, and parent progress rollup."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from tracker.clock import Clock, utc_now
from tracker.errors import NotFound, ValidationFailed
from tracker.hierarchy import calculate_parent_progress, validate_subtask_creation
from tracker.models import Task, TaskDifficulty, TaskStatus
from tracker.validation import (
    check_int_range,
    check_max_length,
    check_non_negative,
    parse_date,
    require_enum,
    require_string,
    sanitize_string,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 5000

UPDATABLE_FIELDS = {
    "title",
    "description",
    "progress",
    "status",
    "estimated_minutes",
    "max_minutes",
    "planned_for_date",
    "due_date",
    "task_type_id",
    "difficulty",
}


# ── Validation ────────────────────────────────────────────────


def validate_create(params: dict[str, Any], today: date) -> None:
    """Raise ValidationFailed for the first bad field in a create request."""
    require_string("userId", params.get("user_id"), "User ID")
    require_string("title", params.get("title"), "Task title", MAX_TITLE_LENGTH)
    require_string("projectId", params.get("project_id"), "Project ID")

    estimated = params.get("estimated_minutes")
    maximum = params.get("max_minutes")
    check_non_negative("estimatedMinutes", estimated, "Estimated time")
    check_non_negative("maxMinutes", maximum, "Max time")
    if estimated is not None and maximum is not None and estimated > maximum:
        raise ValidationFailed("estimatedMinutes", "Estimated time cannot exceed max time")

    if params.get("difficulty") is not None:
        require_enum("difficulty", params["difficulty"], TaskDifficulty)

    if params.get("due_date"):
        if parse_date("dueDate", params["due_date"]) < today:
            raise ValidationFailed("dueDate", "Due date cannot be in the past")

    check_max_length("description", params.get("description"), MAX_DESCRIPTION_LENGTH, "Description")


def validate_update(params: dict[str, Any]) -> None:
    unknown = set(params) - UPDATABLE_FIELDS
    if unknown:
        field = sorted(unknown)[0]
        raise ValidationFailed(field, f"Field cannot be updated: {field}")

    if "title" in params:
        require_string("title", params["title"], "Task title", MAX_TITLE_LENGTH)
    if params.get("progress") is not None:
        check_int_range("progress", params["progress"], 0, 100, "Progress")
    if params.get("status") is not None:
        require_enum("status", params["status"], TaskStatus)
    if params.get("difficulty") is not None:
        require_enum("difficulty", params["difficulty"], TaskDifficulty)
    check_non_negative("estimatedMinutes", params.get("estimated_minutes"), "Estimated time")
    check_non_negative("maxMinutes", params.get("max_minutes"), "Max time")
    check_max_length("description", params.get("description"), MAX_DESCRIPTION_LENGTH, "Description")


def lifecycle_fields(task: Task, progress: int | None, status: TaskStatus | None, now: datetime) -> dict[str, Any]:
    """Progress/status/completed_at changes implied by an update.

    - progress 100 without an explicit status completes the task
    - status COMPLETED without an explicit progress sets progress to 100
    - completed_at is stamped on entering COMPLETED and cleared on leaving it
    """
    fields: dict[str, Any] = {}
    if progress is not None:
        fields["progress"] = progress
        if progress == 100 and status is None:
            status = TaskStatus.COMPLETED
    if status is not None:
        fields["status"] = status
        if status == TaskStatus.COMPLETED and progress is None:
            fields["progress"] = 100

    new_status = fields.get("status", task.status)
    if new_status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
        fields["completed_at"] = now
    elif new_status != TaskStatus.COMPLETED and task.completed_at is not None:
        fields["completed_at"] = None
    return fields


# ── Facade ────────────────────────────────────────────────────


class TaskService:
    def __init__(self, tasks, projects=None, clock: Clock = utc_now):
        self.tasks = tasks
        self.projects = projects
        self.clock = clock

    def _get(self, task_id: str) -> Task:
        task = self.tasks.find_by_id(task_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    def create(
        self,
        user_id: str,
        project_id: str,
        title: str,
        difficulty: TaskDifficulty | str | None = None,
        estimated_minutes: int | None = None,
        max_minutes: int | None = None,
        due_date: str | None = None,
        parent_task_id: str | None = None,
        task_type_id: str | None = None,
        description: str | None = None,
        planned_for_date: str | None = None,
    ) -> Task:
        params = {
            "user_id": user_id,
            "project_id": project_id,
            "title": sanitize_string(title) if isinstance(title, str) else title,
            "difficulty": difficulty,
            "estimated_minutes": estimated_minutes,
            "max_minutes": max_minutes,
            "due_date": due_date,
            "description": description,
        }
        validate_create(params, self.clock().date())

        if self.projects is not None and self.projects.find_by_id(project_id) is None:
            raise NotFound("Project", project_id)

        if parent_task_id:
            parent = self.tasks.find_by_id(parent_task_id)
            if parent is None:
                raise NotFound("Task", parent_task_id)
            validate_subtask_creation(parent)

        task = self.tasks.create(Task(
            user_id=user_id,
            project_id=project_id,
            parent_task_id=parent_task_id or None,
            title=params["title"],
            description=description.strip() if description and description.strip() else None,
            difficulty=require_enum("difficulty", difficulty or TaskDifficulty.MEDIUM, TaskDifficulty),
            progress=0,
            status=TaskStatus.BACKLOG,
            estimated_minutes=estimated_minutes or None,
            max_minutes=max_minutes or None,
            actual_minutes=0,
            planned_for_date=planned_for_date or None,
            due_date=due_date or None,
            task_type_id=task_type_id or None,
            completed_at=None,
        ))
        logger.info("Created task %s in project %s", task.id, project_id)
        return task

    def update(self, task_id: str, **params: Any) -> Task:
        """Apply field changes, then roll progress up to the parent if any."""
        if isinstance(params.get("title"), str):
            params["title"] = sanitize_string(params["title"])
        validate_update(params)
        existing = self._get(task_id)

        updates: dict[str, Any] = {}
        if "title" in params:
            updates["title"] = params["title"]
        if "description" in params:
            desc = params["description"]
            updates["description"] = desc.strip() if desc and desc.strip() else None
        if params.get("difficulty") is not None:
            updates["difficulty"] = TaskDifficulty(params["difficulty"])
        for key in ("estimated_minutes", "max_minutes", "planned_for_date", "due_date", "task_type_id"):
            if key in params:
                updates[key] = params[key]

        status = TaskStatus(params["status"]) if params.get("status") is not None else None
        updates.update(lifecycle_fields(existing, params.get("progress"), status, self.clock()))

        updated = self.tasks.update(task_id, updates)
        logger.info("Updated task %s (%s)", task_id, ", ".join(sorted(updates)) or "no changes")

        if updated.parent_task_id:
            self.update_parent_progress(updated.parent_task_id)
        return updated

    def update_progress(self, task_id: str, progress: int) -> Task:
        return self.update(task_id, progress=progress)

    def complete(self, task_id: str) -> Task:
        return self.update(task_id, status=TaskStatus.COMPLETED)

    def update_status(self, task_id: str, status: TaskStatus | str) -> Task:
        return self.update(task_id, status=status)

    def update_parent_progress(self, parent_task_id: str) -> Task | None:
        """Recompute a parent's progress from its live sub-tasks.

        One level only: the parent is a root task, so nothing climbs further.
        Returns None (and writes nothing) when no sub-tasks remain.
        """
        subtasks = self.tasks.find_by_parent_id(parent_task_id)
        if not subtasks:
            return None
        parent = self.tasks.find_by_id(parent_task_id)
        if parent is None:
            raise NotFound("Task", parent_task_id)
        progress = calculate_parent_progress(subtasks)
        fields = lifecycle_fields(parent, progress, None, self.clock())
        logger.debug("Rolled up parent %s to %d%% from %d sub-tasks", parent_task_id, progress, len(subtasks))
        return self.tasks.update(parent_task_id, fields)

    def delete(self, task_id: str) -> None:
        task = self._get(task_id)
        self.tasks.delete(task_id)
        logger.info("Deleted task %s", task_id)
        if task.parent_task_id:
            self.update_parent_progress(task.parent_task_id)

    # Queries

    def find_by_id(self, task_id: str) -> Task | None:
        return self.tasks.find_by_id(task_id)

    def find_by_project(self, project_id: str) -> list[Task]:
        return self.tasks.find_by_project(project_id)

    def find_by_user(self, user_id: str) -> list[Task]:
        return self.tasks.find_by_user(user_id)

    def find_by_planned_date(self, user_id: str, day: str) -> list[Task]:
        return self.tasks.find_by_planned_date(user_id, parse_date("date", day).isoformat())

    def find_by_status(self, user_id: str, status: TaskStatus | str) -> list[Task]:
        return self.tasks.find_by_status(user_id, require_enum("status", status, TaskStatus))

    def find_completed(self, user_id: str) -> list[Task]:
        return self.tasks.find_completed(user_id)

    def find_subtasks(self, parent_task_id: str) -> list[Task]:
        return self.tasks.find_by_parent_id(parent_task_id)
