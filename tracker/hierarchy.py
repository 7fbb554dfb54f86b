"""Parent/sub-task rules and progress rollup.

Hierarchies are at most two levels deep: root tasks and their direct
sub-tasks. Depth is enforced when a sub-task is created, so nothing here
walks the tree.
"""

from __future__ import annotations

from typing import Iterable

from tracker.errors import HierarchyDepthExceeded, InvalidParentState
from tracker.models import Task, TaskStatus
from tracker.rounding import round_half_up

MAX_SUBTASK_DEPTH = 2


def can_have_subtasks(task: Task) -> bool:
    """A root task (no parent) may have sub-tasks; a sub-task may not."""
    return task.parent_task_id is None


def subtask_depth(task: Task) -> int:
    """1 for a root task, 2 for a sub-task."""
    return 1 if task.parent_task_id is None else 2


def validate_subtask_creation(parent: Task) -> None:
    """Raise if a sub-task cannot be created under *parent*."""
    if not can_have_subtasks(parent):
        raise HierarchyDepthExceeded(parent.id, MAX_SUBTASK_DEPTH)
    if parent.status == TaskStatus.ARCHIVED:
        raise InvalidParentState(parent.id, parent.status.value)


def aggregate_parent_progress(child_progress: Iterable[int]) -> int:
    """Rounded mean of the children's progress values; 0 with no children."""
    values = list(child_progress)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def calculate_parent_progress(subtasks: list[Task]) -> int:
    return aggregate_parent_progress(t.progress for t in subtasks)


def can_complete_parent(subtasks: list[Task]) -> bool:
    """A parent may reach 100% only when every sub-task has."""
    return all(t.progress == 100 for t in subtasks)


def incomplete_subtasks(subtasks: list[Task]) -> list[Task]:
    return [t for t in subtasks if t.progress < 100]
