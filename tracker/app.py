"""Composition root: wire storage collaborators into the facades.

Nothing in tracker holds module-level service instances. Build a
``Tracker`` here (or construct the facades yourself) and pass it around.
"""

from __future__ import annotations

from dataclasses import dataclass

from tracker.breaks import BreakService
from tracker.clock import Clock, utc_now
from tracker.config import Settings, load_settings
from tracker.goals import GoalService
from tracker.locks import UserLocks
from tracker.scoring import ScoringService
from tracker.store import (
    BreakRepository,
    DailySummaryRepository,
    GoalRepository,
    PointsLedgerRepository,
    ProjectRepository,
    TaskRepository,
    TimeEntryRepository,
    WorkSessionRepository,
)
from tracker.tasks import TaskService
from tracker.timer import TimeEntryService
from tracker.work_sessions import WorkSessionService

COLLECTIONS = {
    "projects": ProjectRepository,
    "tasks": TaskRepository,
    "time_entries": TimeEntryRepository,
    "breaks": BreakRepository,
    "work_sessions": WorkSessionRepository,
    "goals": GoalRepository,
    "points_ledger": PointsLedgerRepository,
    "daily_summaries": DailySummaryRepository,
}


@dataclass
class Repositories:
    projects: ProjectRepository
    tasks: TaskRepository
    time_entries: TimeEntryRepository
    breaks: BreakRepository
    work_sessions: WorkSessionRepository
    goals: GoalRepository
    points_ledger: PointsLedgerRepository
    daily_summaries: DailySummaryRepository


@dataclass
class Tracker:
    repos: Repositories
    tasks: TaskService
    timer: TimeEntryService
    breaks: BreakService
    work_sessions: WorkSessionService
    goals: GoalService
    scoring: ScoringService
    locks: UserLocks


def open_repositories(settings: Settings, clock: Clock = utc_now) -> Repositories:
    """In-memory collections, or JSON-backed ones under settings.data_root."""
    repos = {}
    for name, repo_cls in COLLECTIONS.items():
        path = settings.collection_path(name) if settings.store == "json" else None
        repos[name] = repo_cls(path=path, clock=clock)
    return Repositories(**repos)


def build_tracker(
    settings: Settings | None = None,
    repos: Repositories | None = None,
    clock: Clock = utc_now,
) -> Tracker:
    if repos is None:
        repos = open_repositories(settings or load_settings(), clock)
    locks = UserLocks()
    return Tracker(
        repos=repos,
        tasks=TaskService(repos.tasks, repos.projects, clock=clock),
        timer=TimeEntryService(repos.time_entries, repos.tasks, clock=clock, locks=locks),
        breaks=BreakService(repos.breaks, clock=clock, locks=locks),
        work_sessions=WorkSessionService(repos.work_sessions, clock=clock, locks=locks),
        goals=GoalService(repos.goals, repos.tasks, repos.time_entries, repos.points_ledger, clock=clock),
        scoring=ScoringService(repos.tasks, repos.time_entries, repos.daily_summaries, clock=clock),
        locks=locks,
    )
