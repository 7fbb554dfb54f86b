"""tracker: task, time-tracking and session domain engine.

Public API re-exports for convenient imports:
    from tracker import build_tracker, calculate_task_score, date_range, ...
"""

# Errors
from tracker.errors import (
    TrackerError,
    ValidationFailed,
    InvalidBreakType,
    NotFound,
    Forbidden,
    ConflictingActive,
    ConflictingActiveSession,
    ConflictingActiveEntry,
    ConflictingActiveBreak,
    InvalidTransition,
    AlreadyStopped,
    HierarchyError,
    HierarchyDepthExceeded,
    InvalidParentState,
)

# Models
from tracker.models import (
    TaskDifficulty,
    TaskStatus,
    BreakType,
    WorkSessionStatus,
    GoalType,
    GoalPeriod,
    Project,
    Task,
    TimeEntry,
    Break,
    WorkSession,
    Goal,
    PointsLedgerEntry,
    DailySummary,
    BreakStats,
)

# Task hierarchy
from tracker.hierarchy import (
    MAX_SUBTASK_DEPTH,
    aggregate_parent_progress,
    can_have_subtasks,
    subtask_depth,
    validate_subtask_creation,
    can_complete_parent,
    incomplete_subtasks,
)

# Scoring
from tracker.scoring import (
    DIFFICULTY_MULTIPLIERS,
    ScoringContext,
    TaskScore,
    calculate_task_score,
    calculate_efficiency,
    efficiency_label,
    calculate_daily_score,
    calculate_trend,
    trend_label,
    ScoringService,
)

# Goals
from tracker.goals import (
    PeriodWindow,
    GoalProgress,
    date_range,
    calculate_progress,
    completion_percentage,
    GoalService,
)

# Session state machines
from tracker.sessions import (
    SessionAction,
    next_session_status,
    entry_minutes,
    total_tracked_minutes,
    break_duration_minutes,
)

# Facades
from tracker.tasks import TaskService
from tracker.timer import TimeEntryService
from tracker.breaks import BreakService
from tracker.work_sessions import WorkSessionService

# Wiring
from tracker.locks import UserLocks
from tracker.config import Settings, load_settings, configure_logging
from tracker.app import Tracker, build_tracker, open_repositories
