"""studycal core library: study plan vs. actual tracking, achievement
rates, calendar colour bands, and backup/restore with undo.

Public API re-exports for convenient imports:
    from studycal import StudyEngine, daily_achievement, color_for, ...
"""

# Time arithmetic & dates
from studycal.timecalc import (
    MAX_MINUTES_PER_DAY,
    clamp_minutes,
    format_duration,
    from_minutes,
    to_minutes,
)
from studycal.dates import (
    dates_in_range,
    is_valid_date_string,
    month_bounds,
    normalize_date,
    week_bounds,
    year_bounds,
)

# Models
from studycal.models import (
    AchievementResult,
    ActualRecord,
    BackupSnapshot,
    CalendarCell,
    ColorToken,
    PlanEntry,
    RangeStats,
    RestoreContext,
    SessionLogEntry,
    Settings,
)

# Achievement
from studycal.achievement import (
    REWARD_EFFORT,
    STRICT,
    calculate_achievement_rate,
    custom_period_stats,
    daily_achievement,
    daily_series,
    index_plans,
    index_records,
    month_calendar,
    monthly_stats,
    range_stats,
    weekly_stats,
    yearly_stats,
)

# Colours
from studycal.colors import (
    BANDS,
    BAND_TABLES,
    CANONICAL_BANDS,
    LEGACY_BANDS,
    THEMES,
    band_for_rate,
    color_for,
)

# Validation
from studycal.errors import StudyCalError, ValidationError
from studycal.validation import (
    check_data_integrity,
    sanitize_plan,
    sanitize_record,
    validate_date_range,
    validate_plan,
    validate_record,
)

# Log, backups, restore
from studycal.session_log import SessionLog
from studycal.backups import SnapshotStore
from studycal.restore import ACTIVE, IDLE, RestoreCoordinator, ThreadingScheduler
from studycal.tracker import StudyTracker
from studycal.engine import StudyEngine

# Storage & workspace
from studycal.store import JsonFileStore, MemoryStore
from studycal.workspace import load_settings, save_settings, today_str, workspace_root

# Export
from studycal.dataexport import export_csv, export_json, import_csv, import_json
