"""Wires the tracker, backups and restore coordinator to one workspace.

Lifecycle: ``StudyEngine.open()`` loads settings and persisted state,
callers operate on ``engine.tracker`` / ``engine.restore``, and
``close()`` flushes everything and cancels the expiry timer.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from pathlib import Path

from studycal import achievement
from studycal.backups import SnapshotStore
from studycal.colors import BAND_TABLES, CANONICAL_BANDS, THEMES, color_for
from studycal.dates import Clock
from studycal.models import ColorToken, Settings
from studycal.restore import ExpiryScheduler, RestoreCoordinator
from studycal.store import JsonFileStore, KeyValueStore
from studycal.tracker import StudyTracker
from studycal.workspace import data_dir, get_user_timezone, load_settings, workspace_root

logger = logging.getLogger(__name__)


def _local_clock(tz: tzinfo) -> Clock:
    def now() -> datetime:
        return datetime.now(tz)
    return now


class StudyEngine:
    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        clock: Clock,
        scheduler: ExpiryScheduler | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.clock = clock

        self.band_table = BAND_TABLES.get(settings.band_table, CANONICAL_BANDS)
        if settings.band_table not in BAND_TABLES:
            logger.warning("Unknown band table %r, using canonical", settings.band_table)
        self.theme = settings.color_theme if settings.color_theme in THEMES else "classic"
        if self.theme != settings.color_theme:
            logger.warning("Unknown colour theme %r, using classic", settings.color_theme)
        policy = settings.rate_policy
        if policy not in achievement.RATE_POLICIES:
            logger.warning("Unknown rate policy %r, using strict", policy)
            policy = achievement.STRICT

        self.snapshots = SnapshotStore(store, max_backups=settings.max_backups, clock=clock)
        self.tracker = StudyTracker(
            store, self.snapshots, clock=clock, policy=policy, band_table=self.band_table
        )
        self.restore = RestoreCoordinator(
            self.tracker,
            self.snapshots,
            store,
            ttl=timedelta(minutes=settings.restore_ttl_minutes),
            clock=clock,
            scheduler=scheduler,
        )

    @classmethod
    def open(
        cls,
        root: Path | None = None,
        store: KeyValueStore | None = None,
        clock: Clock | None = None,
        scheduler: ExpiryScheduler | None = None,
    ) -> StudyEngine:
        """Load settings and persisted state for a workspace."""
        if root is None:
            root = workspace_root()
        settings = load_settings(root)
        if store is None:
            store = JsonFileStore(data_dir(root))
        if clock is None:
            clock = _local_clock(get_user_timezone(settings=settings))

        engine = cls(settings, store, clock, scheduler)
        engine.load()
        return engine

    def load(self) -> None:
        self.tracker.load()
        self.snapshots.load()
        self.restore.load()

    def close(self) -> None:
        self.restore.close()
        self.tracker.flush()
        self.snapshots.flush()

    def __enter__(self) -> StudyEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def color_for(self, rate: int) -> ColorToken:
        """Colour token using the configured theme and band table."""
        return color_for(rate, self.theme, self.band_table)

    def today(self) -> str:
        return self.clock().date().isoformat()
