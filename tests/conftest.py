"""Shared test fixtures for studycal tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from studycal.backups import SnapshotStore
from studycal.restore import RestoreCoordinator
from studycal.store import MemoryStore
from studycal.tracker import StudyTracker

START = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class ManualHandle:
    def __init__(self, delay: float, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Expiry scheduler whose callbacks only run on fire_pending()."""

    def __init__(self) -> None:
        self.handles: list[ManualHandle] = []

    def schedule(self, delay: float, callback) -> ManualHandle:
        handle = ManualHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire_pending(self) -> None:
        for handle in self.pending:
            handle.fired = True
            handle.callback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def snapshots(store, clock) -> SnapshotStore:
    return SnapshotStore(store, max_backups=20, clock=clock)


@pytest.fixture
def tracker(store, snapshots, clock) -> StudyTracker:
    return StudyTracker(store, snapshots, clock=clock)


@pytest.fixture
def coordinator(tracker, snapshots, store, clock, scheduler) -> RestoreCoordinator:
    return RestoreCoordinator(tracker, snapshots, store, clock=clock, scheduler=scheduler)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and seeded data files."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "max_backups": 5,
        "restore_ttl_minutes": 5,
        "color_theme": "classic",
        "band_table": "canonical",
        "rate_policy": "strict",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    records = [
        {"date": "2025-03-01", "minutes": 90},
        {"date": "2025-03-02", "minutes": 30},
    ]
    plans = [
        {"date": "2025-03-01", "hours": 2, "minutes": 0},
        {"date": "2025-03-02", "hours": 1, "minutes": 0},
    ]
    sessions = [
        {
            "id": "log-seed-2",
            "date": "2025-03-02",
            "kind": "actual",
            "previousMinutes": 0,
            "minutes": 30,
            "recordedAt": "2025-03-02T20:00:00.000+00:00",
            "source": "record",
        },
        {
            "id": "log-seed-1",
            "date": "2025-03-01",
            "kind": "plan",
            "previousMinutes": 0,
            "minutes": 120,
            "recordedAt": "2025-03-01T08:00:00.000+00:00",
            "source": "plan",
        },
    ]
    for name, data in (("records", records), ("plans", plans), ("sessions", sessions)):
        (root / "data" / f"{name}.json").write_text(json.dumps(data, indent=2), encoding="utf-8")

    os.environ["STUDYCAL_ROOT"] = str(root)
    yield root
    if "STUDYCAL_ROOT" in os.environ:
        del os.environ["STUDYCAL_ROOT"]
