"""Shared fixtures: record builders and a throwaway SQLite store."""
from datetime import datetime

import pytest

from domain import InputMode
from repository import CollectionStore, WorkRecordRepository
from services import new_record


@pytest.fixture
def make_range():
    def _make(when, start="08:00", end="17:00", break_minutes=0, rate=10000, **kwargs):
        return new_record(when, InputMode.RANGE, start_time=start, end_time=end,
                          break_minutes=break_minutes, rate=rate, **kwargs)
    return _make


@pytest.fixture
def make_duration():
    def _make(when, hours=8, minutes=0, rate=10000, **kwargs):
        return new_record(when, InputMode.DURATION, hours=hours, minutes=minutes, rate=rate, **kwargs)
    return _make


@pytest.fixture
def store(tmp_path):
    return CollectionStore(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")


@pytest.fixture
def repo(store):
    return WorkRecordRepository(store, "alice")


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 9, 30)
