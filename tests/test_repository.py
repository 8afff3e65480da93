"""Tests for repository.py - per-owner JSON store and record repository."""
from datetime import datetime

import pytest
from sqlmodel import Session, select

from domain import FinanceRecord, FinanceType, InputMode, UserProfile
from repository import (
    APP_VERSION, RECORDS, BackupFormatError, StoredCollection, WorkRecordRepository,
)


class TestCollectionStore:

    def test_missing_collection_is_none(self, store):
        assert store.get("alice", RECORDS) is None

    def test_put_then_get(self, store):
        store.put("alice", "notes", [{"a": 1}])
        store.put("alice", "notes", [{"a": 2}])
        assert store.get("alice", "notes") == [{"a": 2}]

    def test_owners_are_isolated(self, store):
        store.put("alice", RECORDS, [1])
        store.put("bob", RECORDS, [2])
        assert store.get("alice", RECORDS) == [1]
        assert store.get("bob", RECORDS) == [2]

    def test_corrupt_payload_reads_as_missing(self, store):
        with Session(store.engine) as session:
            session.add(StoredCollection(owner_key="alice", collection_name=RECORDS, payload="{not json"))
            session.commit()
        assert store.get("alice", RECORDS) is None

    def test_rewrite_keeps_one_stamped_row(self, store):
        store.put("alice", "notes", {"v": 1})
        with Session(store.engine) as session:
            first_stamp = session.exec(select(StoredCollection)).one().updated_at
        store.put("alice", "notes", {"v": 2})
        with Session(store.engine) as session:
            rows = session.exec(select(StoredCollection)).all()
        assert len(rows) == 1
        assert rows[0].updated_at is not None
        assert rows[0].updated_at.replace(tzinfo=None) >= first_stamp.replace(tzinfo=None)
        assert store.get("alice", "notes") == {"v": 2}


class TestWorkRecordRepository:

    def test_writes_persist_through_every_operation(self, repo, make_range, now):
        rec = make_range(now, start="09:00", end="12:00", rate=10000)
        repo.add(rec)
        assert repo.update(rec.with_changes(end_time="13:00"))
        repo.save_profile(UserProfile(employee_name="Sari"))
        assert repo.get(rec.id).total_wage == 40000
        assert repo.load_profile().employee_name == "Sari"
        assert repo.delete(rec.id)
        assert repo.list_records() == []

    def test_add_keeps_newest_first(self, repo, make_duration):
        first = make_duration(datetime(2026, 10, 19, 8), hours=1)
        second = make_duration(datetime(2026, 10, 20, 8), hours=2)
        repo.add(first)
        repo.add(second)
        assert [r.id for r in repo.list_records()] == [second.id, first.id]

    def test_records_survive_round_trip(self, repo, make_range):
        rec = make_range(datetime(2026, 10, 19, 22, 0), "22:00", "06:00", break_minutes=30, rate=20000)
        repo.add(rec)
        loaded = repo.get(rec.id)
        assert loaded == rec
        assert loaded.total_wage == 150000

    def test_update_replaces_whole_record(self, repo, make_range):
        rec = make_range(datetime(2026, 10, 19, 8), "08:00", "12:00")
        repo.add(rec)
        edited = rec.with_changes(mode=InputMode.DURATION, start_time=None, end_time=None,
                                  hours_input=3.0, wage_override=99)
        assert repo.update(edited) is True
        loaded = repo.get(rec.id)
        assert loaded.mode is InputMode.DURATION
        assert loaded.total_hours_decimal == 3.0
        assert loaded.total_wage == 99

    def test_update_unknown_is_noop(self, repo, make_range):
        assert repo.update(make_range(datetime(2026, 10, 19))) is False
        assert repo.list_records() == []

    def test_delete(self, repo, make_duration):
        keep = make_duration(datetime(2026, 10, 19))
        drop = make_duration(datetime(2026, 10, 20))
        repo.add(keep)
        repo.add(drop)
        assert repo.delete(drop.id) is True
        assert repo.delete(drop.id) is False
        assert repo.list_records() == [keep]

    def test_unreadable_entries_are_skipped(self, repo, store, make_duration):
        good = make_duration(datetime(2026, 10, 19))
        store.put("alice", RECORDS, ["junk", {"no": "id"}, good.to_dict()])
        assert repo.list_records() == [good]

    def test_profile_defaults_and_save(self, repo):
        assert repo.load_profile(default_rate=25000).default_rate == 25000
        profile = UserProfile(employee_name="Sari", default_rate=15000, monthly_target=3000000)
        repo.save_profile(profile)
        assert repo.load_profile(default_rate=25000) == profile

    def test_finance_ledger(self, repo):
        entry = FinanceRecord(id="f1", date=datetime(2026, 10, 19, 12), type=FinanceType.INCOME,
                              category="Gaji", amount=100000, note="Oktober")
        repo.add_finance(entry)
        assert repo.list_finance() == [entry]
        assert repo.delete_finance("f1") is True
        assert repo.list_finance() == []


class TestBackup:

    def test_export_then_import_into_other_owner(self, repo, store, make_range, now):
        repo.add(make_range(datetime(2026, 10, 19, 8), "08:00", "17:00", break_minutes=60))
        repo.save_profile(UserProfile(employee_name="Sari"))
        backup = repo.export_backup(now)
        assert backup["appVersion"] == APP_VERSION
        assert backup["exportDate"] == "2026-10-19T09:30:00"

        other = WorkRecordRepository(store, "bob")
        assert other.import_backup(backup) == 1
        assert other.list_records() == repo.list_records()
        assert other.load_profile().employee_name == "Sari"

    def test_import_accepts_legacy_payload(self, repo):
        payload = {
            "profile": {"employeeName": "Budi", "defaultRate": "12000"},
            "records": [{
                "id": "1760860800000", "date": "2026-10-19T08:00:00", "mode": "range",
                "startTime": "08:00", "endTime": "17:00", "breakMinutes": "60",
                "totalHoursDecimal": 8, "rate": 12000, "totalWage": 96000,
            }],
            "exportDate": "2026-10-19T10:00:00.000Z",
            "appVersion": "1.0.0",
        }
        assert repo.import_backup(payload) == 1
        rec = repo.list_records()[0]
        assert rec.total_hours_decimal == 8.0
        assert not rec.is_wage_overridden
        assert repo.load_profile().default_rate == 12000

    @pytest.mark.parametrize("payload", [
        [],
        {"records": []},
        {"profile": {}, "records": {}},
        {"profile": {}, "records": ["junk"]},
    ])
    def test_invalid_backup_is_rejected_without_writing(self, repo, make_duration, payload):
        rec = make_duration(datetime(2026, 10, 19))
        repo.add(rec)
        with pytest.raises(BackupFormatError):
            repo.import_backup(payload)
        assert repo.list_records() == [rec]
