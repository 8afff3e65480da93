# repository.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import UniqueConstraint, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from domain import FinanceRecord, UserProfile, WorkRecord

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
RECORDS = "records"
PROFILE = "profile"
FINANCE = "finance"


class BackupFormatError(ValueError):
    """Raised when a backup payload lacks a profile mapping or a records list."""


class StoredCollection(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("owner_key", "collection_name"),)

    id: int | None = Field(default=None, primary_key=True)
    owner_key: str = Field(index=True)
    collection_name: str = Field(index=True)
    payload: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def build_engine(db_url: str, echo: bool = False) -> Engine:
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Serverless PG (Neon/Supabase): no local pool, connect timeout
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"connect_timeout": 10}
        if "sslmode=" not in db_url:
            db_url += ("&" if "?" in db_url else "?") + "sslmode=require"
    return create_engine(db_url, **kwargs)


class CollectionStore:
    """JSON documents keyed by (owner, collection name). Owner keys are opaque here."""

    def __init__(self, url: str = "sqlite:///timemaster.db", echo: bool = False, engine: Engine | None = None):
        self.url = url
        self.engine = engine if engine is not None else build_engine(url, echo=echo)

        # Fail fast on an unreachable server database
        if engine is None and not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except Exception as e:
                raise RuntimeError(f"Could not connect to database: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    def _row(self, session: Session, owner_key: str, collection_name: str) -> Optional[StoredCollection]:
        return session.exec(
            select(StoredCollection).where(
                StoredCollection.owner_key == owner_key,
                StoredCollection.collection_name == collection_name,
            )
        ).first()

    def get(self, owner_key: str, collection_name: str) -> Any | None:
        with Session(self.engine) as session:
            row = self._row(session, owner_key, collection_name)
            if row is None:
                return None
            try:
                return json.loads(row.payload)
            except json.JSONDecodeError:
                logger.error("Corrupt payload for %s/%s, treating as empty", owner_key, collection_name)
                return None

    def put(self, owner_key: str, collection_name: str, data: Any) -> None:
        payload = json.dumps(data, ensure_ascii=False)
        with Session(self.engine) as session:
            row = self._row(session, owner_key, collection_name)
            if row is None:
                row = StoredCollection(owner_key=owner_key, collection_name=collection_name, payload=payload)
            else:
                row.payload = payload
                row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()
        logger.debug("Stored %s/%s (%d bytes)", owner_key, collection_name, len(payload))


class WorkRecordRepository:
    """Per-owner access to work records, profile and finance entries."""

    def __init__(self, store: CollectionStore, owner_key: str):
        self.store = store
        self.owner_key = owner_key

    # --- work records ---

    def list_records(self) -> List[WorkRecord]:
        raw = self.store.get(self.owner_key, RECORDS) or []
        records = []
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object record entry for %s", self.owner_key)
                continue
            try:
                records.append(WorkRecord.from_dict(item))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping unreadable record for %s: %s", self.owner_key, e)
        return records

    def replace_all(self, records: List[WorkRecord]) -> None:
        self.store.put(self.owner_key, RECORDS, [r.to_dict() for r in records])

    def get(self, record_id: str) -> Optional[WorkRecord]:
        return next((r for r in self.list_records() if r.id == record_id), None)

    def add(self, record: WorkRecord) -> None:
        # newest first, as entered
        self.replace_all([record] + self.list_records())
        logger.info("Added record %s for %s", record.id, self.owner_key)

    def update(self, record: WorkRecord) -> bool:
        records = self.list_records()
        found = False
        for i, r in enumerate(records):
            if r.id == record.id:
                records[i] = record
                found = True
        if found:
            self.replace_all(records)
            logger.info("Updated record %s for %s", record.id, self.owner_key)
        return found

    def delete(self, record_id: str) -> bool:
        records = self.list_records()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self.replace_all(kept)
        logger.info("Deleted record %s for %s", record_id, self.owner_key)
        return True

    # --- profile ---

    def load_profile(self, default_rate: float | None = None) -> UserProfile:
        raw = self.store.get(self.owner_key, PROFILE)
        if isinstance(raw, dict):
            return UserProfile.from_dict(raw)
        profile = UserProfile()
        if default_rate is not None:
            profile.default_rate = default_rate
        return profile

    def save_profile(self, profile: UserProfile) -> None:
        self.store.put(self.owner_key, PROFILE, profile.to_dict())

    # --- finance ledger ---

    def list_finance(self) -> List[FinanceRecord]:
        raw = self.store.get(self.owner_key, FINANCE) or []
        entries = []
        for item in raw:
            try:
                entries.append(FinanceRecord.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping unreadable finance entry for %s: %s", self.owner_key, e)
        return entries

    def add_finance(self, entry: FinanceRecord) -> None:
        entries = [entry] + self.list_finance()
        self.store.put(self.owner_key, FINANCE, [e.to_dict() for e in entries])

    def delete_finance(self, entry_id: str) -> bool:
        entries = self.list_finance()
        kept = [e for e in entries if e.id != entry_id]
        if len(kept) == len(entries):
            return False
        self.store.put(self.owner_key, FINANCE, [e.to_dict() for e in kept])
        return True

    # --- backup ---

    def export_backup(self, now: datetime) -> dict[str, Any]:
        return {
            "profile": self.load_profile().to_dict(),
            "records": [r.to_dict() for r in self.list_records()],
            "exportDate": now.isoformat(),
            "appVersion": APP_VERSION,
        }

    def import_backup(self, payload: Any) -> int:
        """Replaces profile and records wholesale. Returns the number of records restored."""
        if not isinstance(payload, dict):
            raise BackupFormatError("Backup must be a JSON object")
        profile = payload.get("profile")
        records = payload.get("records")
        if not isinstance(profile, dict) or not isinstance(records, list):
            raise BackupFormatError("Backup needs a 'profile' object and a 'records' list")
        try:
            parsed = [WorkRecord.from_dict(item) for item in records]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise BackupFormatError(f"Unreadable record in backup: {e}") from e

        self.save_profile(UserProfile.from_dict(profile))
        self.replace_all(parsed)
        logger.info("Restored %d records for %s from backup dated %s",
                    len(parsed), self.owner_key, payload.get("exportDate"))
        return len(parsed)


__all__ = [
    "BackupFormatError",
    "CollectionStore",
    "StoredCollection",
    "WorkRecordRepository",
    "build_engine",
]
