# services.py
from __future__ import annotations
import logging
import random
import string
import uuid
from datetime import datetime
from typing import Any, Iterable, Mapping

from calculator import coerce_number
from domain import InputMode, TimeParts, WorkRecord

logger = logging.getLogger(__name__)


def new_record(
    when: datetime,
    mode: InputMode,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    break_minutes: Any = 0,
    hours: Any = 0,
    minutes: Any = 0,
    rate: Any = 0,
    wage_override: Any = None,
    record_id: str | None = None,
) -> WorkRecord:
    """Builds a record for the given timestamp. The caller supplies the clock."""
    is_range = mode is InputMode.RANGE
    record = WorkRecord(
        id=record_id or uuid.uuid4().hex,
        date=when,
        mode=mode,
        start_time=start_time if is_range else None,
        end_time=end_time if is_range else None,
        break_minutes=int(coerce_number(break_minutes)) if is_range else 0,
        hours_input=0.0 if is_range else coerce_number(hours),
        minutes_input=0.0 if is_range else coerce_number(minutes),
        rate=coerce_number(rate),
        wage_override=None if wage_override is None else coerce_number(wage_override),
    )
    logger.debug("Built %s record %s: %.4f h", mode.value, record.id, record.total_hours_decimal)
    return record


def manual_form_inputs(editing: WorkRecord | None, carried: tuple[int, int] | None = None) -> tuple[int, int]:
    """(hours, minutes) the manual-input form opens with.

    A duration record shows its own inputs. Anything else starts from the range
    the form resolved last, or from the edited record's own resolved duration.
    """
    if editing is not None and editing.mode is InputMode.DURATION:
        return int(editing.hours_input), min(59, int(editing.minutes_input))
    if carried is not None:
        return carried
    if editing is not None:
        resolved = editing.duration
        return resolved.hours, resolved.minutes
    return 8, 0


def record_from_live_session(started_at: datetime, stopped_at: datetime, rate: Any) -> WorkRecord:
    """Record for a stopwatch session, exact to the second and dated at its start."""
    elapsed = max(0, int((stopped_at - started_at).total_seconds()))
    hours, remainder = divmod(elapsed, 3600)
    return new_record(
        started_at,
        InputMode.DURATION,
        hours=hours,
        minutes=remainder / 60,
        rate=rate,
    )


def to_total_seconds(hours: Any, minutes: Any, seconds: Any) -> int:
    return int(coerce_number(hours)) * 3600 + int(coerce_number(minutes)) * 60 + int(coerce_number(seconds))


def from_total_seconds(total_seconds: int) -> TimeParts:
    hours, remaining = divmod(max(0, int(total_seconds)), 3600)
    minutes, seconds = divmod(remaining, 60)
    return TimeParts(hours=hours, minutes=minutes, seconds=seconds)


def sum_time_parts(rows: Iterable[TimeParts | Mapping[str, Any]]) -> TimeParts:
    """Adds H:M:S rows, carrying overflow into the next unit."""
    total = 0
    for row in rows:
        if isinstance(row, TimeParts):
            total += to_total_seconds(row.hours, row.minutes, row.seconds)
        else:
            total += to_total_seconds(row.get("hours"), row.get("minutes"), row.get("seconds"))
    return from_total_seconds(total)


def generate_employee_id(now: datetime, rng: random.Random | None = None) -> str:
    """Random employee id of the form TM-YY-XXXXX."""
    rng = rng or random.Random()
    alphabet = string.digits + string.ascii_uppercase
    block = "".join(rng.choice(alphabet) for _ in range(5))
    return f"TM-{now.year % 100:02d}-{block}"
