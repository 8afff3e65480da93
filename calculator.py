# calculator.py
from __future__ import annotations
import math
import re
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from domain import WorkRecord


class InputMode(str, Enum):
    RANGE = "range"
    DURATION = "duration"


@dataclass(frozen=True)
class Duration:
    """Resolved duration: integer H:M parts plus the decimal-hour value."""
    hours: int
    minutes: int
    decimal: float
    next_day: bool = False


MINUTES_PER_DAY = 24 * 60
_NUMERIC_PREFIX = re.compile(r"\d*\.?\d+|\d+\.?")


def coerce_number(value: Any) -> float:
    """Permissive numeric parse used for every user-entered number.

    Anything unparseable, negative, NaN or infinite becomes 0.0. Strings are
    stripped of everything except digits and dots before the last-resort
    parse, so "20000 IDR" style input still yields a number.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        try:
            number = float(text)
        except ValueError:
            match = _NUMERIC_PREFIX.match(re.sub(r"[^0-9.]", "", text))
            number = float(match.group()) if match else 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def parse_clock(value: str | time | None) -> int:
    """Minutes since midnight for an "HH:MM" value. Malformed parts count as 0."""
    if value is None:
        return 0
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parts = str(value).strip().split(":")
    hh = int(coerce_number(parts[0])) if parts and parts[0] else 0
    mm = int(coerce_number(parts[1])) if len(parts) > 1 and parts[1] else 0
    return hh * 60 + mm


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class DurationResolver:
    """Turns range or duration inputs into decimal hours. Supports overnight shifts."""

    @staticmethod
    def range_hours(start: str | time | None, end: str | time | None) -> tuple[float, bool]:
        """Raw span in decimal hours and whether the end fell on the next day."""
        if not start or not end:
            return 0.0, False
        start_min = parse_clock(start)
        end_min = parse_clock(end)
        next_day = end_min < start_min
        if next_day:
            end_min += MINUTES_PER_DAY  # passed midnight
        return (end_min - start_min) / 60, next_day

    @staticmethod
    def to_hour_minute(decimal_hours: float) -> tuple[int, int]:
        """Splits decimal hours into (hours, minutes), carrying a rounded 60 into the hour."""
        decimal_hours = coerce_number(decimal_hours)
        hours = math.floor(decimal_hours)
        minutes = _round_half_up((decimal_hours - hours) * 60)
        if minutes == 60:
            hours += 1
            minutes = 0
        return hours, minutes

    @classmethod
    def resolve_range(cls, start: str | time | None, end: str | time | None, break_minutes: Any = 0) -> Duration:
        raw, next_day = cls.range_hours(start, end)
        decimal_hours = max(0.0, raw - coerce_number(break_minutes) / 60)
        hours, minutes = cls.to_hour_minute(decimal_hours)
        return Duration(hours=hours, minutes=minutes, decimal=decimal_hours, next_day=next_day)

    @classmethod
    def resolve_duration(cls, hours: Any, minutes: Any) -> Duration:
        decimal_hours = coerce_number(hours) + coerce_number(minutes) / 60
        h, m = cls.to_hour_minute(decimal_hours)
        return Duration(hours=h, minutes=m, decimal=decimal_hours)

    @classmethod
    def resolve(
        cls,
        mode: InputMode,
        start_time: str | time | None = None,
        end_time: str | time | None = None,
        break_minutes: Any = 0,
        hours: Any = 0,
        minutes: Any = 0,
    ) -> Duration:
        if mode is InputMode.DURATION:
            return cls.resolve_duration(hours, minutes)
        return cls.resolve_range(start_time, end_time, break_minutes)

    @classmethod
    def resolve_record(cls, record: WorkRecord) -> Duration:
        return cls.resolve(
            record.mode,
            start_time=record.start_time,
            end_time=record.end_time,
            break_minutes=record.break_minutes,
            hours=record.hours_input,
            minutes=record.minutes_input,
        )

    @classmethod
    def to_duration_inputs(cls, start: str | time | None, end: str | time | None, break_minutes: Any = 0) -> tuple[int, int]:
        """(hours, minutes) a form switches to when leaving range mode."""
        resolved = cls.resolve_range(start, end, break_minutes)
        return resolved.hours, resolved.minutes


class WageComputer:
    """Wage rules: hours times rate, floored to whole currency units."""

    @staticmethod
    def compute(decimal_hours: Any, rate: Any) -> int:
        # round first so float noise such as 2.9999999999 does not lose a unit
        product = coerce_number(decimal_hours) * coerce_number(rate)
        return math.floor(round(product, 9))

    @classmethod
    def resolve_wage(cls, decimal_hours: Any, rate: Any, override: Any = None) -> float:
        """Manual override wins without any reconciliation."""
        if override is not None:
            return coerce_number(override)
        return cls.compute(decimal_hours, rate)
