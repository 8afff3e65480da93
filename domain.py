# domain.py
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any

from calculator import Duration, DurationResolver, InputMode, WageComputer, coerce_number


def parse_timestamp(value: Any) -> datetime:
    """Parses an ISO timestamp into a naive local datetime.

    Aware values (e.g. ``2026-10-19T01:00:00.000Z``) are converted to local
    wall-clock time first.
    """
    if isinstance(value, datetime):
        when = value
    elif isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    else:
        when = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if when.tzinfo is not None:
        when = when.astimezone().replace(tzinfo=None)
    return when


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class FinanceType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class TimeParts:
    hours: int = 0
    minutes: int = 0
    seconds: int = 0


@dataclass
class WorkRecord:
    """One logged work session.

    Only the raw inputs of the active mode are stored. Hours and wage are
    derived on read, so they can never drift from the inputs. A manually
    entered wage is kept in ``wage_override`` and wins over the computed one.
    """
    id: str
    date: datetime
    mode: InputMode = InputMode.RANGE
    start_time: str | None = None
    end_time: str | None = None
    break_minutes: int = 0
    hours_input: float = 0.0
    minutes_input: float = 0.0
    rate: float = 0.0
    wage_override: float | None = None

    @property
    def duration(self) -> Duration:
        return DurationResolver.resolve_record(self)

    @property
    def total_hours_decimal(self) -> float:
        return self.duration.decimal

    @property
    def computed_wage(self) -> float:
        return WageComputer.compute(self.total_hours_decimal, self.rate)

    @property
    def is_wage_overridden(self) -> bool:
        return self.wage_override is not None

    @property
    def total_wage(self) -> float:
        if self.wage_override is not None:
            return self.wage_override
        return self.computed_wage

    @property
    def day(self) -> date:
        return self.date.date()

    @property
    def iso_year_week(self) -> tuple[int, int]:
        """Returns (ISO year, ISO week number). Useful for weekly aggregation."""
        iso = self.date.isocalendar()
        return (iso[0], iso[1])

    def with_changes(self, **changes: Any) -> WorkRecord:
        """Copy with fields replaced; ``id`` is immutable."""
        changes.pop("id", None)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "mode": self.mode.value,
            "startTime": self.start_time if self.mode is InputMode.RANGE else None,
            "endTime": self.end_time if self.mode is InputMode.RANGE else None,
            "breakMinutes": self.break_minutes if self.mode is InputMode.RANGE else 0,
            "hoursInput": self.hours_input if self.mode is InputMode.DURATION else None,
            "minutesInput": self.minutes_input if self.mode is InputMode.DURATION else None,
            "rate": self.rate,
            "wageOverride": self.wage_override,
            # informational only, never read back
            "totalHoursDecimal": self.total_hours_decimal,
            "totalWage": self.total_wage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkRecord:
        raw_mode = data.get("mode") or InputMode.RANGE.value
        mode = InputMode.DURATION if raw_mode == InputMode.DURATION.value else InputMode.RANGE
        when = parse_timestamp(data.get("date"))
        record = cls(
            id=str(data["id"]),
            date=when,
            mode=mode,
            start_time=data.get("startTime") if mode is InputMode.RANGE else None,
            end_time=data.get("endTime") if mode is InputMode.RANGE else None,
            break_minutes=int(coerce_number(data.get("breakMinutes"))) if mode is InputMode.RANGE else 0,
            hours_input=coerce_number(data.get("hoursInput")) if mode is InputMode.DURATION else 0.0,
            minutes_input=coerce_number(data.get("minutesInput")) if mode is InputMode.DURATION else 0.0,
            rate=coerce_number(data.get("rate")),
        )

        if data.get("wageOverride") is not None:
            record.wage_override = coerce_number(data["wageOverride"])
        elif "wageOverride" not in data and data.get("totalWage") is not None:
            # older payloads stored the wage itself; keep it only if it was edited
            stored = coerce_number(data["totalWage"])
            if stored != record.computed_wage:
                record.wage_override = stored
        return record


@dataclass(frozen=True)
class PeriodStatement:
    """Statement-level statistics over a sub-collection of records."""
    start_label: str = ""
    end_label: str = ""
    day_count: int = 0
    total_hours: float = 0.0
    total_wage: float = 0.0
    average_rate: float = 0.0


@dataclass(frozen=True)
class QueryState:
    date_range_start: date | None = None
    date_range_end: date | None = None
    search_text: str = ""
    sort_direction: SortDirection = SortDirection.ASCENDING
    page_number: int = 1
    page_size: int = 7

    def with_filters(self, **changes: Any) -> QueryState:
        """Changes filter fields and sends the caller back to page 1."""
        return replace(self, page_number=1, **changes)

    def with_page(self, page_number: int) -> QueryState:
        return replace(self, page_number=page_number)

    def clamped(self, total_pages: int) -> QueryState:
        page = min(max(1, self.page_number), max(1, total_pages))
        return replace(self, page_number=page)


@dataclass
class UserProfile:
    employee_name: str = "Mohammad Alfarizi Abdullah"
    employee_role: str = "Staff Ops"
    employee_id: str = "TM-001"
    company_name: str = "TimeMaster Corp."
    company_address: str = "Malang, Jawa Timur"
    default_rate: float = 10000.0
    monthly_target: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeName": self.employee_name,
            "employeeRole": self.employee_role,
            "employeeId": self.employee_id,
            "companyName": self.company_name,
            "companyAddress": self.company_address,
            "defaultRate": self.default_rate,
            "monthlyTarget": self.monthly_target,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProfile:
        base = cls()
        return cls(
            employee_name=str(data.get("employeeName", base.employee_name)),
            employee_role=str(data.get("employeeRole", base.employee_role)),
            employee_id=str(data.get("employeeId", base.employee_id)),
            company_name=str(data.get("companyName", base.company_name)),
            company_address=str(data.get("companyAddress", base.company_address)),
            default_rate=coerce_number(data.get("defaultRate", base.default_rate)),
            monthly_target=coerce_number(data.get("monthlyTarget", base.monthly_target)),
        )


@dataclass
class FinanceRecord:
    id: str
    date: datetime
    type: FinanceType
    category: str
    amount: float
    note: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "category": self.category,
            "amount": self.amount,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FinanceRecord:
        kind = FinanceType.INCOME if data.get("type") == FinanceType.INCOME.value else FinanceType.EXPENSE
        return cls(
            id=str(data["id"]),
            date=parse_timestamp(data["date"]),
            type=kind,
            category=str(data.get("category", "")),
            amount=coerce_number(data.get("amount")),
            note=str(data.get("note", "")),
        )
