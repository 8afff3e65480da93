# aggregates.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

from domain import FinanceRecord, FinanceType, InputMode, PeriodStatement, WorkRecord
from utils import chart_label, short_date_label


@dataclass(frozen=True)
class Totals:
    total_wage: float = 0.0
    total_hours: float = 0.0
    count: int = 0
    average_per_day: float = 0.0


@dataclass(frozen=True)
class ChartPoint:
    day: date
    label: str
    wage: float


@dataclass(frozen=True)
class ChartSeries:
    points: List[ChartPoint] = field(default_factory=list)
    max_wage: float = 1.0

    def bar_ratio(self, point: ChartPoint) -> float:
        return point.wage / self.max_wage


@dataclass
class DayBucket:
    hours: float = 0.0
    wage: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class WorkBreakRatio:
    work_hours: float
    break_hours: float
    work_percentage: float

    @property
    def break_percentage(self) -> float:
        return 100.0 - self.work_percentage


@dataclass(frozen=True)
class MonthlyProgress:
    earned: float
    target: float
    percentage: float


@dataclass(frozen=True)
class FinanceTotals:
    income: float = 0.0
    expense: float = 0.0

    @property
    def balance(self) -> float:
        return self.income - self.expense


def _by_date(records: Iterable[WorkRecord]) -> List[WorkRecord]:
    # sorted() is stable and copies, the caller's list is never touched
    return sorted(records, key=lambda r: r.date)


class RecordAggregator:
    """Read-only summaries over a record collection."""

    def __init__(self, chart_window: int = 7):
        self.chart_window = chart_window

    def totals(self, records: Sequence[WorkRecord]) -> Totals:
        total_wage = sum(r.total_wage for r in records)
        total_hours = sum(r.total_hours_decimal for r in records)
        count = len(records)
        average = total_wage / count if count else 0.0
        return Totals(total_wage=total_wage, total_hours=total_hours, count=count, average_per_day=average)

    def last_n_series(self, records: Iterable[WorkRecord], n: int | None = None) -> ChartSeries:
        """Wage per record for the latest N records, oldest first."""
        n = self.chart_window if n is None else n
        window = _by_date(records)[-n:] if n > 0 else []
        points = [ChartPoint(day=r.day, label=chart_label(r.day), wage=r.total_wage) for r in window]
        max_wage = max([p.wage for p in points] + [1])  # avoid div by zero
        return ChartSeries(points=points, max_wage=max_wage)

    def daily_buckets(
        self,
        records: Iterable[WorkRecord],
        year: int | None = None,
        month: int | None = None,
    ) -> Dict[date, DayBucket]:
        """
        Groups records by calendar day. Days without records are absent.
        Pass year and month to restrict the map to a single calendar month.
        """
        buckets: Dict[date, DayBucket] = {}
        for r in records:
            d = r.day
            if year is not None and d.year != year:
                continue
            if month is not None and d.month != month:
                continue
            bucket = buckets.setdefault(d, DayBucket())
            bucket.hours += r.total_hours_decimal
            bucket.wage += r.total_wage
            bucket.count += 1
        return buckets

    def weekly_totals(self, records: Iterable[WorkRecord]) -> Dict[Tuple[int, int], DayBucket]:
        """
        Aggregates hours and wage per ISO week.
        Returns dict {(year, week): DayBucket}.
        """
        weekly: Dict[Tuple[int, int], DayBucket] = {}
        for r in records:
            bucket = weekly.setdefault(r.iso_year_week, DayBucket())
            bucket.hours += r.total_hours_decimal
            bucket.wage += r.total_wage
            bucket.count += 1
        return weekly

    def work_break_ratio(self, records: Sequence[WorkRecord]) -> WorkBreakRatio:
        work_hours = sum(r.total_hours_decimal for r in records)
        # duration-based records carry no break time
        break_minutes = sum(r.break_minutes for r in records if r.mode is InputMode.RANGE)
        break_hours = break_minutes / 60
        total = work_hours + break_hours
        percentage = (work_hours / total) * 100 if total > 0 else 100.0
        return WorkBreakRatio(work_hours=work_hours, break_hours=break_hours, work_percentage=percentage)

    def monthly_progress(self, records: Iterable[WorkRecord], year: int, month: int, target: float) -> MonthlyProgress:
        earned = sum(b.wage for b in self.daily_buckets(records, year=year, month=month).values())
        percentage = min(100.0, earned / target * 100) if target > 0 else 0.0
        return MonthlyProgress(earned=earned, target=target, percentage=percentage)


class PeriodSlipAggregator:
    """Statement statistics for a sub-collection, e.g. one month of records."""

    def summarize(self, records: Iterable[WorkRecord]) -> PeriodStatement:
        ordered = _by_date(records)
        if not ordered:
            return PeriodStatement()
        total_hours = sum(r.total_hours_decimal for r in ordered)
        total_wage = sum(r.total_wage for r in ordered)
        return PeriodStatement(
            start_label=short_date_label(ordered[0].day),
            end_label=short_date_label(ordered[-1].day),
            day_count=len(ordered),
            total_hours=total_hours,
            total_wage=total_wage,
            average_rate=total_wage / (total_hours or 1),
        )


def finance_totals(records: Iterable[FinanceRecord]) -> FinanceTotals:
    income = 0.0
    expense = 0.0
    for r in records:
        if r.type is FinanceType.INCOME:
            income += r.amount
        else:
            expense += r.amount
    return FinanceTotals(income=income, expense=expense)
