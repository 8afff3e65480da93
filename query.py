# query.py
from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Iterable, List

from domain import QueryState, SortDirection, WorkRecord
from utils import long_date_label, number_text


@dataclass(frozen=True)
class QueryResult:
    page: List[WorkRecord] = field(default_factory=list)
    total_pages: int = 1
    total_count: int = 0
    matching: List[WorkRecord] = field(default_factory=list)


def matches_search(record: WorkRecord, search_text: str) -> bool:
    """Case-insensitive match on the long date label or the raw wage amount."""
    if not search_text:
        return True
    needle = search_text.lower()
    return needle in long_date_label(record.day).lower() or needle in number_text(record.total_wage)


class RecordQueryEngine:
    """Filter, sort and paginate records for display. Holds no state."""

    def filter_and_sort(self, records: Iterable[WorkRecord], state: QueryState) -> List[WorkRecord]:
        result = list(records)

        # 1. date range, end day inclusive
        if state.date_range_start is not None:
            lower = datetime.combine(state.date_range_start, time.min)
            result = [r for r in result if r.date >= lower]
        if state.date_range_end is not None:
            upper = datetime.combine(state.date_range_end, time.max)
            result = [r for r in result if r.date <= upper]

        # 2. text
        if state.search_text:
            result = [r for r in result if matches_search(r, state.search_text)]

        # 3. stable sort by date
        descending = state.sort_direction is SortDirection.DESCENDING
        result.sort(key=lambda r: r.date, reverse=descending)
        return result

    def paginate(self, records: List[WorkRecord], page_number: int, page_size: int) -> tuple[List[WorkRecord], int]:
        page_size = max(1, page_size)
        total_pages = max(1, math.ceil(len(records) / page_size))
        if page_number < 1:
            return [], total_pages
        start = (page_number - 1) * page_size
        return records[start:start + page_size], total_pages

    def query(self, records: Iterable[WorkRecord], state: QueryState) -> QueryResult:
        matching = self.filter_and_sort(records, state)
        page, total_pages = self.paginate(matching, state.page_number, state.page_size)
        return QueryResult(page=page, total_pages=total_pages, total_count=len(matching), matching=matching)
