"""Tests for query.py - filtering, sorting and pagination."""
from datetime import date, datetime, timedelta

import pytest

from domain import QueryState, SortDirection
from query import RecordQueryEngine, matches_search


@pytest.fixture
def engine():
    return RecordQueryEngine()


@pytest.fixture
def month_of_records(make_duration):
    start = datetime(2026, 10, 1, 9, 0)
    return [make_duration(start + timedelta(days=i), hours=1 + i % 3) for i in range(23)]


class TestPagination:

    def test_twenty_three_records_in_pages_of_seven(self, engine, month_of_records):
        last = engine.query(month_of_records, QueryState(page_number=4, page_size=7))
        assert last.total_pages == 4
        assert len(last.page) == 2
        assert last.total_count == 23
        first = engine.query(month_of_records, QueryState(page_number=1, page_size=7))
        assert [r.day.day for r in first.page] == [1, 2, 3, 4, 5, 6, 7]

    def test_empty_collection_has_one_page(self, engine):
        result = engine.query([], QueryState())
        assert result.page == []
        assert result.total_pages == 1

    def test_out_of_range_page_is_empty(self, engine, month_of_records):
        result = engine.query(month_of_records, QueryState(page_number=9))
        assert result.page == []
        assert result.total_pages == 4
        assert engine.query(month_of_records, QueryState(page_number=0)).page == []

    def test_clamped_state_returns_last_page(self, engine, month_of_records):
        state = QueryState(page_number=9)
        result = engine.query(month_of_records, state)
        clamped = state.clamped(result.total_pages)
        assert clamped.page_number == 4
        assert len(engine.query(month_of_records, clamped).page) == 2

    def test_changing_filters_resets_page(self):
        state = QueryState(page_number=3).with_filters(search_text="okt")
        assert state.page_number == 1
        assert state.search_text == "okt"


class TestFilters:

    def test_end_date_is_inclusive(self, engine, make_duration):
        late = make_duration(datetime(2026, 10, 19, 23, 59, 59))
        next_day = make_duration(datetime(2026, 10, 20, 0, 0))
        state = QueryState(date_range_start=date(2026, 10, 19), date_range_end=date(2026, 10, 19))
        assert engine.query([late, next_day], state).matching == [late]

    def test_start_date_bound(self, engine, month_of_records):
        state = QueryState(date_range_start=date(2026, 10, 20))
        result = engine.query(month_of_records, state)
        assert result.total_count == 4
        assert all(r.day >= date(2026, 10, 20) for r in result.matching)

    def test_search_long_date(self, engine, make_duration):
        monday = make_duration(datetime(2026, 10, 19, 8))
        tuesday = make_duration(datetime(2026, 10, 20, 8))
        assert engine.query([monday, tuesday], QueryState(search_text="SENIN")).matching == [monday]
        assert engine.query([monday, tuesday], QueryState(search_text="oktober 2026")).total_count == 2

    def test_search_wage_amount(self, make_duration):
        rec = make_duration(datetime(2026, 10, 19, 8), hours=7, minutes=30, rate=20000)
        assert matches_search(rec, "150000")
        assert matches_search(rec, "1500")
        assert not matches_search(rec, "150.000")
        assert matches_search(rec, "")

    def test_filters_then_sorts_descending(self, engine, month_of_records):
        state = QueryState(date_range_end=date(2026, 10, 5), sort_direction=SortDirection.DESCENDING)
        assert [r.day.day for r in engine.query(month_of_records, state).page] == [5, 4, 3, 2, 1]

    @pytest.mark.parametrize("direction", list(SortDirection))
    def test_ties_keep_input_order(self, engine, make_duration, direction):
        same = datetime(2026, 10, 19, 8)
        a, b, c = make_duration(same), make_duration(same), make_duration(same)
        result = engine.query([b, a, c], QueryState(sort_direction=direction))
        assert result.page == [b, a, c]

    def test_query_is_idempotent(self, engine, month_of_records):
        state = QueryState(date_range_start=date(2026, 10, 3), search_text="oktober", page_number=2)
        once = engine.query(month_of_records, state)
        twice = engine.query(once.matching, state)
        assert twice.page == once.page
        assert twice.total_pages == once.total_pages

    def test_input_not_mutated(self, engine, month_of_records):
        shuffled = month_of_records[::-1]
        before = list(shuffled)
        engine.query(shuffled, QueryState(sort_direction=SortDirection.ASCENDING))
        assert shuffled == before

    def test_new_record_found_by_its_own_date(self, engine, make_range, month_of_records):
        rec = make_range(datetime(2026, 10, 9, 22, 15), "22:00", "06:00", break_minutes=30, rate=20000)
        state = QueryState(date_range_start=rec.day, date_range_end=rec.day)
        assert rec in engine.query(month_of_records + [rec], state).matching
