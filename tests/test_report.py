"""Tests for report.py - statement PDF rendering."""
import random
import re
from datetime import datetime

from aggregates import PeriodSlipAggregator
from domain import PeriodStatement, UserProfile
from report import reference_number, render_statement_pdf, statement_lines


def test_reference_number():
    now = datetime(2026, 10, 19)
    assert re.fullmatch(r"PAY/2026/M-\d{4}", reference_number(now, True, random.Random(3)))
    assert re.fullmatch(r"PAY/2026/D-\d{4}", reference_number(now, False))


def test_statement_lines(make_range, make_duration):
    records = [
        make_duration(datetime(2026, 10, 20, 8), hours=2, minutes=15, rate=10000),
        make_range(datetime(2026, 10, 19, 22), "22:00", "06:00", break_minutes=30, rate=20000),
    ]
    lines = statement_lines(records)
    assert lines[0] == ["2026-10-19", "22:00 - 06:00 (-30m)", "7 Jam 30 Mnt", "Rp 20.000", "Rp 150.000"]
    assert lines[1][1] == "Input manual"
    assert lines[1][4] == "Rp 22.500"


def test_render_statement_pdf(make_range, now):
    records = [make_range(datetime(2026, 10, d, 8), "08:00", "16:00", rate=15000) for d in (1, 2, 3)]
    statement = PeriodSlipAggregator().summarize(records)
    pdf = render_statement_pdf(statement, records, UserProfile(company_name="A & B"), now,
                               rng=random.Random(1))
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_render_empty_statement(now):
    pdf = render_statement_pdf(PeriodStatement(), [], UserProfile(), now)
    assert pdf.startswith(b"%PDF")


def test_statement_lines_order_same_day_by_time(make_range):
    morning = make_range(datetime(2026, 10, 19, 8), "08:00", "12:00")
    evening = make_range(datetime(2026, 10, 19, 18), "18:00", "20:00")
    earlier = make_range(datetime(2026, 10, 18, 9), "09:00", "10:00")
    lines = statement_lines([evening, morning, earlier])
    assert [line[1] for line in lines] == ["09:00 - 10:00", "08:00 - 12:00", "18:00 - 20:00"]
