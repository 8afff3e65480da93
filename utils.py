import pandas as pd
from datetime import date
from typing import Iterable

from domain import InputMode, WorkRecord
from calculator import DurationResolver

HARI = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]
HARI_SINGKAT = ["Sen", "Sel", "Rab", "Kam", "Jum", "Sab", "Min"]
BULAN = ["Januari", "Februari", "Maret", "April", "Mei", "Juni", "Juli",
         "Agustus", "September", "Oktober", "November", "Desember"]
BULAN_SINGKAT = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul",
                 "Agu", "Sep", "Okt", "Nov", "Des"]


def long_date_label(d: date) -> str:
    """'Senin, 19 Oktober 2026' (weekday, day, month, year)."""
    return f"{HARI[d.weekday()]}, {d.day} {BULAN[d.month - 1]} {d.year}"


def short_date_label(d: date) -> str:
    """'19 Okt', used on statements."""
    return f"{d.day} {BULAN_SINGKAT[d.month - 1]}"


def chart_label(d: date) -> str:
    """'Sen 19', used under chart bars."""
    return f"{HARI_SINGKAT[d.weekday()]} {d.day}"


def month_label(year: int, month: int) -> str:
    return f"{BULAN[month - 1]} {year}"


def number_text(x: float) -> str:
    """Plain number text: whole values without a trailing '.0'."""
    x = float(x)
    if x.is_integer():
        return str(int(x))
    return repr(x)


def format_hm(decimal_hours: float) -> str:
    h, m = DurationResolver.to_hour_minute(decimal_hours)
    return f"{h} Jam {m} Mnt" if m else f"{h} Jam"


def rupiah(x: float) -> str:
    return "Rp " + f"{round(float(x)):,}".replace(",", ".")


def records_to_dataframe(records: Iterable[WorkRecord]) -> pd.DataFrame:
    rows = []
    for r in records:
        year, week = r.iso_year_week
        is_range = r.mode is InputMode.RANGE
        rows.append({
            "ID": r.id,
            "Tanggal": r.date.date().isoformat(),
            "Hari": HARI[r.date.weekday()],
            "Minggu ISO": f"{year}-W{week:02d}",
            "Mode": r.mode.value,
            "Mulai": r.start_time or "",
            "Selesai": r.end_time or "",
            "Istirahat (mnt)": r.break_minutes if is_range else 0,
            "Jam": r.total_hours_decimal,
            "Tarif": r.rate,
            "Upah": r.total_wage,
            "Manual": r.is_wage_overridden,
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Tanggal"], ascending=False, kind="stable").reset_index(drop=True)
    return df

