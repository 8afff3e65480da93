# app.py
# -----------------------------------------------
# ⏱️ TimeMaster: jam kerja & upah (Streamlit)
# -----------------------------------------------
# Requires: streamlit, sqlmodel, pandas, reportlab (psycopg2-binary for Postgres)

import json
import logging
from datetime import date, datetime

import pandas as pd
import streamlit as st

import config
from aggregates import PeriodSlipAggregator, RecordAggregator, finance_totals
from calculator import DurationResolver, WageComputer
from domain import FinanceRecord, FinanceType, InputMode, QueryState, SortDirection
from query import RecordQueryEngine
from report import render_statement_pdf
from repository import BackupFormatError, CollectionStore, WorkRecordRepository
from services import (
    generate_employee_id, manual_form_inputs, new_record, record_from_live_session, sum_time_parts,
)
from utils import chart_label, format_hm, long_date_label, month_label, rupiah

config.setup_logging()
logger = logging.getLogger(__name__)

APP_TITLE = "TimeMaster"

st.set_page_config(page_title=APP_TITLE, page_icon="⏱️", layout="centered")


@st.cache_resource
def get_store(url: str) -> CollectionStore:
    return CollectionStore(url, echo=False)


store = get_store(config.DB_URL)
aggregator = RecordAggregator(chart_window=config.CHART_WINDOW)
slip_aggregator = PeriodSlipAggregator()
query_engine = RecordQueryEngine()

# =========================
# Sidebar: owner + navigation
# =========================
owner = st.sidebar.text_input("Pengguna", value=config.OWNER_KEY).strip() or config.OWNER_KEY
repo = WorkRecordRepository(store, owner)
halaman = st.sidebar.radio(
    "Menu", ["Dashboard", "Rekap", "Live", "Keuangan", "Alat", "Pengaturan"], label_visibility="collapsed"
)

records = repo.list_records()
profile = repo.load_profile(default_rate=config.DEFAULT_RATE)

st.title(f"⏱️ {APP_TITLE}")


def _flash_success_if_any():
    msg = st.session_state.pop("_flash_success", None)
    if msg:
        st.success(msg)


def _query_state() -> QueryState:
    if "query_state" not in st.session_state:
        st.session_state["query_state"] = QueryState(page_size=config.PAGE_SIZE)
    return st.session_state["query_state"]


_flash_success_if_any()

# =========================
# 📊 Dashboard
# =========================
if halaman == "Dashboard":
    if not records:
        st.info("Belum ada data. Dashboard akan terisi setelah Anda mulai mencatat jam kerja.")
    else:
        totals = aggregator.totals(records)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Total Pendapatan", rupiah(totals.total_wage))
        c2.metric("Total Jam Kerja", format_hm(totals.total_hours))
        c3.metric("Hari Kerja", totals.count)
        c4.metric("Rata-rata / Hari", rupiah(totals.average_per_day))

        series = aggregator.last_n_series(records)
        st.subheader("Upah 7 catatan terakhir")
        st.bar_chart(pd.DataFrame({"Upah": [p.wage for p in series.points]},
                                  index=[p.label for p in series.points]))

        ratio = aggregator.work_break_ratio(records)
        st.subheader("Kerja vs Istirahat")
        st.progress(min(1.0, ratio.work_percentage / 100),
                    text=f"Kerja {ratio.work_percentage:.0f}% · Istirahat {ratio.break_percentage:.0f}%")

        today = date.today()
        if profile.monthly_target > 0:
            progress = aggregator.monthly_progress(records, today.year, today.month, profile.monthly_target)
            st.progress(progress.percentage / 100,
                        text=f"Target {month_label(today.year, today.month)}: "
                             f"{rupiah(progress.earned)} / {rupiah(progress.target)}")

# =========================
# 🗓️ Rekap: form + list + calendar + statement
# =========================
elif halaman == "Rekap":
    editing_id = st.session_state.get("editing_id")
    editing = repo.get(editing_id) if editing_id else None

    st.subheader("✏️ Ubah catatan" if editing else "➕ Tambah catatan")
    mode_label = st.radio("Mode", ["Jam Kerja", "Input Manual"], horizontal=True,
                          index=1 if editing and editing.mode is InputMode.DURATION else 0)
    mode = InputMode.RANGE if mode_label == "Jam Kerja" else InputMode.DURATION
    tanggal = st.date_input("Tanggal", value=editing.day if editing else date.today())

    if mode is InputMode.RANGE:
        c1, c2, c3 = st.columns(3)
        mulai = c1.text_input("Mulai", value=(editing.start_time if editing and editing.start_time else "08:00"))
        selesai = c2.text_input("Selesai", value=(editing.end_time if editing and editing.end_time else "17:00"))
        istirahat = c3.number_input("Istirahat (mnt)", min_value=0, step=5,
                                    value=int(editing.break_minutes) if editing else 60)
        # carried over if the user switches to manual input
        st.session_state["carry_hm"] = DurationResolver.to_duration_inputs(mulai, selesai, istirahat)
        jam = menit = 0
        duration = DurationResolver.resolve(mode, start_time=mulai, end_time=selesai, break_minutes=istirahat)
        if duration.next_day:
            st.caption("Selesai keesokan harinya (+1 hari).")
    else:
        awal_h, awal_m = manual_form_inputs(editing, st.session_state.get("carry_hm"))
        c1, c2 = st.columns(2)
        jam = c1.number_input("Jam", min_value=0, step=1, value=awal_h)
        menit = c2.number_input("Menit", min_value=0, max_value=59, step=5, value=min(59, awal_m))
        mulai = selesai = None
        istirahat = 0
        duration = DurationResolver.resolve(mode, hours=jam, minutes=menit)

    tarif = st.number_input("Tarif / jam", min_value=0.0, step=500.0,
                            value=float(editing.rate if editing else profile.default_rate))
    upah_hitung = WageComputer.compute(duration.decimal, tarif)
    manual = st.checkbox("Upah manual", value=bool(editing and editing.is_wage_overridden))
    override = None
    if manual:
        override = st.number_input("Total upah", min_value=0.0, step=1000.0,
                                   value=float(editing.total_wage if editing else upah_hitung))
    st.caption(f"Durasi {format_hm(duration.decimal)} · Upah {rupiah(override if manual else upah_hitung)}")

    b1, b2 = st.columns(2)
    if b1.button("Simpan", use_container_width=True):
        if duration.decimal <= 0:
            st.warning("Durasi kerja harus lebih dari 0 untuk disimpan.")
        else:
            when = datetime.combine(tanggal, editing.date.time() if editing else datetime.now().time())
            record = new_record(
                when, mode, start_time=mulai, end_time=selesai, break_minutes=istirahat,
                hours=jam, minutes=menit, rate=tarif, wage_override=override,
                record_id=editing.id if editing else None,
            )
            if editing:
                repo.update(record)
                st.session_state["_flash_success"] = "Data absensi berhasil diperbarui!"
            else:
                repo.add(record)
                st.session_state["_flash_success"] = "Data absensi baru berhasil disimpan!"
            st.session_state.pop("editing_id", None)
            st.rerun()
    if editing and b2.button("Batal", use_container_width=True):
        st.session_state.pop("editing_id", None)
        st.rerun()

    # --- filters ---
    st.subheader("🗓️ Rekap Absensi")
    state = _query_state()
    f1, f2 = st.columns(2)
    dari = f1.date_input("Dari", value=state.date_range_start)
    sampai = f2.date_input("Sampai", value=state.date_range_end)
    cari = st.text_input("Cari (tanggal atau nominal)", value=state.search_text)
    urut = st.radio("Urutan", ["Terlama", "Terbaru"], horizontal=True,
                    index=0 if state.sort_direction is SortDirection.ASCENDING else 1)
    arah = SortDirection.ASCENDING if urut == "Terlama" else SortDirection.DESCENDING
    if (dari, sampai, cari, arah) != (state.date_range_start, state.date_range_end,
                                      state.search_text, state.sort_direction):
        state = state.with_filters(date_range_start=dari or None, date_range_end=sampai or None,
                                   search_text=cari, sort_direction=arah)

    result = query_engine.query(records, state)
    clamped = state.clamped(result.total_pages)
    if clamped != state:
        state = clamped
        result = query_engine.query(records, state)
    st.session_state["query_state"] = state

    if not result.page:
        st.info("Belum ada data absensi." if not records else "Tidak ada data yang cocok dengan filter.")
    for rec in result.page:
        c1, c2, c3 = st.columns([5, 1, 1])
        if rec.mode is InputMode.RANGE:
            waktu = f"{rec.start_time} - {rec.end_time} (break {rec.break_minutes}m)"
        else:
            waktu = "Input manual"
        c1.markdown(f"**{long_date_label(rec.day)}** · {waktu}  \n"
                    f"{format_hm(rec.total_hours_decimal)} · {rupiah(rec.total_wage)}")
        if c2.button("Ubah", key=f"edit_{rec.id}"):
            st.session_state["editing_id"] = rec.id
            st.session_state.pop("carry_hm", None)
            st.rerun()
        if c3.button("Hapus", key=f"del_{rec.id}"):
            repo.delete(rec.id)
            st.rerun()

    p1, p2, p3 = st.columns([1, 2, 1])
    if p1.button("‹", disabled=state.page_number <= 1):
        st.session_state["query_state"] = state.with_page(state.page_number - 1)
        st.rerun()
    p2.caption(f"Halaman {state.page_number} dari {result.total_pages} · {result.total_count} catatan")
    if p3.button("›", disabled=state.page_number >= result.total_pages):
        st.session_state["query_state"] = state.with_page(state.page_number + 1)
        st.rerun()

    grand = aggregator.totals(records)
    st.caption(f"Total keseluruhan: {format_hm(grand.total_hours)} · {rupiah(grand.total_wage)}")

    # --- calendar month ---
    st.subheader("📅 Kalender")
    bulan = st.date_input("Bulan", value=date.today(), key="calendar_month")
    buckets = aggregator.daily_buckets(records, year=bulan.year, month=bulan.month)
    if buckets:
        st.dataframe(pd.DataFrame([
            {"Tanggal": d.isoformat(), "Hari": chart_label(d), "Jam": format_hm(b.hours), "Upah": rupiah(b.wage)}
            for d, b in sorted(buckets.items())
        ]), use_container_width=True, hide_index=True)
    else:
        st.caption(f"Tidak ada catatan di {month_label(bulan.year, bulan.month)}.")

    # --- statement ---
    st.subheader("⬇️ Slip Gaji Periode")
    if result.matching:
        statement = slip_aggregator.summarize(result.matching)
        st.markdown(
            f"- **Periode**: {statement.start_label} - {statement.end_label}\n"
            f"- **Hari**: {statement.day_count}\n"
            f"- **Total jam**: {format_hm(statement.total_hours)}\n"
            f"- **Rata-rata tarif**: {rupiah(statement.average_rate)} / jam\n"
            f"- **Total upah**: {rupiah(statement.total_wage)}"
        )
        pdf_bytes = render_statement_pdf(statement, result.matching, profile, datetime.now())
        st.download_button(
            "Unduh PDF", data=pdf_bytes, file_name=f"slip_{date.today().isoformat()}.pdf",
            mime="application/pdf", use_container_width=True,
        )
    else:
        st.caption("Tidak ada data untuk slip.")

# =========================
# ⏱️ Live tracker
# =========================
elif halaman == "Live":
    started = st.session_state.get("live_started_at")
    if started is None:
        if st.button("Mulai sesi", use_container_width=True):
            st.session_state["live_started_at"] = datetime.now()
            st.rerun()
    else:
        elapsed = datetime.now() - started
        jam_live = elapsed.total_seconds() / 3600
        st.metric("Berjalan", format_hm(jam_live))
        st.metric("Upah berjalan", rupiah(WageComputer.compute(jam_live, profile.default_rate)))
        if st.button("Selesai", use_container_width=True):
            record = record_from_live_session(started, datetime.now(), profile.default_rate)
            st.session_state.pop("live_started_at", None)
            if record.total_hours_decimal > 0:
                repo.add(record)
                st.session_state["_flash_success"] = f"Sesi disimpan: {format_hm(record.total_hours_decimal)}"
            st.rerun()

# =========================
# 💰 Keuangan
# =========================
elif halaman == "Keuangan":
    entries = repo.list_finance()
    ft = finance_totals(entries)
    c1, c2, c3 = st.columns(3)
    c1.metric("Pemasukan", rupiah(ft.income))
    c2.metric("Pengeluaran", rupiah(ft.expense))
    c3.metric("Saldo", rupiah(ft.balance))

    jenis = st.radio("Jenis", ["Pengeluaran", "Pemasukan"], horizontal=True)
    kind = FinanceType.EXPENSE if jenis == "Pengeluaran" else FinanceType.INCOME
    kategori = st.text_input("Kategori", value="Bensin" if kind is FinanceType.EXPENSE else "Gaji")
    jumlah = st.number_input("Jumlah", min_value=0.0, step=1000.0)
    catatan = st.text_input("Catatan")
    if st.button("Tambah", use_container_width=True) and jumlah > 0:
        now = datetime.now()
        repo.add_finance(FinanceRecord(id=now.strftime("%Y%m%d%H%M%S%f"), date=now, type=kind,
                                       category=kategori, amount=jumlah, note=catatan))
        st.rerun()
    for e in entries:
        c1, c2 = st.columns([5, 1])
        sign = "+" if e.type is FinanceType.INCOME else "-"
        c1.write(f"{long_date_label(e.date.date())} · {e.category} · {sign}{rupiah(e.amount)} {e.note}")
        if c2.button("Hapus", key=f"fin_{e.id}"):
            repo.delete_finance(e.id)
            st.rerun()

# =========================
# 🧮 Alat: penjumlah waktu + kalkulator durasi
# =========================
elif halaman == "Alat":
    st.subheader("Penjumlah Waktu")
    rows_df = st.data_editor(
        pd.DataFrame([{"hours": 0, "minutes": 0, "seconds": 0}]),
        num_rows="dynamic", use_container_width=True, key="time_adder",
    )
    total = sum_time_parts(rows_df.fillna(0).to_dict("records"))
    st.metric("Total", f"{total.hours:02d}:{total.minutes:02d}:{total.seconds:02d}")

    st.subheader("Kalkulator Durasi")
    c1, c2 = st.columns(2)
    awal = c1.text_input("Mulai", value="09:00", key="calc_start")
    akhir = c2.text_input("Selesai", value="17:00", key="calc_end")
    hasil = DurationResolver.resolve(InputMode.RANGE, start_time=awal, end_time=akhir)
    st.metric("Durasi", f"{hasil.hours} Jam {hasil.minutes} Mnt")
    if hasil.next_day:
        st.caption("Melewati tengah malam (+1 hari).")

# =========================
# ⚙️ Pengaturan
# =========================
elif halaman == "Pengaturan":
    with st.form("profile"):
        nama = st.text_input("Nama Lengkap", value=profile.employee_name)
        jabatan = st.text_input("Jabatan / Role", value=profile.employee_role)
        perusahaan = st.text_input("Nama Perusahaan", value=profile.company_name)
        alamat = st.text_input("Alamat Kantor", value=profile.company_address)
        default_rate = st.number_input("Default Rate / Jam", min_value=0.0, step=500.0, value=profile.default_rate)
        target = st.number_input("Target Bulanan", min_value=0.0, step=100000.0, value=profile.monthly_target)
        st.caption(f"ID Karyawan: {profile.employee_id}")
        if st.form_submit_button("Simpan Profil"):
            profile.employee_name, profile.employee_role = nama, jabatan
            profile.company_name, profile.company_address = perusahaan, alamat
            profile.default_rate, profile.monthly_target = default_rate, target
            repo.save_profile(profile)
            st.session_state["_flash_success"] = "Profil tersimpan."
            st.rerun()
    if st.button("Buat ID baru"):
        profile.employee_id = generate_employee_id(datetime.now())
        repo.save_profile(profile)
        st.rerun()

    st.subheader("Backup")
    backup = repo.export_backup(datetime.now())
    st.download_button(
        "Unduh backup", data=json.dumps(backup, indent=2, ensure_ascii=False),
        file_name=f"timemaster_backup_{date.today().isoformat()}.json", mime="application/json",
    )
    upload = st.file_uploader("Pulihkan dari backup", type=["json"])
    if upload is not None and st.button("Timpa data saya dengan backup ini"):
        try:
            restored = repo.import_backup(json.loads(upload.getvalue().decode("utf-8")))
        except (BackupFormatError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Backup restore rejected for %s: %s", owner, e)
            st.error("Format file backup tidak valid.")
        else:
            st.session_state["_flash_success"] = f"Restore berhasil: {restored} catatan."
            st.rerun()
