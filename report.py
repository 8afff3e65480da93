# report.py
from __future__ import annotations

import io
import logging
import random
from datetime import datetime
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain import PeriodStatement, UserProfile, WorkRecord
from utils import format_hm, long_date_label, records_to_dataframe, rupiah

logger = logging.getLogger(__name__)

BORDER = colors.HexColor("#C7CCD6")
GRID = colors.HexColor("#E0E0E0")
HEADER_BG = colors.HexColor("#F5F5F7")


def reference_number(now: datetime, monthly: bool, rng: random.Random | None = None) -> str:
    """PAY/<year>/M-1234 for period statements, PAY/<year>/D-1234 for single records."""
    rng = rng or random.Random()
    return f"PAY/{now.year}/{'M' if monthly else 'D'}-{rng.randint(1000, 9999)}"


def statement_lines(records: Sequence[WorkRecord]) -> list[list[str]]:
    # time of day orders records within a date; the date sorts are stable
    df = records_to_dataframe(sorted(records, key=lambda r: r.date))
    if df.empty:
        return []
    df = df.sort_values(["Tanggal"], ascending=True, kind="stable")
    lines = []
    for _, row in df.iterrows():
        if row["Mode"] == "range":
            waktu = f"{row['Mulai']} - {row['Selesai']}"
            if row["Istirahat (mnt)"]:
                waktu += f" (-{row['Istirahat (mnt)']}m)"
        else:
            waktu = "Input manual"
        lines.append([
            row["Tanggal"],
            waktu,
            format_hm(row["Jam"]),
            rupiah(row["Tarif"]),
            rupiah(row["Upah"]),
        ])
    return lines


def render_statement_pdf(
    statement: PeriodStatement,
    records: Sequence[WorkRecord],
    profile: UserProfile,
    now: datetime,
    title: str = "Slip Gaji",
    rng: random.Random | None = None,
) -> bytes:
    """A4 statement: employee header, record lines and a summary box."""
    monthly = statement.day_count > 1
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, topMargin=28, bottomMargin=28, leftMargin=28, rightMargin=28)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(name="TitleCentered", parent=styles["Title"], alignment=TA_CENTER)
    summary_style = ParagraphStyle(
        name="Summary", parent=styles["Normal"], alignment=TA_CENTER,
        textColor=colors.black, fontSize=11, leading=14, spaceBefore=2, spaceAfter=2
    )

    story = [
        Paragraph(escape(title), title_style),
        Paragraph(escape(f"{profile.company_name} · {profile.company_address}"), styles["Normal"]),
        Paragraph(
            escape(f"{profile.employee_name} ({profile.employee_role}) · ID {profile.employee_id}"),
            styles["Normal"],
        ),
        Paragraph(
            f"No. {reference_number(now, monthly, rng)} · {long_date_label(now.date())}",
            styles["Normal"],
        ),
        Spacer(1, 10),
    ]

    lines = statement_lines(records)
    if not lines:
        story.append(Paragraph("Tidak ada data.", styles["Normal"]))
    else:
        data = [["Tanggal", "Waktu", "Durasi", "Tarif", "Upah"]] + lines
        table = Table(data, repeatRows=1, hAlign="CENTER")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("GRID", (0, 0), (-1, -1), 0.25, GRID),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        story.append(table)

    period = statement.start_label
    if statement.end_label and statement.end_label != statement.start_label:
        period = f"{statement.start_label} - {statement.end_label}"
    cells = [
        [Paragraph(f"Periode: {period or '-'} · {statement.day_count} hari", summary_style)],
        [Paragraph(f"Total jam: {format_hm(statement.total_hours)}", summary_style)],
        [Paragraph(f"Rata-rata tarif: {rupiah(statement.average_rate)} / jam", summary_style)],
        [Paragraph(f"<b>Total upah: {rupiah(statement.total_wage)}</b>", summary_style)],
    ]
    summary_box = Table(cells, colWidths=[min(420, 0.75 * doc.width)], hAlign="CENTER")
    summary_box.setStyle(TableStyle([
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("BOX", (0, 0), (-1, -1), 0.6, BORDER),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    story += [Spacer(1, 14), summary_box]

    def draw_page_border(canvas, doc_obj):
        canvas.saveState()
        w, h = doc_obj.pagesize
        canvas.setStrokeColor(BORDER)
        canvas.setLineWidth(0.8)
        margin = 12
        canvas.rect(margin, margin, w - 2 * margin, h - 2 * margin)
        canvas.restoreState()

    doc.build(story, onFirstPage=draw_page_border, onLaterPages=draw_page_border)
    logger.info("Rendered statement for %s: %d lines", profile.employee_id, len(lines))
    return buf.getvalue()
