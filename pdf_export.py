from __future__ import annotations
from datetime import date
from io import BytesIO
from typing import List
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from models import EntryKind, Settings, TimetableEntry, format_clock
from planner import summarize_timetable


def timetable_to_pdf(
    entries: List[TimetableEntry],
    settings: Settings,
    profile: str,
    day: date,
) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=letter,
        leftMargin=40,
        rightMargin=40,
        topMargin=40,
        bottomMargin=40,
    )
    styles = getSampleStyleSheet()
    elems = []

    summary = summarize_timetable(entries)
    mode = "Pomodoro (25/5)" if settings.use_pomodoro_blocks else "Plain blocks"
    elems.append(Paragraph(f"Timetable for {profile}: {day.isoformat()}", styles["Title"]))
    elems.append(Spacer(1, 10))
    elems.append(Paragraph(
        f"Daily hours: {settings.daily_hours:g} | Mode: {mode} "
        f"| Study blocks: {summary['blocks']}",
        styles["Normal"],
    ))
    elems.append(Spacer(1, 12))

    table_data = [["Start", "End", "Activity", "Minutes"]]
    for e in entries:
        table_data.append([
            format_clock(e.start),
            format_clock(e.end),
            e.label,
            str(e.minutes),
        ])
    table = Table(table_data, hAlign="LEFT", colWidths=[70, 70, 240, 60])
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ALIGN", (3, 1), (3, -1), "RIGHT"),
    ]
    for row, e in enumerate(entries, start=1):
        if e.kind == EntryKind.BREAK:
            style.append(("BACKGROUND", (0, row), (-1, row), colors.whitesmoke))
    table.setStyle(TableStyle(style))
    elems.append(table)
    elems.append(Spacer(1, 12))

    if summary["per_subject"]:
        elems.append(Paragraph("Minutes by subject", styles["Heading3"]))
        totals = [["Subject", "Minutes"]]
        for name, minutes in sorted(summary["per_subject"].items(), key=lambda x: -x[1]):
            totals.append([name, str(minutes)])
        totals.append(["Total study", str(summary["study_minutes"])])
        totals.append(["Total break", str(summary["break_minutes"])])
        totals_table = Table(totals, hAlign="LEFT", colWidths=[240, 60])
        totals_table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ]))
        elems.append(totals_table)

    doc.build(elems)
    return buf.getvalue()
