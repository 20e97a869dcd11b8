# Report exports - CSV and JSON renderings of ReportData and the raw intake dump
from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models import RawAdminData, ReportData
from store import KINDS, IntakeStore

CSV_SECTIONS = [
    ("payments", ["روش پرداخت", "بهترین امتیاز", "ستاره", "تأخیر", "یادداشت"],
     lambda p: [p.name, p.bestScore, p.stars, p.delay or "", p.notes or ""]),
    ("treatments", ["نام درمان", "سطح سودآوری", "هزینه", "یادداشت"],
     lambda t: [t.name, t.profitabilityLabel, t.cost, t.notes or ""]),
    ("doctors", ["نام پزشک", "تخصص"],
     lambda d: [d.name, d.specialty]),
    ("people", ["نام", "اولین ثبت", "تعداد ثبت"],
     lambda p: [p.name, p.firstSeen or "", p.submissions]),
]


def report_to_csv(report: ReportData) -> str:
    """
    One CSV with a section per entity list, separated by a blank line.
    Payments are written in best-score order, the same order as the chart.
    """
    buf = io.StringIO()
    writer = csv.writer(buf)
    rows_by_section = {
        "payments": report.charts["paymentsByScore"],
        "treatments": report.treatments,
        "doctors": report.doctors,
        "people": report.people,
    }
    for index, (section, header, to_row) in enumerate(CSV_SECTIONS):
        if index:
            writer.writerow([])
        writer.writerow(header)
        for item in rows_by_section[section]:
            writer.writerow(to_row(item))
    return buf.getvalue()


def report_to_json(
    report: ReportData,
    source: str,
    raw: Optional[RawAdminData] = None,
) -> Dict[str, Any]:
    return {
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "source": source,
        "report": report.to_dict(),
        "raw": raw,
    }


def raw_export(store: IntakeStore) -> Dict[str, Any]:
    """Full dump of every submission, re-importable through POST /admin/import"""
    snapshot = store.snapshot()
    return {
        "exportDate": datetime.now(timezone.utc).isoformat(),
        **{kind: snapshot[kind] for kind in KINDS},
    }
