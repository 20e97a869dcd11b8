# Advanced dashboard metrics - computed with the same parsers as the report
from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any, DefaultDict, Dict, List

from models import RawAdminData, ReportData
from normalize import normalize_name, normalize_text
from reporting import (
    PROFITABILITY_ORDER,
    UNKNOWN_LABEL,
    parse_number,
    parse_score,
    parse_timestamp,
    records_of,
    score_to_stars,
)

SCORE_RANGE = range(1, 11)


def _raw(raw: Any) -> RawAdminData:
    return raw if isinstance(raw, dict) else {}


def average_payment_score(raw: Any) -> float:
    """Mean score over every raw payment submission, one decimal."""
    scores = [parse_score(p.get("score")) for p in records_of(_raw(raw), "payments", "paymentTypes")]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


def top_treatment(report: ReportData) -> str:
    """Most profitable treatment; earliest listed wins ties. '-' when empty."""
    if not report.treatments:
        return "-"
    best = min(
        report.treatments,
        key=lambda t: PROFITABILITY_ORDER.get(t.profitability, len(PROFITABILITY_ORDER) + 1),
    )
    return best.name


def payment_score_distribution(raw: Any) -> Dict[str, List]:
    """How many submissions gave each whole score 1..10, with the report's star label per bin"""
    counter: Counter = Counter()
    for payment in records_of(_raw(raw), "payments", "paymentTypes"):
        score = round(parse_score(payment.get("score")))
        if score in SCORE_RANGE:
            counter[score] += 1
    return {
        "labels": [str(s) for s in SCORE_RANGE],
        "stars": [score_to_stars(s) for s in SCORE_RANGE],
        "data": [counter.get(s, 0) for s in SCORE_RANGE],
    }


def revenue_by_treatment(raw: Any) -> List[Dict[str, Any]]:
    """Summed cost per treatment (by dedup key), highest first."""
    totals: Dict[str, float] = {}
    names: Dict[str, str] = {}
    for treatment in records_of(_raw(raw), "treatments"):
        name = normalize_text(treatment.get("name")) or UNKNOWN_LABEL
        key = normalize_name(name)
        cost = treatment.get("cost")
        if cost is None:
            cost = treatment.get("price")
        amount = parse_number(cost) or 0
        names.setdefault(key, name)
        totals[key] = totals.get(key, 0) + amount
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": names[key], "revenue": revenue} for key, revenue in ranked]


def total_revenue(raw: Any) -> float:
    return sum(row["revenue"] for row in revenue_by_treatment(raw))


def daily_registrations(raw: Any) -> Dict[str, List]:
    """Registrations per calendar day; unparseable timestamps are grouped as unknown"""
    daily: DefaultDict[str, int] = defaultdict(int)
    for person in records_of(_raw(raw), "persons", "people"):
        stamp = parse_timestamp(person.get("createdAt") or person.get("created_at"))
        day = stamp.date().isoformat() if stamp else UNKNOWN_LABEL
        daily[day] += 1
    known = sorted(d for d in daily if d != UNKNOWN_LABEL)
    labels = known + ([UNKNOWN_LABEL] if UNKNOWN_LABEL in daily else [])
    return {"labels": labels, "data": [daily[d] for d in labels]}


def summarize(raw: Any, report: ReportData) -> Dict[str, Any]:
    """All dashboard summary cards and secondary charts in one payload"""
    raw = _raw(raw)
    return {
        "totalUsers": report.kpis["totalPeople"],
        "totalSubmissions": {
            "payments": len(records_of(raw, "payments", "paymentTypes")),
            "treatments": len(records_of(raw, "treatments")),
        },
        "avgPaymentScore": average_payment_score(raw),
        "topTreatment": top_treatment(report),
        "totalRevenue": total_revenue(raw),
        "revenueByTreatment": revenue_by_treatment(raw),
        "paymentScoreDistribution": payment_score_distribution(raw),
        "dailyRegistrations": daily_registrations(raw),
    }
