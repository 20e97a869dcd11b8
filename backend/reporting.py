# Reporting pipeline - normalize, dedup and merge raw intake records into ReportData
from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import (
    Bucket,
    CleanDoctor,
    CleanPayment,
    CleanPerson,
    CleanTreatment,
    RawRecord,
    ReportData,
)
from normalize import normalize_digits, normalize_name, normalize_text

UNKNOWN_LABEL = "نامشخص"
NEEDS_REVIEW_NOTE = "نیاز به اصلاح"
BUNDLE_NOTE_PREFIX = "بخشی از: "
NOTE_SEPARATOR = "؛ "

# A positive price below this is almost always a unit error (missing zeros)
NEEDS_REVIEW_BELOW = 1000

PROFITABILITY_LABELS: Dict[str, str] = {
    "very-high": "خیلی پرسود",
    "high": "پرسود",
    "medium": "متوسط",
    "low": "کم‌سود",
    "very-low": "خیلی کم‌سود",
}

# Lower is more profitable
PROFITABILITY_ORDER: Dict[str, int] = {
    "very-high": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
    "very-low": 5,
}

# First matching label wins, so order matters
SPECIALTY_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("عمومی", ["عمومی"]),
    ("ترمیمی و زیبایی", ["ترمیم", "زیبایی"]),
    ("ارتودنسی", ["ارتودنسی"]),
    ("پریو/ایمپلنت", ["پریو", "لثه", "ایمپلنت"]),
    ("درمان ریشه (اندو)", ["ریشه", "اندو"]),
    ("اطفال", ["اطفال"]),
    ("فک و صورت", ["فک", "صورت"]),
]

DELAY_CHECK = "نیازمند زمان‌بندی (چک)"
DELAY_INSTALLMENT = "اقساطی"
DELAY_NONE = "بدون تأخیر"

# Checked in this order
DELAY_KEYWORDS: List[Tuple[str, List[str]]] = [
    (DELAY_CHECK, ["چک", "cheque", "check"]),
    (DELAY_INSTALLMENT, ["قسط", "اقساط", "installment"]),
    (DELAY_NONE, ["نقد", "cash"]),
]

# Keywords match at the start of a word only ("چک" but not "کوچک")
_DELAY_PATTERNS = [
    (label, re.compile(r"(?<!\w)(?:" + "|".join(keywords) + ")"))
    for label, keywords in DELAY_KEYWORDS
]

_PAYMENT_DELIMITERS = re.compile(r"[–—\-،,/]+| و ")

_FA_NUMBER_FORMAT = str.maketrans({
    "0": "۰", "1": "۱", "2": "۲", "3": "۳", "4": "۴",
    "5": "۵", "6": "۶", "7": "۷", "8": "۸", "9": "۹",
    ",": "٬", ".": "٫",
})


@dataclass(frozen=True)
class PaymentSplit:
    names: List[str]
    bundleNote: Optional[str] = None


@dataclass(frozen=True)
class CostInfo:
    display: str
    needsReview: bool = False


def parse_number(value: Any) -> Optional[float]:
    """Permissive numeric parse: numbers or numeric strings (grouping commas, Persian digits). None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints past the float range, e.g. a long JSON integer literal
            return None
        return number if math.isfinite(number) else None
    text = normalize_digits(normalize_text(value))
    text = text.replace(",", "").replace("٬", "").replace("٫", ".")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_score(value: Any) -> float:
    """Score as a number; anything unparseable counts as 0."""
    number = parse_number(value)
    if number is None:
        return 0
    return int(number) if number.is_integer() else number


def score_to_stars(score: float) -> str:
    """Display policy for a 0-10 score, not a linear scale."""
    if score >= 10:
        return "5 stars"
    if score == 9:
        return "4.5 stars"
    if score == 8:
        return "4 stars"
    if score == 7:
        return "3 stars"
    if score >= 5:
        return "2 stars"
    return "1 star"


def split_payment_names(raw: Any) -> PaymentSplit:
    """
    Split a bundled payment type ("نقد - کارت بانکی") into its methods.
    A bundle keeps the whole normalized string as bundleNote; empty or
    delimiter-only input falls back to a single unknown method.
    """
    cleaned = normalize_text(raw)
    if not cleaned:
        return PaymentSplit(names=[UNKNOWN_LABEL])
    parts = [normalize_text(p) for p in _PAYMENT_DELIMITERS.split(cleaned)]
    parts = [p for p in parts if p]
    if not parts:
        return PaymentSplit(names=[UNKNOWN_LABEL])
    if len(parts) == 1:
        return PaymentSplit(names=parts)
    return PaymentSplit(names=parts, bundleNote=cleaned)


def _format_grouped(number: float) -> str:
    if number.is_integer():
        text = f"{int(number):,}"
    else:
        text = f"{number:,.3f}".rstrip("0").rstrip(".")
    return text.translate(_FA_NUMBER_FORMAT)


def format_cost(value: Any, review_below: float = NEEDS_REVIEW_BELOW) -> CostInfo:
    """Grouped-digit display for a price, flagging implausibly small positive values."""
    number = parse_number(value)
    if number is None:
        return CostInfo(display="-", needsReview=False)
    return CostInfo(
        display=_format_grouped(number),
        needsReview=0 < number < review_below,
    )


def infer_delay(description: Any = None) -> Optional[str]:
    """Settlement delay implied by a payment description, None when there is no signal."""
    desc = normalize_name(description)
    if not desc:
        return None
    for label, pattern in _DELAY_PATTERNS:
        if pattern.search(desc):
            return label
    return None


def map_profitability(label: Any) -> Tuple[str, str]:
    """Return (tier key, display label). Missing -> medium, unknown keys display verbatim."""
    text = normalize_text(label)
    key = text.lower() or "medium"
    return key, PROFITABILITY_LABELS.get(key) or text or PROFITABILITY_LABELS["medium"]


def parse_specialty(name: Any, explicit: Any = None) -> str:
    """Explicit specialty wins; otherwise first keyword match against the doctor's name."""
    from_explicit = normalize_text(explicit)
    if from_explicit:
        return from_explicit
    normalized = normalize_text(name)
    for label, keywords in SPECIALTY_KEYWORDS:
        if any(kw in normalized for kw in keywords):
            return label
    return UNKNOWN_LABEL


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def earliest_date(a: Optional[str], b: Optional[str]) -> Optional[str]:
    """Earlier of two timestamps. An unparseable side loses; if neither parses keep a."""
    if not a:
        return b
    if not b:
        return a
    da = parse_timestamp(a)
    db = parse_timestamp(b)
    if da is None and db is None:
        return a
    if da is None:
        return b
    if db is None:
        return a
    return a if da <= db else b


def join_notes(*notes: Optional[str]) -> Optional[str]:
    """Concatenate notes, dropping empties and repeated entries."""
    seen: List[str] = []
    for note in notes:
        if not note:
            continue
        for part in note.split(NOTE_SEPARATOR):
            if part and part not in seen:
                seen.append(part)
    return NOTE_SEPARATOR.join(seen) or None


def records_of(raw: Dict[str, Any], *keys: str) -> List[RawRecord]:
    """First non-empty list under any of the alternate keys, dict records only."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, list) and value:
            return [r for r in value if isinstance(r, dict)]
    return []


def fold_people(persons: Iterable[RawRecord]) -> Dict[str, CleanPerson]:
    people: Dict[str, CleanPerson] = {}
    for person in persons:
        full = normalize_text(
            person.get("fullName")
            or person.get("name")
            or f"{person.get('firstName') or ''} {person.get('lastName') or ''}"
        )
        if not full:
            continue
        key = normalize_name(full)
        first_seen = person.get("createdAt") or person.get("created_at")
        if not isinstance(first_seen, str):
            first_seen = None
        existing = people.get(key)
        if existing is None:
            people[key] = CleanPerson(name=full, submissions=1, firstSeen=first_seen)
            continue
        existing.submissions += 1
        existing.firstSeen = earliest_date(existing.firstSeen, first_seen)
    return people


def fold_payments(payments: Iterable[RawRecord]) -> Dict[str, CleanPayment]:
    merged: Dict[str, CleanPayment] = {}
    for payment in payments:
        split = split_payment_names(payment.get("type") or payment.get("name") or "")
        score = parse_score(payment.get("score"))
        delay = infer_delay(payment.get("delay") or payment.get("description"))
        for name in split.names:
            key = normalize_name(name)
            bundle = None
            if split.bundleNote and split.bundleNote != name:
                bundle = f"{BUNDLE_NOTE_PREFIX}{split.bundleNote}"
            notes = join_notes(bundle, delay)
            existing = merged.get(key)
            if existing is None:
                merged[key] = CleanPayment(
                    name=name,
                    bestScore=score,
                    stars=score_to_stars(score),
                    delay=delay,
                    notes=notes,
                )
                continue
            if score > existing.bestScore:
                existing.bestScore = score
                existing.stars = score_to_stars(score)
            if delay and not existing.delay:
                existing.delay = delay
            existing.notes = join_notes(existing.notes, notes)
    return merged


def fold_treatments(
    treatments: Iterable[RawRecord],
    review_below: float = NEEDS_REVIEW_BELOW,
) -> Dict[str, CleanTreatment]:
    merged: Dict[str, CleanTreatment] = {}
    for treatment in treatments:
        name = normalize_text(treatment.get("name"))
        if not name:
            continue
        key = normalize_name(name)
        tier, label = map_profitability(treatment.get("profitability"))
        cost_value = treatment.get("cost")
        if cost_value is None:
            cost_value = treatment.get("price")
        cost = format_cost(cost_value, review_below)
        description = normalize_text(treatment.get("description"))
        review = NEEDS_REVIEW_NOTE if cost.needsReview else None

        existing = merged.get(key)
        if existing is None:
            merged[key] = CleanTreatment(
                name=name,
                profitability=tier,
                profitabilityLabel=label,
                cost=cost.display,
                notes=join_notes(review, description),
            )
            continue

        # Keep the more profitable tier; unknown tiers never win
        current_rank = PROFITABILITY_ORDER.get(existing.profitability)
        new_rank = PROFITABILITY_ORDER.get(tier)
        if new_rank is not None and (current_rank is None or new_rank < current_rank):
            existing.profitability = tier
            existing.profitabilityLabel = label
        if existing.cost == "-" and cost.display != "-":
            existing.cost = cost.display
        existing.notes = join_notes(existing.notes, review, description)
    return merged


def fold_doctors(doctors: Iterable[RawRecord]) -> Dict[str, CleanDoctor]:
    merged: Dict[str, CleanDoctor] = {}
    for doctor in doctors:
        name = normalize_text(doctor.get("name") or doctor.get("doctorName"))
        if not name:
            continue
        key = normalize_name(name)
        if key not in merged:
            merged[key] = CleanDoctor(
                name=name,
                specialty=parse_specialty(name, doctor.get("specialty")),
            )
    return merged


def _buckets(labels: Iterable[str]) -> List[Bucket]:
    # Counter keeps first-seen order
    return [Bucket(name=name, value=count) for name, count in Counter(labels).items()]


def prepare_report(raw: Any, review_below: float = NEEDS_REVIEW_BELOW) -> ReportData:
    """
    Build the admin report from raw intake data.

    Accepts None or any dict with persons/people, payments/paymentTypes,
    treatments and doctors arrays. Never raises; missing or malformed arrays
    are treated as empty. The input is not mutated.
    """
    if not isinstance(raw, dict):
        raw = {}

    people = fold_people(records_of(raw, "persons", "people"))
    payments = fold_payments(records_of(raw, "payments", "paymentTypes"))
    treatments = fold_treatments(records_of(raw, "treatments"), review_below)
    doctors = fold_doctors(records_of(raw, "doctors"))

    payment_list = list(payments.values())
    treatment_list = list(treatments.values())
    doctor_list = list(doctors.values())

    return ReportData(
        people=list(people.values()),
        payments=payment_list,
        treatments=treatment_list,
        doctors=doctor_list,
        kpis={
            "totalPeople": len(people),
            "totalPaymentTypes": len(payments),
            "totalTreatments": len(treatments),
            "totalDoctors": len(doctors),
        },
        charts={
            # sorted() is stable, so ties keep merge order
            "paymentsByScore": sorted(payment_list, key=lambda p: p.bestScore, reverse=True),
            "treatmentProfitBuckets": _buckets(
                PROFITABILITY_LABELS.get(t.profitability) or t.profitabilityLabel
                for t in treatment_list
            ),
            "doctorsBySpecialty": _buckets(d.specialty for d in doctor_list),
        },
    )
