# Intake store - raw submissions held in memory, optionally mirrored to a JSON file
from __future__ import annotations

import copy
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from models import RawAdminData, RawRecord
from normalize import normalize_name, normalize_text
from reporting import records_of

logger = logging.getLogger(__name__)

PERSONS = "persons"
PAYMENTS = "paymentTypes"
TREATMENTS = "treatments"
DOCTORS = "doctors"
KINDS = (PERSONS, PAYMENTS, TREATMENTS, DOCTORS)

# Alternate keys accepted on import, first non-empty wins
_IMPORT_KEYS = {
    PERSONS: ("persons", "people"),
    PAYMENTS: ("paymentTypes", "payments"),
    TREATMENTS: ("treatments",),
    DOCTORS: ("doctors",),
}


class StoreError(Exception):
    """Base class for rejected intake operations."""


class DuplicatePersonError(StoreError):
    """A person with the same normalized full name is already registered."""


class UnknownPersonError(StoreError):
    """A submission referenced a personId that is not registered."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def full_name(person: RawRecord) -> str:
    """Normalized display name of a raw person record"""
    return normalize_text(
        person.get("fullName")
        or person.get("name")
        or f"{person.get('firstName') or ''} {person.get('lastName') or ''}"
    )


class IntakeStore:
    """
    Holds the four raw record lists. Passed explicitly to whoever needs it;
    when a path is given every mutation is written back to that JSON file.
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path else None
        self._records: Dict[str, List[RawRecord]] = {kind: [] for kind in KINDS}
        self._next_id = 1
        # Guards _records and _next_id
        self._lock = threading.RLock()

    # -- persistence ---------------------------------------------------

    def load(self) -> bool:
        """Read the JSON blob if there is one. A missing or corrupt file leaves the store empty."""
        if self.path is None or not self.path.exists():
            return False
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read intake data from %s: %s", self.path, exc)
            return False
        if not isinstance(raw, dict):
            logger.warning("Ignoring intake data in %s: expected an object", self.path)
            return False
        with self._lock:
            self._fill(raw)
        logger.info("Loaded intake data from %s (%s)", self.path, self.counts())
        return True

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self.snapshot(), ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def _fill(self, raw: RawAdminData) -> None:
        self._records = {
            kind: copy.deepcopy(records_of(raw, *_IMPORT_KEYS[kind])) for kind in KINDS
        }
        ids = [
            r["id"] for rows in self._records.values() for r in rows
            if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)
        ]
        self._next_id = max(ids, default=0) + 1

    # -- reads ---------------------------------------------------------

    def list(self, kind: str) -> List[RawRecord]:
        return copy.deepcopy(self._records[kind])

    def get(self, kind: str, record_id: Any) -> Optional[RawRecord]:
        for record in self._records[kind]:
            if record.get("id") == record_id:
                return copy.deepcopy(record)
        return None

    def submissions_for(self, person_id: Any) -> Dict[str, List[RawRecord]]:
        """Everything a person submitted, by kind"""
        return {
            kind: [copy.deepcopy(r) for r in self._records[kind] if r.get("personId") == person_id]
            for kind in (PAYMENTS, TREATMENTS, DOCTORS)
        }

    def counts(self) -> Dict[str, int]:
        return {kind: len(rows) for kind, rows in self._records.items()}

    def is_empty(self) -> bool:
        return not any(self._records.values())

    def snapshot(self) -> RawAdminData:
        """Deep copy in the shape prepare_report() and the export endpoints expect"""
        with self._lock:
            return {kind: copy.deepcopy(rows) for kind, rows in self._records.items()}

    # -- writes --------------------------------------------------------

    def _append(self, kind: str, record: RawRecord) -> RawRecord:
        with self._lock:
            record = {"id": self._next_id, **record, "createdAt": _now()}
            self._next_id += 1
            self._records[kind].append(record)
            self.save()
        return copy.deepcopy(record)

    def _add(self, kind: str, record: RawRecord) -> RawRecord:
        with self._lock:
            self._require_person(record["personId"])
            return self._append(kind, record)

    def _require_person(self, person_id: Any) -> None:
        if self.get(PERSONS, person_id) is None:
            raise UnknownPersonError(f"Person {person_id} is not registered")

    def register_person(self, first_name: str, last_name: str) -> RawRecord:
        """Register a person once; the same normalized full name cannot register twice."""
        first = normalize_text(first_name)
        last = normalize_text(last_name)
        if not first or not last:
            raise ValueError("firstName and lastName are required")
        key = normalize_name(f"{first} {last}")
        with self._lock:
            if any(normalize_name(full_name(p)) == key for p in self._records[PERSONS]):
                raise DuplicatePersonError(f"{first} {last} is already registered")
            return self._append(PERSONS, {"firstName": first, "lastName": last})

    def add_payment(
        self, person_id: Any, type_: str, score: float, description: Optional[str] = None
    ) -> RawRecord:
        return self._add(PAYMENTS, {
            "personId": person_id,
            "type": type_,
            "score": score,
            "description": description or None,
        })

    def add_treatment(
        self,
        person_id: Any,
        name: str,
        profitability: Optional[str] = None,
        cost: Any = None,
        description: Optional[str] = None,
    ) -> RawRecord:
        return self._add(TREATMENTS, {
            "personId": person_id,
            "name": name,
            "profitability": profitability,
            "cost": cost,
            "description": description or None,
        })

    def add_doctor(self, person_id: Any, name: str, specialty: Optional[str] = None) -> RawRecord:
        record: RawRecord = {"personId": person_id, "name": name}
        if specialty:
            record["specialty"] = specialty
        return self._add(DOCTORS, record)

    def delete(self, kind: str, record_id: Any) -> bool:
        """Remove one record. Deleting a person keeps that person's submissions."""
        with self._lock:
            rows = self._records[kind]
            kept = [r for r in rows if r.get("id") != record_id]
            if len(kept) == len(rows):
                return False
            self._records[kind] = kept
            self.save()
        return True

    def replace(self, raw: RawAdminData) -> None:
        """Swap in a whole dataset (manual import of an export)."""
        with self._lock:
            self._fill(raw)
            self.save()

    def clear(self) -> None:
        with self._lock:
            self._records = {kind: [] for kind in KINDS}
            self._next_id = 1
            self.save()
