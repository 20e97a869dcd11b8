# Report data models - values produced by one prepare_report() call
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, asdict

# Loosely-typed intake records as they come from the store, an upstream
# export or a pasted JSON blob.
RawRecord = Dict[str, Any]
RawAdminData = Dict[str, Any]


@dataclass
class CleanPerson:
    """A registered person, collapsed by normalized full name"""
    name: str
    submissions: int = 1
    firstSeen: Optional[str] = None


@dataclass
class CleanPayment:
    """A single payment method (bundled types are split before folding)"""
    name: str
    bestScore: float = 0
    stars: str = ""
    delay: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class CleanTreatment:
    """A treatment with its best-seen profitability tier"""
    name: str
    profitability: str = "medium"
    profitabilityLabel: str = ""
    cost: str = "-"
    notes: Optional[str] = None


@dataclass
class CleanDoctor:
    """A doctor and the specialty given or inferred from the name"""
    name: str
    specialty: str = ""
    notes: Optional[str] = None


@dataclass
class Bucket:
    """One chart slice: label and count"""
    name: str
    value: int


@dataclass
class ReportData:
    """Everything the admin dashboard and exports need, always fully populated"""
    people: List[CleanPerson] = field(default_factory=list)
    payments: List[CleanPayment] = field(default_factory=list)
    treatments: List[CleanTreatment] = field(default_factory=list)
    doctors: List[CleanDoctor] = field(default_factory=list)
    kpis: Dict[str, int] = field(default_factory=lambda: {
        "totalPeople": 0,
        "totalPaymentTypes": 0,
        "totalTreatments": 0,
        "totalDoctors": 0,
    })
    # paymentsByScore / treatmentProfitBuckets / doctorsBySpecialty
    charts: Dict[str, List[Any]] = field(default_factory=lambda: {
        "paymentsByScore": [],
        "treatmentProfitBuckets": [],
        "doctorsBySpecialty": [],
    })

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-ready dict; every field present even when empty"""
        return asdict(self)
