# Backend main entry point - intake API and admin reporting
import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from config import get_settings
from export import raw_export, report_to_csv, report_to_json
from metrics import summarize
from reporting import prepare_report
from seed import seed_data
from sources import SOURCE_MANUAL_IMPORT, fetch_admin_data
from store import (
    DOCTORS,
    KINDS,
    PAYMENTS,
    PERSONS,
    TREATMENTS,
    DuplicatePersonError,
    IntakeStore,
    UnknownPersonError,
)

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.logLevel, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

store = IntakeStore(settings.dataFile)
if not store.load() and settings.demoMode:
    seed_data(store)

app = FastAPI(title="Clinic Intake Reporting API")

# Configure CORS - allow local dev and the deployed frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if settings.frontendUrl:
    _allowed_origins.append(settings.frontendUrl)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> IntakeStore:
    return store


def require_admin(x_admin_password: Optional[str] = Header(None)) -> None:
    """Plaintext compare against ADMIN_PASSWORD, nothing more"""
    if x_admin_password != get_settings().adminPassword:
        raise HTTPException(status_code=401, detail="Admin password required")


# Request models
class PersonCreate(BaseModel):
    firstName: str
    lastName: str

class PaymentCreate(BaseModel):
    personId: int
    type: str = Field(min_length=1)
    score: float = Field(ge=0, le=10)
    description: Optional[str] = None

class TreatmentCreate(BaseModel):
    personId: int
    name: str = Field(min_length=1)
    profitability: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None

class DoctorCreate(BaseModel):
    personId: int
    name: str = Field(min_length=1)
    specialty: Optional[str] = None

class AdminLogin(BaseModel):
    password: str


def _load_report(intake: IntakeStore):
    """Raw data through the fetch chain, then the one reporting pipeline"""
    current = get_settings()
    result = fetch_admin_data(intake, current.exportUrl, current.dataUrl)
    report = prepare_report(result.data, current.reviewThreshold)
    return result, report


@app.get("/")
def read_root():
    return {"message": "Clinic Intake Reporting API"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}


# -- intake -------------------------------------------------------------------

@app.post("/persons")
def register_person(person: PersonCreate, intake: IntakeStore = Depends(get_store)):
    """Register once per normalized full name"""
    try:
        return intake.register_person(person.firstName, person.lastName)
    except DuplicatePersonError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/persons")
def list_persons(intake: IntakeStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return intake.list(PERSONS)


@app.get("/persons/{person_id}/submissions")
def person_submissions(person_id: int, intake: IntakeStore = Depends(get_store)):
    person = intake.get(PERSONS, person_id)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return {"person": person, **intake.submissions_for(person_id)}


@app.post("/payments")
def submit_payment(payment: PaymentCreate, intake: IntakeStore = Depends(get_store)):
    try:
        return intake.add_payment(payment.personId, payment.type, payment.score, payment.description)
    except UnknownPersonError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@app.post("/treatments")
def submit_treatment(treatment: TreatmentCreate, intake: IntakeStore = Depends(get_store)):
    try:
        return intake.add_treatment(
            treatment.personId,
            treatment.name,
            treatment.profitability,
            treatment.cost,
            treatment.description,
        )
    except UnknownPersonError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@app.post("/doctors")
def submit_doctor(doctor: DoctorCreate, intake: IntakeStore = Depends(get_store)):
    try:
        return intake.add_doctor(doctor.personId, doctor.name, doctor.specialty)
    except UnknownPersonError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@app.get("/payments")
def list_payments(intake: IntakeStore = Depends(get_store)):
    return intake.list(PAYMENTS)

@app.get("/treatments")
def list_treatments(intake: IntakeStore = Depends(get_store)):
    return intake.list(TREATMENTS)

@app.get("/doctors")
def list_doctors(intake: IntakeStore = Depends(get_store)):
    return intake.list(DOCTORS)


# -- admin --------------------------------------------------------------------

@app.post("/admin/login")
def admin_login(login: AdminLogin):
    if login.password != get_settings().adminPassword:
        raise HTTPException(status_code=401, detail="Wrong password")
    return {"authenticated": True}


@app.get("/admin/reports", dependencies=[Depends(require_admin)])
def admin_reports(intake: IntakeStore = Depends(get_store)):
    """KPIs, chart series and tables for the dashboard"""
    result, report = _load_report(intake)
    return {"source": result.source, "error": result.error, "report": report.to_dict()}


@app.get("/admin/metrics", dependencies=[Depends(require_admin)])
def admin_metrics(intake: IntakeStore = Depends(get_store)):
    result, report = _load_report(intake)
    return {"source": result.source, "metrics": summarize(result.data, report)}


@app.get("/admin/export", dependencies=[Depends(require_admin)])
def admin_export(intake: IntakeStore = Depends(get_store)):
    """Every raw submission, in the shape /admin/import accepts"""
    return raw_export(intake)


@app.get("/admin/reports.csv", dependencies=[Depends(require_admin)])
def admin_reports_csv(intake: IntakeStore = Depends(get_store)):
    _result, report = _load_report(intake)
    return Response(
        # BOM so spreadsheet apps detect UTF-8 Persian text
        content=report_to_csv(report).encode("utf-8-sig"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="admin-report.csv"'},
    )


@app.get("/admin/reports.json", dependencies=[Depends(require_admin)])
def admin_reports_json(intake: IntakeStore = Depends(get_store)):
    result, report = _load_report(intake)
    return report_to_json(report, result.source, result.data)


@app.post("/admin/import", dependencies=[Depends(require_admin)])
def admin_import(payload: Any = Body(...), intake: IntakeStore = Depends(get_store)):
    """Replace the store with a pasted export"""
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Expected a JSON object")
    intake.replace(payload)
    report = prepare_report(intake.snapshot(), get_settings().reviewThreshold)
    logger.info("Imported intake data: %s", intake.counts())
    return {"source": SOURCE_MANUAL_IMPORT, "kpis": report.kpis}


@app.delete("/admin/records/{kind}/{record_id}", dependencies=[Depends(require_admin)])
def admin_delete_record(kind: str, record_id: int, intake: IntakeStore = Depends(get_store)):
    if kind not in KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown record kind {kind}")
    if not intake.delete(kind, record_id):
        raise HTTPException(status_code=404, detail="Record not found")
    return {"deleted": True}


@app.delete("/admin/data", dependencies=[Depends(require_admin)])
def admin_clear_data(intake: IntakeStore = Depends(get_store)):
    intake.clear()
    logger.info("All intake data cleared")
    return {"status": "ok"}


# -- demo ---------------------------------------------------------------------

@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": get_settings().demoMode}


@app.post("/demo/reset")
def demo_reset(intake: IntakeStore = Depends(get_store)):
    """Reset to the seed dataset. Only available when DEMO_MODE=true."""
    if not get_settings().demoMode:
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data(intake)
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
