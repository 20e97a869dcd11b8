# Runtime settings - read from the environment (.env supported)
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_REVIEW_THRESHOLD = 1000.0


@dataclass(frozen=True)
class Settings:
    adminPassword: str = DEFAULT_ADMIN_PASSWORD
    dataFile: Optional[str] = None
    exportUrl: Optional[str] = None
    dataUrl: Optional[str] = None
    reviewThreshold: float = DEFAULT_REVIEW_THRESHOLD
    demoMode: bool = False
    frontendUrl: str = ""
    logLevel: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_settings() -> Settings:
    """Settings from the current environment. Read on every call so tests can monkeypatch."""
    return Settings(
        adminPassword=os.environ.get("ADMIN_PASSWORD") or DEFAULT_ADMIN_PASSWORD,
        dataFile=os.environ.get("INTAKE_DATA_FILE") or None,
        exportUrl=os.environ.get("ADMIN_EXPORT_URL") or None,
        dataUrl=os.environ.get("ADMIN_DATA_URL") or None,
        reviewThreshold=_float_env("COST_REVIEW_THRESHOLD", DEFAULT_REVIEW_THRESHOLD),
        demoMode=os.environ.get("DEMO_MODE", "").lower() == "true",
        frontendUrl=os.environ.get("FRONTEND_URL", ""),
        logLevel=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
