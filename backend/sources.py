# Raw data loading - upstream export/data endpoints first, then the local store
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from models import RawAdminData
from store import IntakeStore

logger = logging.getLogger(__name__)

SOURCE_API_EXPORT = "api-export"
SOURCE_API_DATA = "api-data"
SOURCE_LOCAL_STORE = "local-store"
SOURCE_MANUAL_IMPORT = "manual-import"
SOURCE_NONE = "none"

FETCH_TIMEOUT_SECONDS = 5.0


@dataclass
class AdminDataResult:
    data: Optional[RawAdminData]
    source: str
    error: Optional[str] = None


def _try_fetch(client: httpx.Client, url: str) -> Optional[RawAdminData]:
    """GET url and return its JSON object, or None on any failure."""
    try:
        response = client.get(url, headers={"Cache-Control": "no-store"})
    except httpx.HTTPError as exc:
        logger.info("Admin data fetch from %s failed: %s", url, exc)
        return None
    if not response.is_success:
        logger.info("Admin data fetch from %s returned %s", url, response.status_code)
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.info("Admin data fetch from %s returned a non-JSON body", url)
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def fetch_admin_data(
    store: IntakeStore,
    export_url: Optional[str] = None,
    data_url: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> AdminDataResult:
    """
    Resolve the raw dataset for the admin report.

    Order: export endpoint, data endpoint, local store. Failures fall through;
    when nothing has data the result carries source "none" and an error string.
    """
    candidates = [(url, source) for url, source in (
        (export_url, SOURCE_API_EXPORT),
        (data_url, SOURCE_API_DATA),
    ) if url]

    if candidates:
        owns_client = client is None
        http = client or httpx.Client(timeout=FETCH_TIMEOUT_SECONDS)
        try:
            for url, source in candidates:
                payload = _try_fetch(http, url)
                if payload is not None:
                    return AdminDataResult(data=payload, source=source)
        finally:
            if owns_client:
                http.close()

    if not store.is_empty():
        return AdminDataResult(data=store.snapshot(), source=SOURCE_LOCAL_STORE)

    return AdminDataResult(data=None, source=SOURCE_NONE, error="No data found")
