# app/routers/scans.py
"""
Scan ingestion endpoint.
POST /scans — the ingestion adapter delivers one authenticated scan per call.
Dropped events still return 200 with their anomaly; only contention (409)
and storage failures (503) are reported as errors so the adapter can retry.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.scan import ScanIn, ScanResultOut
from app.services.ledger_errors import ScanContentionError, StorageUnavailableError
from app.services.scan_ledger import record_scan
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/scans", response_model=ScanResultOut, summary="Record one badge scan")
def post_scan(scan: ScanIn, db: Session = Depends(get_db)):
    try:
        result = record_scan(db, scan.building_id, scan.direction, scan.tag_key)
    except ScanContentionError as e:
        return JSONResponse(status_code=409, content={"detail": str(e), "retryable": True})
    except StorageUnavailableError as e:
        return JSONResponse(status_code=503, content={"detail": str(e), "retryable": False})

    return ScanResultOut(
        outcome=result.outcome.value,
        ok=result.ok,
        building_id=result.building_id,
        direction=result.direction,
        tag_key=result.tag_key,
        session_id=result.session_id,
        occupancy_count=result.occupancy_count,
        anomalies=result.anomalies,
    )
