# app/services/anomaly_service.py
"""
Shared anomaly recording for the scan ledger.
Adds the row to the caller's transaction; the ledger commits it together
with (or instead of) the scan mutation.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.scan_anomaly import ScanAnomaly
from app.utils.logger import get_logger

logger = get_logger(__name__)

UNRECOGNIZED_DIRECTION = "unrecognized_direction"
NO_OPEN_SESSION = "no_open_session"
UNKNOWN_BUILDING = "unknown_building"
MISSING_TAG_KEY = "missing_tag_key"


def _clip(value, size: int) -> Optional[str]:
    # Scans arrive unvalidated; whatever was sent is stored as text
    if value is None:
        return None
    return str(value)[:size]


def record_anomaly(db: Session, anomaly_type: str, building_id: Optional[str], tag_key: Optional[str],
                   direction: Optional[str], description: str, recorded_at: datetime) -> ScanAnomaly:
    anomaly = ScanAnomaly(
        anomaly_type=anomaly_type,
        building_id=_clip(building_id, 64),
        tag_key=_clip(tag_key, 128),
        direction=_clip(direction, 32),
        description=description,
        recorded_at=recorded_at,
    )
    db.add(anomaly)
    logger.warning(f"[ANOMALY][{anomaly_type.upper()}] {description}")
    return anomaly
