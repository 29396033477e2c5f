from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.scan_anomaly import ScanAnomaly
from app.schemas.scan_anomaly import ScanAnomalyOut
from typing import Optional

router = APIRouter()


@router.get("/anomalies", response_model=list[ScanAnomalyOut], summary="Dropped or partial scans")
def get_anomalies(
    anomaly_type: Optional[str] = None,
    building_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Filter by anomaly_type or building_id."""
    q = db.query(ScanAnomaly)
    if anomaly_type:
        q = q.filter(ScanAnomaly.anomaly_type == anomaly_type)
    if building_id:
        q = q.filter(ScanAnomaly.building_id == building_id)
    return q.order_by(ScanAnomaly.id.desc()).limit(limit).all()
