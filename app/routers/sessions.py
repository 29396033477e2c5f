# app/routers/sessions.py
"""Read-only occupancy session log. Times are rendered in DISPLAY_TIMEZONE."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.models.occupancy_session import OccupancySession
from app.schemas.occupancy_session import OccupancySessionOut

router = APIRouter()


@router.get("/sessions", response_model=list[OccupancySessionOut], summary="Occupancy session log")
def get_sessions(
    building_id: Optional[str] = None,
    tag_key: Optional[str] = None,
    open_only: bool = False,
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    q = db.query(OccupancySession)
    if building_id:
        q = q.filter(OccupancySession.building_id == building_id)
    if tag_key:
        q = q.filter(OccupancySession.tag_key == tag_key)
    if open_only:
        q = q.filter(OccupancySession.exit_time == None)  # noqa: E711
    return q.order_by(OccupancySession.session_id.desc()).limit(limit).all()
