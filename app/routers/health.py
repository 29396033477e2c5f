# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + number of provisioned buildings.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.config import settings
from datetime import datetime, timezone

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "database": "unknown",
        "buildings": None,
        "display_timezone": settings.DISPLAY_TIMEZONE,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["buildings"] = db.execute(text("SELECT COUNT(*) FROM buildings")).scalar()
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
