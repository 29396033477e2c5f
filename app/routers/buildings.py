# app/routers/buildings.py
"""Read-only building occupancy endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.building import Building
from app.schemas.building import BuildingOut

router = APIRouter()


@router.get("/buildings", response_model=list[BuildingOut])
def get_all_buildings(db: Session = Depends(get_db)):
    """Current occupancy for all buildings."""
    return db.query(Building).order_by(Building.id).all()


@router.get("/buildings/{building_id}", response_model=BuildingOut)
def get_building(building_id: str, db: Session = Depends(get_db)):
    building = db.query(Building).filter(Building.id == building_id).first()
    if not building:
        raise HTTPException(status_code=404, detail=f"Building '{building_id}' not found")
    return building
