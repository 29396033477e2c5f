# app/schemas/scan.py
from pydantic import BaseModel, Field
from typing import Optional


class ScanIn(BaseModel):
    """One scan as delivered by the ingestion adapter. direction is not validated here."""
    building_id: str = Field(..., min_length=1, max_length=64)
    direction: Optional[str] = Field(None, max_length=32)
    tag_key: Optional[str] = Field(None, max_length=128)


class ScanResultOut(BaseModel):
    outcome: str
    ok: bool
    building_id: str
    direction: Optional[str]
    tag_key: Optional[str]
    session_id: Optional[int] = None
    occupancy_count: Optional[int] = None
    anomalies: list[str] = []
