# app/schemas/occupancy_session.py
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from app.utils.clock import to_display


class OccupancySessionOut(BaseModel):
    session_id: int
    tag_key: str
    building_id: str
    entry_time: datetime
    exit_time: Optional[datetime]
    direction: str
    is_open: bool

    @field_validator("entry_time", "exit_time")
    @classmethod
    def render_in_display_zone(cls, value):
        return to_display(value)

    class Config:
        from_attributes = True
