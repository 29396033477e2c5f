from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from app.utils.clock import to_display


class ScanAnomalyOut(BaseModel):
    id: int
    anomaly_type: str
    building_id: Optional[str]
    tag_key: Optional[str]
    direction: Optional[str]
    description: Optional[str]
    recorded_at: datetime

    @field_validator("recorded_at")
    @classmethod
    def render_in_display_zone(cls, value):
        return to_display(value)

    class Config:
        from_attributes = True
