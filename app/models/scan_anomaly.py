# app/models/scan_anomaly.py
"""
Scan anomalies — every event the ledger dropped or only partially applied
(unrecognized direction, OUT without an open session, unknown building,
IN without a tag). Written in the same transaction as the scan itself.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class ScanAnomaly(Base):
    __tablename__ = "scan_anomalies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    anomaly_type = Column(String(50), nullable=False, index=True)
    building_id = Column(String(64))
    tag_key = Column(String(128))
    direction = Column(String(32))
    description = Column(Text)
    recorded_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<ScanAnomaly {self.id} type={self.anomaly_type} building={self.building_id}>"
