# app/models/building.py
"""
Building table — one row per physical occupancy zone.
occupancy_count is the live headcount, kept in lockstep with the number of
open occupancy_sessions by scan_ledger. Never negative (clamped on exit).
"""

from sqlalchemy import Column, BigInteger, String, CheckConstraint
from app.database import Base


class Building(Base):
    __tablename__ = "buildings"
    __table_args__ = (
        CheckConstraint("occupancy_count >= 0", name="ck_buildings_occupancy_non_negative"),
    )

    id = Column(String(64), primary_key=True)
    department_name = Column(String(255), nullable=False, default="", server_default="")
    occupancy_count = Column(BigInteger, nullable=False, default=0, server_default="0")

    def __repr__(self):
        return f"<Building {self.id} count={self.occupancy_count}>"
