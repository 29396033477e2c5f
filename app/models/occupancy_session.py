# app/models/occupancy_session.py
"""
Occupancy session log — one row per IN scan, closed by the matching OUT scan.
session_id is assigned by the database and only used for ordering/audit;
OUT scans find their session by (tag_key, building_id) with exit_time NULL.
Rows are never deleted and never reopened.
"""

from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Index
from app.database import Base


class OccupancySession(Base):
    __tablename__ = "occupancy_sessions"
    __table_args__ = (
        Index("ix_occupancy_sessions_open_lookup", "tag_key", "building_id", "exit_time"),
    )

    # BigInteger on PostgreSQL, plain INTEGER on SQLite so autoincrement works
    session_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    tag_key = Column(String(128), nullable=False, index=True)
    building_id = Column(String(64), nullable=False, index=True)   # no FK: unknown buildings are accepted
    entry_time = Column(DateTime(timezone=True), nullable=False)
    exit_time = Column(DateTime(timezone=True))                     # NULL while the person is inside
    direction = Column(String(8), nullable=False)                   # IN | OUT (last transition)

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    def __repr__(self):
        state = "open" if self.is_open else "closed"
        return f"<OccupancySession {self.session_id} tag={self.tag_key} building={self.building_id} {state}>"
