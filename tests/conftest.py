"""Shared fixtures: a fresh SQLite ledger database per test, seeded with the known buildings."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import sessionmaker
from app.database import build_engine, create_tables
from app.models.building import Building
from app.models.occupancy_session import OccupancySession
from app.services.building_seed import seed_buildings
from app.services.scan_locks import KeyedLockRegistry


class TickingClock:
    """Deterministic clock: every reading is one step after the previous one."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        self.current += self.step
        return self.current


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    seed = factory()
    seed_buildings(seed)
    seed.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def locks():
    return KeyedLockRegistry(timeout=2.0)


@pytest.fixture
def clock():
    return TickingClock()


def building_count(db, building_id):
    db.expire_all()
    return db.query(Building).filter(Building.id == building_id).one().occupancy_count


def open_sessions(db, building_id, tag_key=None):
    q = db.query(OccupancySession).filter(
        OccupancySession.building_id == building_id,
        OccupancySession.exit_time == None,  # noqa: E711
    )
    if tag_key:
        q = q.filter(OccupancySession.tag_key == tag_key)
    return q.all()


def assert_counts_match_open_sessions(db):
    db.expire_all()
    for building in db.query(Building).all():
        assert building.occupancy_count >= 0
        assert building.occupancy_count == len(open_sessions(db, building.id)), building.id
