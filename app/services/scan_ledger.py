# app/services/scan_ledger.py
"""
Occupancy Ledger: applies one badge scan to the session log and the
building counter as a single transaction.

How it works:
  - IN  → new open session for (tag, building), building count +1
  - OUT → most recent open session for (tag, building) gets exit_time,
          building count -1 (clamped at 0). No match → event dropped.
  - anything else → event dropped
  - Unknown building ids still get their session row; the counter update
    simply matches no building.

Dropped and partially applied events are recorded as scan anomalies and
returned in ScanResult. Only lock contention and storage failures raise.

Locking: per-building and per-(building, tag) in-process locks, then
SELECT ... FOR UPDATE on the building row and the candidate session row
(PostgreSQL honours it, SQLite ignores it). Locks are held until commit.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import case, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.building import Building
from app.models.occupancy_session import OccupancySession
from app.services.anomaly_service import (
    MISSING_TAG_KEY, NO_OPEN_SESSION, UNKNOWN_BUILDING, UNRECOGNIZED_DIRECTION, record_anomaly,
)
from app.services.ledger_errors import ScanContentionError, StorageUnavailableError
from app.services.scan_locks import KeyedLockRegistry, building_lock_key, tag_lock_key
from app.utils.clock import as_utc, utc_clock
from app.utils.logger import get_logger

logger = get_logger(__name__)

DIRECTION_IN = "IN"
DIRECTION_OUT = "OUT"

PG_LOCK_NOT_AVAILABLE = "55P03"

scan_locks = KeyedLockRegistry(timeout=settings.SCAN_LOCK_TIMEOUT_SECONDS)


class ScanOutcome(str, Enum):
    CREATED = "created"
    CLOSED = "closed"
    NOT_FOUND = "not_found"
    UNRECOGNIZED_DIRECTION = "unrecognized_direction"
    MISSING_TAG_KEY = "missing_tag_key"


@dataclass
class ScanResult:
    outcome: ScanOutcome
    building_id: str
    direction: Optional[str]
    tag_key: Optional[str]
    session_id: Optional[int] = None
    occupancy_count: Optional[int] = None   # None when the building is unknown
    anomalies: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome in (ScanOutcome.CREATED, ScanOutcome.CLOSED)


def _is_lock_timeout(exc: OperationalError) -> bool:
    if getattr(exc.orig, "pgcode", None) == PG_LOCK_NOT_AVAILABLE:
        return True
    return "database is locked" in str(exc.orig)


@contextmanager
def _transaction(db: Session, lock_timeout: float):
    """Commit on success, roll back and translate driver errors on failure."""
    try:
        if db.get_bind().dialect.name == "postgresql":
            # SET does not take bind parameters
            db.execute(text(f"SET LOCAL lock_timeout = {int(lock_timeout * 1000)}"))
        yield
        db.commit()
    except OperationalError as exc:
        db.rollback()
        if _is_lock_timeout(exc):
            logger.error(f"[SCAN] Database lock timeout: {exc.orig}")
            raise ScanContentionError(str(exc.orig)) from exc
        logger.error(f"[SCAN] Storage failure, rolled back: {exc}", exc_info=True)
        raise StorageUnavailableError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[SCAN] Storage failure, rolled back: {exc}", exc_info=True)
        raise StorageUnavailableError(str(exc)) from exc
    except Exception:
        db.rollback()
        raise


def _lock_building(db: Session, building_id: str) -> Optional[Building]:
    return db.query(Building).filter(Building.id == building_id).with_for_update().first()


def _find_open_session(db: Session, building_id: str, tag_key: str) -> Optional[OccupancySession]:
    return (
        db.query(OccupancySession)
        .filter(
            OccupancySession.tag_key == tag_key,
            OccupancySession.building_id == building_id,
            OccupancySession.exit_time == None,  # noqa: E711
        )
        .order_by(OccupancySession.entry_time.desc(), OccupancySession.session_id.desc())
        .with_for_update()
        .first()
    )


def _note_unknown_building(db, result: ScanResult, now: datetime):
    record_anomaly(db, UNKNOWN_BUILDING, result.building_id, result.tag_key,
                   result.direction, f"Scan references unknown building {result.building_id}", now)
    result.anomalies.append(UNKNOWN_BUILDING)


def _apply_in(db: Session, building_id: str, tag_key: str, now: datetime) -> ScanResult:
    result = ScanResult(ScanOutcome.CREATED, building_id, DIRECTION_IN, tag_key)
    building = _lock_building(db, building_id)

    session = OccupancySession(tag_key=tag_key, building_id=building_id, entry_time=now,
                               exit_time=None, direction=DIRECTION_IN)
    db.add(session)
    if building is not None:
        building.occupancy_count = Building.occupancy_count + 1
    else:
        _note_unknown_building(db, result, now)
    db.flush()

    result.session_id = session.session_id
    if building is not None:
        result.occupancy_count = building.occupancy_count
    return result


def _apply_out(db: Session, building_id: str, tag_key: Optional[str], now: datetime) -> ScanResult:
    result = ScanResult(ScanOutcome.CLOSED, building_id, DIRECTION_OUT, tag_key)
    building = _lock_building(db, building_id)
    session = _find_open_session(db, building_id, tag_key) if tag_key else None

    if building is None:
        _note_unknown_building(db, result, now)

    if session is None:
        result.outcome = ScanOutcome.NOT_FOUND
        record_anomaly(db, NO_OPEN_SESSION, building_id, tag_key, DIRECTION_OUT,
                       f"No open session for tag {tag_key} at building {building_id}", now)
        result.anomalies.append(NO_OPEN_SESSION)
        if building is not None:
            result.occupancy_count = building.occupancy_count
        db.flush()
        return result

    entry_time = as_utc(session.entry_time)
    if now <= entry_time:
        # Entry written by a host whose clock runs ahead of ours
        now = entry_time + timedelta(microseconds=1)
    session.exit_time = now
    session.direction = DIRECTION_OUT
    if building is not None:
        building.occupancy_count = case(
            (Building.occupancy_count > 0, Building.occupancy_count - 1),
            else_=0,
        )
    db.flush()

    result.session_id = session.session_id
    if building is not None:
        result.occupancy_count = building.occupancy_count
    return result


def _drop(db: Session, outcome: ScanOutcome, anomaly_type: str, building_id: str,
          direction: Optional[str], tag_key: Optional[str], description: str, now: datetime) -> ScanResult:
    record_anomaly(db, anomaly_type, building_id, tag_key, direction, description, now)
    db.flush()
    return ScanResult(outcome, building_id, direction, tag_key, anomalies=[anomaly_type])


def record_scan(db: Session, building_id: str, direction: Optional[str], tag_key: Optional[str] = None,
                locks: Optional[KeyedLockRegistry] = None,
                clock: Optional[Callable[[], datetime]] = None) -> ScanResult:
    """
    Apply one scan event. Returns a ScanResult for every handled outcome,
    including dropped events. Raises ScanContentionError (retryable) or
    StorageUnavailableError; in both cases nothing was committed.
    """
    locks = locks or scan_locks
    clock = clock or utc_clock

    if direction not in (DIRECTION_IN, DIRECTION_OUT):
        with _transaction(db, locks.timeout):
            result = _drop(db, ScanOutcome.UNRECOGNIZED_DIRECTION, UNRECOGNIZED_DIRECTION,
                           building_id, direction, tag_key,
                           f"Unrecognized direction {direction!r} at building {building_id}", clock())
        return result

    if direction == DIRECTION_IN and not tag_key:
        with _transaction(db, locks.timeout):
            result = _drop(db, ScanOutcome.MISSING_TAG_KEY, MISSING_TAG_KEY,
                           building_id, direction, tag_key,
                           f"IN scan without tag at building {building_id}", clock())
        return result

    keys = [building_lock_key(building_id)]
    if tag_key:
        keys.append(tag_lock_key(building_id, tag_key))

    with locks.hold(keys):
        with _transaction(db, locks.timeout):
            now = clock()
            if direction == DIRECTION_IN:
                result = _apply_in(db, building_id, tag_key, now)
            else:
                result = _apply_out(db, building_id, tag_key, now)

    logger.info(
        f"[SCAN] {direction} building={building_id} tag={tag_key} → {result.outcome.value} "
        f"session={result.session_id} count={result.occupancy_count}"
    )
    return result
