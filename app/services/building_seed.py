# app/services/building_seed.py
"""
Provisioning of the known buildings.
Re-running is safe: only missing ids are inserted, existing rows (and their
live counts) are left alone. Several workers may seed at startup at once;
the loser of an insert race rolls back and re-reads what is already there.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.models.building import Building
from app.utils.logger import get_logger

logger = get_logger(__name__)

KNOWN_BUILDINGS = [(f"B{n}", "") for n in range(1, 19)]
SEED_ATTEMPTS = 3


def _insert_missing(db: Session, buildings) -> list[str]:
    existing = {row[0] for row in db.query(Building.id).all()}

    added = []
    for building_id, department_name in buildings:
        if building_id in existing:
            continue
        db.add(Building(id=building_id, department_name=department_name, occupancy_count=0))
        existing.add(building_id)
        added.append(building_id)

    db.commit()
    return added


def seed_buildings(db: Session, buildings=None) -> list[str]:
    """Insert missing buildings at count 0. Returns the ids that were added."""
    buildings = KNOWN_BUILDINGS if buildings is None else buildings

    for attempt in range(1, SEED_ATTEMPTS + 1):
        try:
            added = _insert_missing(db, buildings)
            break
        except IntegrityError as e:
            db.rollback()
            if attempt == SEED_ATTEMPTS:
                logger.error(f"[SEED] Giving up after {attempt} attempts: {e.orig}")
                raise
            logger.warning(f"[SEED] Another worker seeded concurrently, re-reading buildings ({e.orig})")

    if added:
        logger.info(f"[SEED] Added {len(added)} buildings: {', '.join(added)}")
    else:
        logger.info("[SEED] All known buildings already present")
    return added
