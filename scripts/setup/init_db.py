"""
Initialize database — creates all tables and seeds the known buildings.
Safe to re-run: existing buildings keep their current counts.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import SessionLocal, create_tables, engine
from app.config import settings
from app.services.building_seed import seed_buildings
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError


def main():
    print("Occupancy Ledger DB Initialization")
    print("=" * 40)
    print(f"Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except SQLAlchemyError as e:
        print(f"Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running, or point DATABASE_URL at a sqlite:/// file.")
        sys.exit(1)

    print("\nCreating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   - {t}")

    print("\nSeeding buildings...")
    db = SessionLocal()
    try:
        added = seed_buildings(db)
    finally:
        db.close()
    print(f"Added {len(added)} building(s)" if added else "All buildings already present")

    print("\nDatabase ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
