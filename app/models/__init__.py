# Occupancy Ledger — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.building import Building                    # noqa
from app.models.occupancy_session import OccupancySession   # noqa
from app.models.scan_anomaly import ScanAnomaly             # noqa
