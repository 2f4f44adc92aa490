"""
Verify database connectivity and create any missing tables. Run from project root:
  python -m app.scripts.setup_database

Production schemas are managed with Alembic (alembic upgrade head); this is for
fresh local and CI databases.
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.core.database import SessionLocal, check_db_connected, engine
from app.models import Base

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        if not check_db_connected(db):
            logger.error("Database is not reachable; check DATABASE_URL")
            return 1
    finally:
        db.close()
    logger.info("Database connection OK")

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.exception("Creating tables failed: %s", e)
        return 1
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
