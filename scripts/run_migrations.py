#!/usr/bin/env python3
"""
Run Alembic migrations.
Called during container startup, before the API starts.
"""

import os
import subprocess
import sys
import time
from pathlib import Path

from sqlalchemy.exc import OperationalError

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import get_config
from core.logger import setup_logging, get_logger
from modules.database.storage import MatchStorage

logger = get_logger(__name__)


def wait_for_database(max_retries: int = 30, retry_delay: int = 2) -> bool:
    """
    Wait for database to accept connections.

    Args:
        max_retries: Maximum number of attempts
        retry_delay: Delay between attempts in seconds
    """
    storage = MatchStorage()

    for attempt in range(1, max_retries + 1):
        try:
            storage.ping()
            logger.info("Database is ready")
            return True
        except OperationalError as e:
            if attempt < max_retries:
                logger.info("Waiting for database", attempt=attempt, max_retries=max_retries, error=str(e))
                time.sleep(retry_delay)
            else:
                logger.error("Database connection failed after all retries", error=str(e))

    return False


def run_migrations() -> None:
    """Run Alembic migrations up to head."""
    config = get_config()
    setup_logging(log_level=config.log_level, log_file=config.log_file)

    logger.info("Starting database migrations")

    if not wait_for_database():
        logger.error("Database is not ready. Exiting.")
        sys.exit(1)

    # alembic/env.py reads DATABASE_URL
    os.environ["DATABASE_URL"] = config.resolved_database_url

    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True
        )
    except subprocess.CalledProcessError as e:
        logger.error(
            "Migration failed",
            returncode=e.returncode,
            stdout=e.stdout or None,
            stderr=e.stderr or None
        )
        sys.exit(1)

    for line in (result.stdout or "").strip().split("\n"):
        if line.strip():
            logger.info("Migration", message=line)

    logger.info("Migrations completed successfully")


if __name__ == "__main__":
    run_migrations()
