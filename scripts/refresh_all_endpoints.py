#!/usr/bin/env python3
"""
Cron script to refresh every monitored endpoint.

Usage:
    python scripts/refresh_all_endpoints.py

Add to crontab to run automatically:
    # Run every 5 minutes
    */5 * * * * cd /path/to/healthwatch && python scripts/refresh_all_endpoints.py
"""

import asyncio
import sys
import logging
from pathlib import Path

# Add src to path so we can import healthwatch
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from healthwatch.db.database import SessionLocal, init_db
from healthwatch.repositories.endpoint_repository import EndpointRepository
from healthwatch.services.notification_service import NotificationService
from healthwatch.services.refresh_service import EndpointRefreshService, run_scheduled_refresh

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('refresh_all_endpoints.log'),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


async def main():
    """Main refresh function."""
    logger.info("=" * 80)
    logger.info("Starting scheduled refresh of monitored endpoints")
    logger.info("=" * 80)

    init_db()
    db = SessionLocal()

    try:
        service = EndpointRefreshService(EndpointRepository(db), NotificationService())
        results = await run_scheduled_refresh(service)

        logger.info("Refresh results:")
        logger.info(f"  Refreshed: {results['refreshed_count']}")
        logger.info(f"  Unhealthy: {results['unhealthy_count']}")

    except Exception:
        logger.exception("Fatal error during refresh")
        sys.exit(1)

    finally:
        db.close()

    logger.info("Refresh complete")
    logger.info("=" * 80)


if __name__ == "__main__":
    asyncio.run(main())
