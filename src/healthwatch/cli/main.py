import asyncio
import logging
import os
import sys

import uvicorn

logger = logging.getLogger(__name__)


def main():
    uvicorn.run(
        "healthwatch.main:app",
        host=os.getenv("HEALTHWATCH_HOST", "127.0.0.1"),
        port=int(os.getenv("HEALTHWATCH_PORT", "8000")),
        reload=os.getenv("HEALTHWATCH_RELOAD", "false").lower() == "true",
    )


def refresh_all():
    """Run one scheduled refresh of every endpoint and print the summary."""
    from dotenv import load_dotenv
    load_dotenv()

    from healthwatch.db.database import SessionLocal, init_db
    from healthwatch.logging_config import configure_logging
    from healthwatch.repositories.endpoint_repository import EndpointRepository
    from healthwatch.services.notification_service import NotificationService
    from healthwatch.services.refresh_service import EndpointRefreshService, run_scheduled_refresh

    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        service = EndpointRefreshService(EndpointRepository(db), NotificationService())
        summary = asyncio.run(run_scheduled_refresh(service))
    except Exception:
        logger.exception("Fatal error during scheduled refresh")
        sys.exit(1)
    finally:
        db.close()

    print(f"refreshed={summary['refreshed_count']} unhealthy={summary['unhealthy_count']}")
    return summary
