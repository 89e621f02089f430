"""
Auto-send Tasks for Worker
These tasks are executed by RQ workers to deliver due Classroom Solutions submissions
"""

import logging

from concern2care.core.config import settings
from concern2care.db.session import SessionLocal
from concern2care.services.autosend_service import run_sweep

logger = logging.getLogger(__name__)


def auto_send_sweep_task(reschedule: bool = True) -> dict:
    """
    Worker task that runs one auto-send sweep.

    This task:
    1. Creates a database session
    2. Reclaims stale claims and sends every due submission
    3. Queues the next sweep SWEEP_INTERVAL_SECONDS from now

    Args:
        reschedule: queue the next run when done (False for one-off admin runs)

    Returns:
        Dictionary with the sweep counters
    """
    db = SessionLocal()
    try:
        logger.info("Starting auto-send sweep")
        result = run_sweep(db)
        return {"status": "success", **result.as_dict()}

    except Exception as e:
        logger.error(f"Unexpected error during auto-send sweep: {e}", exc_info=True)
        return {
            "status": "error",
            "error": str(e),
            "message": "Unexpected error during auto-send sweep",
        }

    finally:
        db.close()
        if reschedule:
            from concern2care.workers.queue import enqueue_auto_send_sweep

            enqueue_auto_send_sweep(delay_seconds=settings.SWEEP_INTERVAL_SECONDS)
