"""
Celery Tasks
Background export of store snapshots.
"""

import logging
import time

from app.celery_worker import celery_app
from app.services.exporter import SnapshotExporter

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def export_snapshot_to_excel(self, snapshot: dict) -> dict:
    """
    Write a store snapshot to the configured workbook.

    Args:
        snapshot: Table name -> list of row dicts

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: exporting {len(snapshot)} collections")
    start_time = time.time()

    result = SnapshotExporter.from_settings().export_snapshot(snapshot)

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: export completed in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: export failed - {result['message']}")

    return result
