"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task

from modules.core.services import BlobRepairService
from shared.infrastructure.storage import get_blob_store

logger = structlog.get_logger(__name__)


@shared_task(name="core.reconcile_blob_repairs")
def reconcile_blob_repairs(limit: int = 100):
    """Retry the storage side of pending blob repairs."""
    counters = BlobRepairService(blob_store=get_blob_store()).reconcile(limit=limit)
    logger.info("reconcile_blob_repairs.executed", **counters)
    return counters
