from datetime import timedelta
import logging

from celery import shared_task
from django.utils import timezone

from stockroom.config import engine_settings
from stockroom.infrastructure import build_store

from .services import StockService

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def purge_expired_stock_transactions(self, retention_days=None):
    """
    Delete ledger entries older than the retention window.

    Scheduled nightly by Celery beat. The window defaults to
    ``TRANSACTION_RETENTION_DAYS``; pass ``retention_days`` to override it
    for a one-off run.

    Returns:
        dict: Status and the number of entries purged
    """
    days = engine_settings.transaction_retention_days if retention_days is None else retention_days
    cutoff = timezone.now() - timedelta(days=days)

    store = build_store()
    try:
        result = StockService(store).purge_transactions(cutoff).result()
    finally:
        store.close()

    if not result.ok:
        if result.kind == "store":
            logger.error(f"Stock transaction purge failed, retrying: {result.message}")
            raise self.retry(exc=result.error)
        logger.error(f"Stock transaction purge rejected: {result.message}")
        return {"status": "failed", "error": result.message}

    logger.info(f"Purged {result.value} stock transactions older than {days} days")
    return {"status": "completed", "purged": result.value, "cutoff": cutoff.isoformat()}
