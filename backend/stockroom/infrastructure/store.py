"""
Store handle shared by the unit, stock and category services.

A ``RecordStore`` is constructed explicitly and passed into each service. It
bundles the database alias the records live in, the single-writer queue that
serializes mutations against it, and the clock and id generator used when
new ledger entries and category nodes are built.
"""
from concurrent.futures import Future
from typing import Any, Callable, Optional
from django.db import transaction
from django.utils import timezone
import logging
import uuid

from stockroom.config import engine_settings
from stockroom.exceptions import InventoryError
from stockroom.results import CommandResult, capture

from .writer import WriterQueue

logger = logging.getLogger(__name__)


class RecordStore:

    def __init__(
        self,
        alias: str = "default",
        writer: Optional[WriterQueue] = None,
        clock: Callable[[], Any] = timezone.now,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
    ):
        self.alias = alias
        self.writer = writer or WriterQueue(name=alias)
        self._clock = clock
        self._id_factory = id_factory

    def __repr__(self):
        return f"<RecordStore {self.alias} {self.writer!r}>"

    def now(self):
        return self._clock()

    def new_id(self) -> uuid.UUID:
        return self._id_factory()

    def manager(self, model):
        """Default manager of ``model`` bound to this store's database."""
        return model._default_manager.db_manager(self.alias)

    def submit(self, operation: str, job: Callable, *args: Any, **kwargs: Any) -> Future:
        """
        Queue a mutating job on the single writer.

        The job runs inside one database transaction: a domain error or a
        database failure rolls back everything it wrote. The returned future
        resolves to a ``CommandResult``.
        """
        return self.writer.submit(capture, operation, self._atomic, job, args, kwargs)

    def _atomic(self, job: Callable, args, kwargs):
        with transaction.atomic(using=self.alias):
            return job(*args, **kwargs)

    def read(self, operation: str, query: Callable, *args: Any, **kwargs: Any) -> CommandResult:
        """Run a read-only query on the calling thread."""
        return capture(operation, query, *args, **kwargs)

    def rejected(self, operation: str, error: InventoryError) -> Future:
        """Already-resolved future for a command that failed validation."""
        logger.info(f"{operation} rejected [{error.code}]: {error.message}")
        future = Future()
        future.set_running_or_notify_cancel()
        future.set_result(CommandResult.failure(error, operation))
        return future

    def close(self, wait: bool = True) -> None:
        self.writer.shutdown(wait=wait)


def build_store(alias: str = "default") -> RecordStore:
    """Construct a store handle from the engine configuration."""
    writer = WriterQueue(name=alias, eager=engine_settings.writer_eager)
    return RecordStore(alias=alias, writer=writer)
