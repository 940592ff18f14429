"""
Writer Queue and Store Handle Tests
"""
import threading
import uuid

import pytest
from django.db import OperationalError

from stockroom.exceptions import InvalidQuantity
from stockroom.infrastructure import RecordStore, WriterQueue, build_store


class TestWriterQueue:

    def test_eager_mode_runs_inline(self):
        queue = WriterQueue(eager=True)
        caller = threading.current_thread()

        future = queue.submit(lambda: threading.current_thread())

        assert future.done()
        assert future.result() is caller

    def test_eager_mode_captures_exceptions(self):
        queue = WriterQueue(eager=True)

        def boom():
            raise RuntimeError("boom")

        future = queue.submit(boom)

        with pytest.raises(RuntimeError, match="boom"):
            future.result()

    def test_threaded_mode_uses_one_worker(self):
        queue = WriterQueue(name="unit")
        try:
            futures = [queue.submit(lambda: threading.current_thread().name) for _ in range(5)]
            names = {future.result(timeout=5) for future in futures}
        finally:
            queue.shutdown()

        assert len(names) == 1
        assert names.pop().startswith("writer-unit")

    def test_jobs_run_in_submission_order(self):
        queue = WriterQueue()
        seen = []
        try:
            futures = [queue.submit(seen.append, n) for n in range(20)]
            for future in futures:
                future.result(timeout=5)
        finally:
            queue.shutdown()

        assert seen == list(range(20))

    def test_submit_after_shutdown_fails(self):
        for queue in (WriterQueue(), WriterQueue(eager=True)):
            queue.shutdown()
            with pytest.raises(RuntimeError, match="shut down"):
                queue.submit(lambda: None)

    def test_shutdown_is_idempotent(self):
        queue = WriterQueue()
        queue.submit(lambda: None).result(timeout=5)

        queue.shutdown()
        queue.shutdown()


class TestRecordStore:

    def test_clock_and_ids_are_injected(self):
        fixed_id = uuid.UUID(int=7)
        store = RecordStore(writer=WriterQueue(eager=True), clock=lambda: "now", id_factory=lambda: fixed_id)

        assert store.now() == "now"
        assert store.new_id() == fixed_id

    def test_rejected_future_is_resolved_failure(self):
        store = RecordStore(writer=WriterQueue(eager=True))

        future = store.rejected("add_stock", InvalidQuantity("bad", 0))

        assert future.done()
        result = future.result()
        assert not result.ok
        assert result.operation == "add_stock"
        assert result.code == "INVALID_QUANTITY"

    @pytest.mark.django_db
    def test_submit_wraps_store_failures(self):
        store = RecordStore(writer=WriterQueue(eager=True))

        def failing_job():
            raise OperationalError("disk I/O error")

        result = store.submit("purge_transactions", failing_job).result()

        assert result.kind == "store"
        assert result.error.operation == "purge_transactions"
        assert isinstance(result.error.cause, OperationalError)

    def test_build_store_follows_settings(self, settings):
        settings.STOCKROOM = {"WRITER_EAGER": True}
        store = build_store()

        assert store.writer.eager
        assert store.alias == "default"
        store.close()
