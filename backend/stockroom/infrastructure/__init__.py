from stockroom.infrastructure.store import RecordStore, build_store
from stockroom.infrastructure.writer import WriterQueue

__all__ = ['RecordStore', 'WriterQueue', 'build_store']
