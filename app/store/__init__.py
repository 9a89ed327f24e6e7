from .records import (
    Collection,
    InvalidRecordKey,
    RecordExists,
    RecordNotFound,
    RecordStore,
    StorageError,
    StoreError,
)

__all__ = [
    "Collection",
    "InvalidRecordKey",
    "RecordExists",
    "RecordNotFound",
    "RecordStore",
    "StorageError",
    "StoreError",
]
