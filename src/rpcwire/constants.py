"""
Reserved method names and protocol constants.

The double-underscore methods back the SQL, storage, collection and schema
helpers on the root client and request batching. To a transport they are
ordinary method names.
"""

from __future__ import annotations

__all__ = ["PROTOCOL_VERSION", "InternalMethods", "INTERNAL_METHOD_NAMES"]

PROTOCOL_VERSION = "1.0.0"


class InternalMethods:
    """Reserved method names understood by the remote dispatcher."""

    # SQL
    SQL = "__sql"
    SQL_FIRST = "__sqlFirst"
    SQL_RUN = "__sqlRun"

    # Storage
    STORAGE_GET = "__storageGet"
    STORAGE_GET_MULTIPLE = "__storageGetMultiple"
    STORAGE_PUT = "__storagePut"
    STORAGE_PUT_MULTIPLE = "__storagePutMultiple"
    STORAGE_DELETE = "__storageDelete"
    STORAGE_DELETE_MULTIPLE = "__storageDeleteMultiple"
    STORAGE_LIST = "__storageList"
    STORAGE_KEYS = "__storageKeys"

    # Schema
    DB_SCHEMA = "__dbSchema"
    SCHEMA = "__schema"

    # Collections
    COLLECTION_GET = "__collectionGet"
    COLLECTION_PUT = "__collectionPut"
    COLLECTION_DELETE = "__collectionDelete"
    COLLECTION_HAS = "__collectionHas"
    COLLECTION_FIND = "__collectionFind"
    COLLECTION_COUNT = "__collectionCount"
    COLLECTION_LIST = "__collectionList"
    COLLECTION_KEYS = "__collectionKeys"
    COLLECTION_CLEAR = "__collectionClear"
    COLLECTION_NAMES = "__collectionNames"
    COLLECTION_STATS = "__collectionStats"

    # Batching
    BATCH = "__batch"


INTERNAL_METHOD_NAMES: frozenset[str] = frozenset(
    value
    for name, value in vars(InternalMethods).items()
    if not name.startswith("_") and isinstance(value, str)
)
