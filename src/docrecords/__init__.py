from ._models import IdStrategy
from .config import Config, connect, load_config
from .exceptions import (
    ConfigurationError,
    DocRecordsError,
    DocumentNotFound,
    SerializationError,
    StoreConnectionError,
    StoreOperationError,
)
from .iterator import RecordIterator
from .record import Record
from .store import Store

__all__ = [
    "Config",
    "ConfigurationError",
    "DocRecordsError",
    "DocumentNotFound",
    "IdStrategy",
    "Record",
    "RecordIterator",
    "SerializationError",
    "Store",
    "StoreConnectionError",
    "StoreOperationError",
    "connect",
    "load_config",
]
