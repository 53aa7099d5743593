class DocRecordsError(Exception):
    """Base class for exceptions in this module."""


class ConfigurationError(DocRecordsError):
    """Raised when a record type is missing required configuration."""


class StoreConnectionError(DocRecordsError, ConnectionError):
    """Raised when no usable store connection is available."""


class DocumentNotFound(DocRecordsError, LookupError):
    """Raised when an id or query based load finds no document."""


class StoreOperationError(DocRecordsError):
    """Raised when the store rejects or fails a write."""


class SerializationError(DocRecordsError):
    """Raised internally when a record cannot be encoded as JSON."""
