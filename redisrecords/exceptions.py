"""
RedisRecords Exceptions.

Errors raised by the adapter. Store connectivity failures surface as
StorageIOError and are never retried; unsupported query features abort the
operation with UnsupportedConditionError.
"""


class RecordStoreError(Exception):
    """Base exception for all RedisRecords errors."""
    pass


class UnsupportedConditionError(RecordStoreError, NotImplementedError):
    """Raised when a condition tree uses a node, operator or relationship the index layer cannot handle."""
    pass


class StorageIOError(RecordStoreError):
    """Raised when the backing store cannot be reached or rejects a command."""
    pass


class InvalidKeyError(RecordStoreError, ValueError):
    """Raised when a primary key is missing, malformed or about to change."""
    pass


class UnknownPropertyError(RecordStoreError, KeyError):
    """Raised when a record, order or condition names a property the model does not declare."""
    pass


class ConfigurationError(RecordStoreError):
    """Raised when settings fail validation."""
    pass
