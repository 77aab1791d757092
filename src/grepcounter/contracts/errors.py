"""Exception taxonomy for grepcounter.

Configuration errors are fatal and surface before any record is processed.
Everything else is recovered at a well-defined boundary:

- EncodingError: raised by the matcher, caught by ingestion (on_batch)
- IngestionError: the category ingestion failures are logged under
- PersistenceError: raised by snapshot I/O, caught by SnapshotStore
"""


class GrepCounterError(Exception):
    """Base class for all grepcounter errors."""


class ConfigurationError(GrepCounterError, ValueError):
    """Raised when settings are invalid or contradictory.

    Subclasses ValueError so pydantic validators can raise it directly and
    have it reported as a validation failure.
    """


class EncodingError(GrepCounterError):
    """Raised when a field value cannot be turned into valid text."""


class InvalidSequenceError(EncodingError):
    """Raised when a field contains invalid byte sequences and sanitizing is off.

    Attributes:
        field: Name of the field that held the invalid value
    """

    def __init__(self, field: str, cause: UnicodeError) -> None:
        self.field = field
        super().__init__(f"invalid byte sequence in field '{field}': {cause}")


class IngestionError(GrepCounterError):
    """Raised when a batch cannot be processed.

    on_batch() never lets this escape; it is logged with the batch tag.
    """


class PersistenceError(GrepCounterError):
    """Raised when the snapshot file cannot be read or written.

    Attributes:
        path: Snapshot file path
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"snapshot '{path}': {message}")
