"""BlockStore custom exception module."""


class BlockStoreError(Exception):
    """Base exception for every error raised by a BlockStore."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class UnsupportedAlgorithm(BlockStoreError):
    """Custom exception thrown when a given algorithm is not part of the algorithm registry
    and cannot be used to calculate an address."""


class InvalidAddress(BlockStoreError):
    """Custom exception thrown when an address cannot be decoded, or when its encoded form
    is too short for the store's configured directory split."""


class OpenError(BlockStoreError):
    """Custom exception thrown when a store root cannot be opened or initialized."""


class LayoutMismatch(OpenError):
    """Custom exception thrown when the layout marker found at a store root does not match
    the configuration supplied to open it, or when blocks exist but no marker is present."""


class NotFound(BlockStoreError):
    """Custom exception thrown when a requested block or address map entry does not exist."""


class IntegrityViolation(BlockStoreError):
    """Custom exception thrown when stored bytes do not hash to the address they are
    stored under. This signals corruption and is never recovered from automatically."""


class WriteError(BlockStoreError):
    """Custom exception thrown when the storage medium fails while writing a block."""


class ReadError(BlockStoreError):
    """Custom exception thrown when the storage medium fails while reading a block."""


class DeleteError(BlockStoreError):
    """Custom exception thrown when the storage medium fails while deleting a block."""
