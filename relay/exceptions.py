"""Custom exception classes for the relay server."""


class RelayException(Exception):
    """
    Base exception class for all relay errors.
    """
    pass


class ClientInputError(RelayException):
    """
    Raised when a request carries input that can never succeed as sent.
    """
    pass


class EmptyChunkError(ClientInputError):
    """
    Raised when an uploaded chunk has no bytes.
    """
    pass


class InvalidFileNameError(ClientInputError):
    """
    Raised when a file name is empty or could escape the storage directory.
    """
    pass


class MissingFileNameError(InvalidFileNameError):
    """
    Raised when a merge is requested without a file name.
    """
    pass


class InvalidChunkIndexError(ClientInputError):
    """
    Raised when a chunk index is negative.
    """
    pass


class NotFoundError(RelayException):
    """
    Base class for lookups that found nothing.
    """
    pass


class CodeNotFoundError(NotFoundError):
    """
    Raised when a retrieval code is not in the registry.
    """
    pass


class NoChunksFoundError(NotFoundError):
    """
    Raised when a merge finds no chunks for the file name.
    """
    pass


class EmptyResultError(RelayException):
    """
    Raised when merged chunks add up to zero bytes.
    """
    pass


class CodeExpiredError(RelayException):
    """
    Raised when a retrieval code exists but is past the retention window.
    """
    pass


class StorageInconsistencyError(RelayException):
    """
    Raised when the registry and the artifact storage disagree.
    """
    pass


class ArtifactMissingError(StorageInconsistencyError):
    """
    Raised when a live registry entry points at an artifact that is gone.
    """
    pass


class StorageIOError(RelayException):
    """
    Raised when a disk read, write or delete fails.
    """
    pass


class ChunkWriteError(StorageIOError):
    """
    Raised when a chunk cannot be persisted.
    """
    pass


class MergeIOError(StorageIOError):
    """
    Raised when reassembly fails part-way. Partial state is left on disk.
    """
    pass


class ArtifactReadError(StorageIOError):
    """
    Raised when an artifact cannot be opened or ends before its declared size.
    """
    pass


class RegistryIOError(StorageIOError):
    """
    Raised when the code registry file cannot be persisted.
    """
    pass
