from pathlib import Path


class LibraryException(Exception):
    """Base class for torrent library exceptions."""

    pass


class IndexLoadException(LibraryException):
    """Raised when the durable index document cannot be read or validated."""

    def __init__(self, path: Path, original_exception: Exception) -> None:
        super().__init__(f"Failed to load torrent index {path}: {original_exception}")

        self.path = path
        self.original_exception = original_exception


class IndexPersistenceException(LibraryException):
    """Raised when the index cannot be written to disk."""

    def __init__(self, path: Path, original_exception: Exception) -> None:
        super().__init__(f"Failed to save torrent index {path}: {original_exception}")

        self.path = path
        self.original_exception = original_exception


class TorrentEngineException(LibraryException):
    """Raised when the download engine cannot answer a lookup."""

    pass


class TorrentIdUnavailableException(LibraryException):
    """Raised when the download engine reports no numeric id for a torrent."""

    def __init__(self, info_hash: str) -> None:
        super().__init__(f"Torrent ID not available for {info_hash}")

        self.info_hash = info_hash
