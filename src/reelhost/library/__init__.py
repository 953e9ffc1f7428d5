from reelhost.library.engine import TorrentEngine, TorrentIdOrHash
from reelhost.library.exceptions import (
    IndexLoadException,
    IndexPersistenceException,
    LibraryException,
    TorrentEngineException,
    TorrentIdUnavailableException,
)
from reelhost.library.index import MetadataIndex
from reelhost.library.models import (
    EpisodeInfo,
    MediaType,
    TorrentDetails,
    TorrentEntry,
    TorrentMetadata,
    TorrentWithMetadata,
)
from reelhost.library.service import LibraryService

__all__ = [
    "EpisodeInfo",
    "IndexLoadException",
    "IndexPersistenceException",
    "LibraryException",
    "LibraryService",
    "MediaType",
    "MetadataIndex",
    "TorrentDetails",
    "TorrentEngine",
    "TorrentEngineException",
    "TorrentEntry",
    "TorrentIdOrHash",
    "TorrentIdUnavailableException",
    "TorrentMetadata",
    "TorrentWithMetadata",
]
