from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, Field


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"


class EpisodeInfo(NamedTuple):
    season: int
    episode: int


class TorrentEntry(BaseModel):
    """Metadata kept for one torrent, keyed by its info hash."""

    torrent_id: int
    info_hash: str
    tmdb_id: int | None = None
    media_type: MediaType | None = None
    created_at: int
    updated_at: int
    episode_info: EpisodeInfo | None = None
    # Deprecated, kept so older documents round-trip. Use tmdb_id.
    imdb_code: str | None = None


class TorrentIndexDocument(BaseModel):
    """The on-disk shape of the index."""

    entries: dict[str, TorrentEntry] = Field(default_factory=dict)


class TorrentDetails(BaseModel):
    """What the download engine reports about a torrent."""

    id: int | None = None
    info_hash: str
    name: str | None = None


class TorrentMetadata(BaseModel):
    tmdb_id: int | None = None
    media_type: MediaType | None = None
    episode_info: EpisodeInfo | None = None


class TorrentWithMetadata(BaseModel):
    torrent_id: int
    info_hash: str
    tmdb_id: int | None = None
    media_type: MediaType | None = None
    imdb_code: str | None = None
    name: str | None = None
