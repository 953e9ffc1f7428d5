from loguru import logger

from reelhost.library.engine import TorrentEngine, TorrentIdOrHash
from reelhost.library.exceptions import (
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
from reelhost.utils.torrent import normalize_infohash


class LibraryService:
    """Joins the metadata index with what the download engine currently knows."""

    def __init__(self, index: MetadataIndex, engine: TorrentEngine):
        self.index = index
        self.engine = engine

    def _details(self, id_or_hash: TorrentIdOrHash) -> TorrentDetails:
        try:
            details = self.engine.torrent_details(id_or_hash)
        except TorrentEngineException:
            raise
        except Exception as e:
            raise TorrentEngineException(
                f"Failed to get torrent details for {id_or_hash}: {e}"
            ) from e

        return details.model_copy(update={"info_hash": normalize_infohash(details.info_hash)})

    def _torrent_name(self, torrent_id: int) -> str | None:
        try:
            return self.engine.torrent_details(torrent_id).name
        except Exception as e:
            logger.debug(f"No torrent name for ID {torrent_id}: {e}")
            return None

    def _with_metadata(self, entries: list[TorrentEntry]) -> list[TorrentWithMetadata]:
        return [
            TorrentWithMetadata(
                torrent_id=entry.torrent_id,
                info_hash=entry.info_hash,
                tmdb_id=entry.tmdb_id,
                media_type=entry.media_type,
                imdb_code=entry.imdb_code,
                name=self._torrent_name(entry.torrent_id),
            )
            for entry in entries
        ]

    def sync_with_engine(self) -> int:
        """Drop index entries for torrents the engine no longer has."""
        try:
            torrents = self.engine.list_torrents()
        except Exception as e:
            raise TorrentEngineException(f"Failed to list torrents: {e}") from e

        active_hashes = {normalize_infohash(t.info_hash) for t in torrents}
        logger.log("LIBRARY", f"Syncing torrent index with {len(active_hashes)} active torrents")
        return self.index.sync(active_hashes)

    def register(
        self,
        id_or_hash: TorrentIdOrHash,
        tmdb_id: int | None = None,
        media_type: MediaType | str | None = None,
        episode_info: EpisodeInfo | tuple[int, int] | None = None,
    ) -> TorrentEntry:
        """Record metadata for a torrent that was just added to the engine."""
        details = self._details(id_or_hash)
        if details.id is None:
            raise TorrentIdUnavailableException(details.info_hash)

        entry = self.index.upsert(
            details.info_hash,
            details.id,
            tmdb_id=tmdb_id,
            media_type=media_type,
            episode_info=episode_info,
        )
        logger.log(
            "LIBRARY",
            f"Registered torrent {details.id} ({details.info_hash}) with TMDB ID {entry.tmdb_id}",
        )
        return entry

    def set_tmdb_id(
        self, id_or_hash: TorrentIdOrHash, tmdb_id: int, media_type: MediaType | str
    ) -> TorrentEntry:
        return self.register(id_or_hash, tmdb_id=tmdb_id, media_type=media_type)

    def get_tmdb_id(self, id_or_hash: TorrentIdOrHash) -> tuple[int, MediaType] | None:
        entry = self.index.get_by_hash(self._details(id_or_hash).info_hash)
        if entry is None or entry.tmdb_id is None or entry.media_type is None:
            return None
        return entry.tmdb_id, entry.media_type

    def get_metadata(self, id_or_hash: TorrentIdOrHash) -> TorrentMetadata | None:
        entry = self.index.get_by_hash(self._details(id_or_hash).info_hash)
        if entry is None:
            return None
        return TorrentMetadata(
            tmdb_id=entry.tmdb_id,
            media_type=entry.media_type,
            episode_info=entry.episode_info,
        )

    def all_with_metadata(self) -> list[TorrentWithMetadata]:
        return self._with_metadata(self.index.list_all())

    def library_files_by_tmdb_id(
        self, tmdb_id: int, media_type: MediaType | str
    ) -> list[TorrentWithMetadata]:
        return self._with_metadata(self.index.list_by_tmdb_id(tmdb_id, media_type))

    def library_tmdb_ids(self) -> list[tuple[int, MediaType]]:
        return self.index.list_library_tmdb_ids()

    def forget(self, id_or_hash: TorrentIdOrHash) -> bool:
        """
        Remove the entry for a torrent the engine is about to delete.

        Tries the live numeric id first and falls back to the info hash.
        Returns False when the engine does not know the torrent.
        """
        try:
            details = self._details(id_or_hash)
        except TorrentEngineException as e:
            logger.warning(f"Not removing {id_or_hash} from index: {e}")
            return False

        removed = False
        if details.id is not None:
            removed = self.index.remove_by_torrent_id(details.id)
        return self.index.remove_by_hash(details.info_hash) or removed
