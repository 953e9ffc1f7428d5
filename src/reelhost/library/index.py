"""Durable torrent metadata index"""

import os
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from reelhost.library.exceptions import IndexLoadException, IndexPersistenceException
from reelhost.library.locks import ReadWriteLock
from reelhost.library.models import (
    EpisodeInfo,
    MediaType,
    TorrentEntry,
    TorrentIndexDocument,
)


def _now() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp())


class MetadataIndex:
    """
    Maps torrent info hashes to their TMDB metadata.

    The whole document lives in memory behind a reader/writer lock and is
    only read from disk on construction. Every mutation rewrites the full
    document to a temporary file next to the index and renames it over the
    durable file before returning, so a crash never leaves a half-written
    index behind. A failed write leaves the in-memory document unchanged.
    The numeric torrent id is volatile and is refreshed on every upsert;
    the info hash is the identity.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.lock = ReadWriteLock()

        if self.db_path.exists():
            self._document = self._load()
        else:
            logger.log("LIBRARY", f"Torrent index not found at {self.db_path}, creating a new one")
            self._document = TorrentIndexDocument()

    def _load(self) -> TorrentIndexDocument:
        try:
            with open(self.db_path, "r", encoding="utf-8") as file:
                document = TorrentIndexDocument.model_validate_json(file.read())
        except (OSError, ValidationError) as e:
            raise IndexLoadException(self.db_path, e) from e

        logger.log("LIBRARY", f"Loaded {len(document.entries)} torrent entries from {self.db_path}")
        return document

    def _save(self) -> None:
        """Write the document atomically. Callers must hold the write lock."""
        temp_name = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.db_path.parent,
                prefix=f".{self.db_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as temp_file:
                temp_name = temp_file.name
                temp_file.write(self._document.model_dump_json(indent=2))
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.replace(temp_name, self.db_path)
        except OSError as e:
            logger.error(f"Failed to save torrent index: {e}")
            if temp_name is not None:
                try:
                    os.remove(temp_name)
                except OSError as remove_error:
                    logger.debug(f"Failed to remove temporary index file: {remove_error}")
            raise IndexPersistenceException(self.db_path, e) from e

        logger.debug(f"Saved torrent index with {len(self._document.entries)} entries")

    @contextmanager
    def _mutation(self) -> Iterator[dict[str, TorrentEntry]]:
        """Hold the write lock and undo the in-memory change if persisting it fails."""
        with self.lock.write():
            snapshot = self._document.model_copy(deep=True)
            try:
                yield self._document.entries
            except IndexPersistenceException:
                self._document = snapshot
                raise

    def upsert(
        self,
        info_hash: str,
        torrent_id: int,
        tmdb_id: int | None = None,
        media_type: MediaType | str | None = None,
        episode_info: EpisodeInfo | tuple[int, int] | None = None,
    ) -> TorrentEntry:
        """
        Add or update the entry for a torrent and persist the index.

        The torrent id is always overwritten. TMDB id, media type and
        episode info are only overwritten when a value is given, so a
        partial update never erases existing metadata.

        Returns:
            A copy of the entry as stored.
        """
        now = _now()
        if media_type is not None:
            media_type = MediaType(media_type)
        if episode_info is not None:
            episode_info = EpisodeInfo(*episode_info)

        with self._mutation() as entries:
            entry = entries.get(info_hash)
            if entry is not None:
                entry.torrent_id = torrent_id
                if tmdb_id is not None:
                    entry.tmdb_id = tmdb_id
                if media_type is not None:
                    entry.media_type = media_type
                if episode_info is not None:
                    entry.episode_info = episode_info
                entry.updated_at = now
                logger.debug(f"Updated torrent entry: {info_hash}")
            else:
                entry = TorrentEntry(
                    torrent_id=torrent_id,
                    info_hash=info_hash,
                    tmdb_id=tmdb_id,
                    media_type=media_type,
                    created_at=now,
                    updated_at=now,
                    episode_info=episode_info,
                )
                entries[info_hash] = entry
                logger.debug(f"Created new torrent entry: {info_hash}")

            self._save()
            return entry.model_copy()

    def get_by_hash(self, info_hash: str) -> TorrentEntry | None:
        with self.lock.read():
            entry = self._document.entries.get(info_hash)
            return entry.model_copy() if entry else None

    def get_by_torrent_id(self, torrent_id: int) -> TorrentEntry | None:
        with self.lock.read():
            for entry in self._document.entries.values():
                if entry.torrent_id == torrent_id:
                    return entry.model_copy()
            return None

    def get_tmdb_id(self, info_hash: str) -> int | None:
        with self.lock.read():
            entry = self._document.entries.get(info_hash)
            return entry.tmdb_id if entry else None

    def get_imdb_code(self, info_hash: str) -> str | None:
        """Deprecated, use get_tmdb_id."""
        with self.lock.read():
            entry = self._document.entries.get(info_hash)
            return entry.imdb_code if entry else None

    def remove_by_hash(self, info_hash: str) -> bool:
        with self._mutation() as entries:
            if entries.pop(info_hash, None) is None:
                return False
            logger.debug(f"Removed torrent entry: {info_hash}")
            self._save()
            return True

    def remove_by_torrent_id(self, torrent_id: int) -> bool:
        with self._mutation() as entries:
            info_hash = next(
                (
                    entry_hash
                    for entry_hash, entry in entries.items()
                    if entry.torrent_id == torrent_id
                ),
                None,
            )
            if info_hash is None:
                return False
            del entries[info_hash]
            logger.debug(f"Removed torrent entry by ID {torrent_id}: {info_hash}")
            self._save()
            return True

    def sync(self, active_hashes: Iterable[str]) -> int:
        """
        Drop entries for torrents the engine no longer tracks.

        Returns:
            The number of entries removed.
        """
        active = set(active_hashes)
        with self._mutation() as entries:
            stale = [h for h in entries if h not in active]
            for info_hash in stale:
                del entries[info_hash]

            if not stale:
                logger.debug("Torrent index is in sync with torrent list")
                return 0

            logger.log("LIBRARY", f"Removed {len(stale)} stale torrent entries from index")
            self._save()
            return len(stale)

    def list_all(self) -> list[TorrentEntry]:
        with self.lock.read():
            return [entry.model_copy() for entry in self._document.entries.values()]

    def list_with_tmdb(self) -> list[TorrentEntry]:
        with self.lock.read():
            return [
                entry.model_copy()
                for entry in self._document.entries.values()
                if entry.tmdb_id is not None
            ]

    def list_with_imdb(self) -> list[TorrentEntry]:
        """Deprecated, use list_with_tmdb."""
        with self.lock.read():
            return [
                entry.model_copy()
                for entry in self._document.entries.values()
                if entry.imdb_code is not None
            ]

    def list_by_tmdb_id(self, tmdb_id: int, media_type: MediaType | str) -> list[TorrentEntry]:
        media_type = MediaType(media_type)
        with self.lock.read():
            return [
                entry.model_copy()
                for entry in self._document.entries.values()
                if entry.tmdb_id == tmdb_id and entry.media_type == media_type
            ]

    def list_library_tmdb_ids(self) -> list[tuple[int, MediaType]]:
        with self.lock.read():
            return [
                (entry.tmdb_id, entry.media_type)
                for entry in self._document.entries.values()
                if entry.tmdb_id is not None and entry.media_type is not None
            ]

    def count(self) -> int:
        with self.lock.read():
            return len(self._document.entries)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, info_hash: str) -> bool:
        with self.lock.read():
            return info_hash in self._document.entries
