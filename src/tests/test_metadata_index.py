"""Tests for the persistent torrent metadata index."""
import json
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from reelhost.library import (
    EpisodeInfo,
    IndexLoadException,
    IndexPersistenceException,
    MediaType,
    MetadataIndex,
)

HASH_A = "a" * 40
HASH_B = "b" * 40
HASH_C = "c" * 40


def read_document(index: MetadataIndex) -> dict:
    with open(index.db_path, "r", encoding="utf-8") as file:
        return json.load(file)


class TestUpsert:
    def test_new_entry(self, index):
        entry = index.upsert(HASH_A, 3, tmdb_id=603, media_type="movie")

        assert entry.torrent_id == 3
        assert entry.tmdb_id == 603
        assert entry.media_type is MediaType.MOVIE
        assert entry.episode_info is None
        assert entry.created_at == entry.updated_at
        assert index.get_by_hash(HASH_A) == entry

    def test_partial_update_keeps_metadata(self, index):
        """A later upsert without metadata only refreshes the torrent id."""
        index.upsert(HASH_A, 3, tmdb_id=1399, media_type=MediaType.TV, episode_info=(1, 2))

        entry = index.upsert(HASH_A, 7)

        assert entry.torrent_id == 7
        assert entry.tmdb_id == 1399
        assert entry.media_type is MediaType.TV
        assert entry.episode_info == EpisodeInfo(season=1, episode=2)

    def test_supplied_fields_overwrite(self, index):
        index.upsert(HASH_A, 3, tmdb_id=1399, media_type="tv", episode_info=(1, 2))

        entry = index.upsert(HASH_A, 3, tmdb_id=1400, episode_info=(2, 5))

        assert entry.tmdb_id == 1400
        assert entry.media_type is MediaType.TV
        assert entry.episode_info == EpisodeInfo(2, 5)

    def test_update_preserves_created_at(self, index):
        first = index.upsert(HASH_A, 1)
        with patch("reelhost.library.index._now", return_value=first.created_at + 60):
            second = index.upsert(HASH_A, 2)

        assert second.created_at == first.created_at
        assert second.updated_at == first.created_at + 60

    def test_returned_entry_is_a_copy(self, index):
        entry = index.upsert(HASH_A, 1, tmdb_id=10, media_type="movie")
        entry.tmdb_id = 99

        assert index.get_tmdb_id(HASH_A) == 10

    def test_unknown_media_type_is_rejected(self, index):
        with pytest.raises(ValueError):
            index.upsert(HASH_A, 1, tmdb_id=10, media_type="anime")
        assert HASH_A not in index


class TestLookups:
    @pytest.fixture
    def populated(self, index):
        index.upsert(HASH_A, 1, tmdb_id=603, media_type="movie")
        index.upsert(HASH_B, 2, tmdb_id=1399, media_type="tv", episode_info=(1, 1))
        index.upsert(HASH_C, 3)
        return index

    def test_get_by_torrent_id(self, populated):
        assert populated.get_by_torrent_id(2).info_hash == HASH_B
        assert populated.get_by_torrent_id(42) is None

    def test_get_missing(self, populated):
        assert populated.get_by_hash("f" * 40) is None
        assert populated.get_tmdb_id("f" * 40) is None
        assert populated.get_imdb_code(HASH_A) is None

    def test_list_all(self, populated):
        assert {e.info_hash for e in populated.list_all()} == {HASH_A, HASH_B, HASH_C}
        assert len(populated) == populated.count() == 3
        assert HASH_B in populated

    def test_list_with_tmdb(self, populated):
        assert {e.info_hash for e in populated.list_with_tmdb()} == {HASH_A, HASH_B}

    def test_list_by_tmdb_id_matches_media_type(self, populated):
        assert [e.info_hash for e in populated.list_by_tmdb_id(1399, "tv")] == [HASH_B]
        assert populated.list_by_tmdb_id(1399, MediaType.MOVIE) == []

    def test_list_library_tmdb_ids(self, populated):
        assert sorted(populated.list_library_tmdb_ids()) == [
            (603, MediaType.MOVIE),
            (1399, MediaType.TV),
        ]


class TestRemoveAndSync:
    def test_remove_by_hash(self, index):
        index.upsert(HASH_A, 1)

        assert index.remove_by_hash(HASH_A) is True
        assert index.get_by_hash(HASH_A) is None
        assert read_document(index) == {"entries": {}}

    def test_remove_by_torrent_id(self, index):
        index.upsert(HASH_A, 1)
        index.upsert(HASH_B, 2)

        assert index.remove_by_torrent_id(2) is True
        assert HASH_B not in index
        assert HASH_A in index

    def test_remove_missing_is_a_noop(self, index):
        index.upsert(HASH_A, 1)
        before = os.stat(index.db_path).st_mtime_ns

        with patch.object(MetadataIndex, "_save") as save:
            assert index.remove_by_hash(HASH_B) is False
            assert index.remove_by_torrent_id(99) is False
            save.assert_not_called()

        assert os.stat(index.db_path).st_mtime_ns == before

    def test_sync_drops_inactive_entries(self, index):
        index.upsert(HASH_A, 1)
        index.upsert(HASH_B, 2)
        index.upsert(HASH_C, 3)

        removed = index.sync([HASH_A, "d" * 40])

        assert removed == 2
        assert [e.info_hash for e in index.list_all()] == [HASH_A]
        assert list(read_document(index)["entries"]) == [HASH_A]

    def test_sync_without_changes_does_not_write(self, index):
        index.upsert(HASH_A, 1)

        with patch.object(MetadataIndex, "_save") as save:
            assert index.sync({HASH_A}) == 0
            save.assert_not_called()


class TestPersistence:
    def test_missing_file_starts_empty(self, data_dir):
        index = MetadataIndex(data_dir / "nested" / "torrents.json")

        assert index.count() == 0
        assert not index.db_path.exists()

        index.upsert(HASH_A, 1)
        assert index.db_path.exists()

    def test_document_shape(self, index):
        index.upsert(HASH_A, 5, tmdb_id=1399, media_type="tv", episode_info=(3, 4))

        entry = read_document(index)["entries"][HASH_A]

        assert entry["torrent_id"] == 5
        assert entry["info_hash"] == HASH_A
        assert entry["tmdb_id"] == 1399
        assert entry["media_type"] == "tv"
        assert entry["episode_info"] == [3, 4]
        assert entry["imdb_code"] is None
        assert isinstance(entry["created_at"], int)

    def test_reload_returns_same_entries(self, index):
        index.upsert(HASH_A, 1, tmdb_id=603, media_type="movie")
        index.upsert(HASH_B, 2, tmdb_id=1399, media_type="tv", episode_info=(1, 2))

        reloaded = MetadataIndex(index.db_path)

        assert reloaded.list_all() == index.list_all()
        assert reloaded.get_by_hash(HASH_B).episode_info == EpisodeInfo(1, 2)

    def test_loads_deprecated_imdb_code(self, data_dir):
        path = data_dir / "torrents.json"
        path.write_text(
            json.dumps(
                {
                    "entries": {
                        HASH_A: {
                            "torrent_id": 1,
                            "info_hash": HASH_A,
                            "imdb_code": "tt0133093",
                            "created_at": 1700000000,
                            "updated_at": 1700000000,
                        }
                    }
                }
            )
        )

        index = MetadataIndex(path)

        assert index.get_imdb_code(HASH_A) == "tt0133093"
        assert index.get_tmdb_id(HASH_A) is None

        index.upsert(HASH_B, 2, tmdb_id=603, media_type="movie")
        assert [e.info_hash for e in index.list_with_imdb()] == [HASH_A]
        assert index.get_by_hash(HASH_A).imdb_code == "tt0133093"

    def test_no_temporary_files_left_behind(self, index):
        index.upsert(HASH_A, 1)
        index.upsert(HASH_B, 2)
        index.remove_by_hash(HASH_A)

        assert [p.name for p in index.db_path.parent.iterdir()] == ["torrents.json"]

    def test_corrupt_file_raises(self, data_dir):
        path = data_dir / "torrents.json"
        path.write_text("{not json")

        with pytest.raises(IndexLoadException) as exc_info:
            MetadataIndex(path)
        assert exc_info.value.path == path

    def test_failed_rename_keeps_previous_document(self, index):
        index.upsert(HASH_A, 1)
        before = index.db_path.read_text()

        with patch("reelhost.library.index.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(IndexPersistenceException):
                index.upsert(HASH_B, 2)

        assert index.db_path.read_text() == before
        assert HASH_B not in index
        assert [p.name for p in index.db_path.parent.iterdir()] == ["torrents.json"]


def test_concurrent_upserts_are_all_persisted(index):
    hashes = [f"{i:040x}" for i in range(40)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda args: index.upsert(*args), zip(hashes, range(40))))

    assert index.count() == 40
    assert set(read_document(index)["entries"]) == set(hashes)
    assert MetadataIndex(index.db_path).count() == 40
