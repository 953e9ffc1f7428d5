import tempfile
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from reelhost.library import (
    IndexLoadException,
    LibraryException,
    LibraryService,
    MetadataIndex,
    TorrentEngine,
)
from reelhost.settings import SettingsManager
from reelhost.streaming import ActiveFileRegistry
from reelhost.streaming.server import FileServer
from reelhost.utils import data_dir_path


def open_index(db_path: Path) -> MetadataIndex:
    """Open the index, falling back to the system temp dir when the durable file is unusable."""
    try:
        return MetadataIndex(db_path)
    except IndexLoadException as e:
        fallback_path = Path(tempfile.gettempdir()) / db_path.name
        logger.warning(f"{e}. Using temporary index at {fallback_path}")
        return MetadataIndex(fallback_path)


@dataclass
class AppContext:
    """Owns one of each long-lived component; nothing here is global."""

    data_dir: Path
    settings_manager: SettingsManager
    registry: ActiveFileRegistry
    file_server: FileServer
    index: MetadataIndex
    library: LibraryService | None = None

    @classmethod
    def create(
        cls,
        data_dir: Path | None = None,
        engine: TorrentEngine | None = None,
    ) -> "AppContext":
        data_dir = Path(data_dir) if data_dir is not None else data_dir_path
        settings_manager = SettingsManager(data_dir)
        settings = settings_manager.settings

        registry = ActiveFileRegistry()
        file_server = FileServer(registry, settings.file_server)
        index = open_index(data_dir / settings.library.index_filename)

        library = None
        if engine is not None:
            library = LibraryService(index, engine)
            try:
                library.sync_with_engine()
            except LibraryException as e:
                logger.warning(f"Failed to sync torrent index with engine: {e}")

        logger.log("PROGRAM", f"Reelhost initialized with data dir {data_dir}")
        return cls(
            data_dir=data_dir,
            settings_manager=settings_manager,
            registry=registry,
            file_server=file_server,
            index=index,
            library=library,
        )

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"
