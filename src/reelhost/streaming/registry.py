import threading
from pathlib import Path

from loguru import logger


class ActiveFileRegistry:
    """
    Holds the single file the playback server is currently serving.

    Selecting a new file overwrites the slot; nothing validates that the
    path exists until a request tries to open it. Transfers already in
    flight keep reading from the handle they opened.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._path: Path | None = None
        self._generation = 0

    def set(self, path: str | Path) -> None:
        with self._lock:
            self._path = Path(path)
            self._generation += 1
            generation = self._generation
        logger.log("STREAM", f"Playback server now serving: {path} (generation {generation})")

    def get(self) -> Path | None:
        with self._lock:
            return self._path

    @property
    def generation(self) -> int:
        """Incremented on every selection; 0 until a file has been set."""
        with self._lock:
            return self._generation
