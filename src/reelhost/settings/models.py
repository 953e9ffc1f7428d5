"""Reelhost settings models"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from reelhost.utils import get_version


class LoggingModel(BaseModel):
    enabled: bool = Field(default=True, description="Write log files to the data directory")
    retention_hours: int = Field(
        default=24, ge=0, description="Hours to keep rotated log files"
    )
    rotation_mb: int = Field(
        default=10, ge=0, description="Rotate log files at this size (0 to disable)"
    )
    compression: Literal["zip", "gz", "tar.gz", "disabled"] = Field(
        default="disabled", description="Compression for rotated log files"
    )


class FileServerModel(BaseModel):
    host: str = Field(default="127.0.0.1", description="Interface the playback server binds to")
    port: int = Field(default=8765, ge=0, le=65535, description="Playback server port")
    streaming_threshold_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=0,
        description="Ranges larger than this are streamed from disk instead of buffered",
    )
    chunk_size_kb: int = Field(
        default=64, ge=1, description="Read size for streamed transfers"
    )
    playback_filename: str = Field(
        default="video.mp4", description="File name used in playback URLs"
    )

    @property
    def chunk_size(self) -> int:
        return self.chunk_size_kb * 1024


class LibraryModel(BaseModel):
    index_filename: str = Field(
        default="torrents.json", description="Torrent metadata index file name"
    )


class AppModel(BaseModel):
    version: str = Field(default_factory=get_version, description="Application version")
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(default="INFO", description="Logging level")
    )
    logging: LoggingModel = Field(
        default_factory=lambda: LoggingModel(), description="Logging configuration"
    )
    file_server: FileServerModel = Field(
        default_factory=lambda: FileServerModel(),
        description="Playback server configuration",
    )
    library: LibraryModel = Field(
        default_factory=lambda: LibraryModel(),
        description="Torrent library configuration",
    )

    @field_validator("log_level", mode="before")
    def check_debug(cls, v):
        if v is True:
            return "DEBUG"
        elif v is False:
            return "INFO"
        return v.upper() if isinstance(v, str) else v

    @field_validator("version")
    def refresh_version(cls, v: str) -> str:
        """Settings files written by an older release are stamped with the current version."""
        return get_version()
