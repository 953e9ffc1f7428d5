import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from fastapi import Response
from fastapi.responses import StreamingResponse
from loguru import logger

from reelhost.streaming.byte_range import ByteRange, parse_range_header

# Ranges above this size are streamed from disk; smaller ones (such as the
# 0-1 probe some players send before playback) are read into memory.
STREAMING_THRESHOLD = 10 * 1024 * 1024

CHUNK_SIZE = 64 * 1024

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".mp4": "video/mp4",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "range, content-type",
}

PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Max-Age": "86400",
}

COMMON_HEADERS = {
    "Accept-Ranges": "bytes",
    "Cache-Control": "public, max-age=3600",
    "Vary": "origin, access-control-request-method, access-control-request-headers",
    **CORS_HEADERS,
    "Access-Control-Expose-Headers": "content-length, content-range, accept-ranges",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def iter_file(handle: BinaryIO, length: int, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """
    Yield at most `length` bytes from the handle's current position.

    The handle is closed when the iterator finishes or is closed early,
    which happens when the client disconnects mid-transfer.
    """
    remaining = length
    try:
        while remaining > 0:
            chunk = handle.read(min(chunk_size, remaining))
            if not chunk:
                logger.warning(
                    f"File ended {remaining} bytes early while streaming {handle.name}"
                )
                break
            remaining -= len(chunk)
            yield chunk
    except OSError as e:
        logger.error(f"Failed to read {handle.name} while streaming: {e}")
    finally:
        handle.close()


class StreamingResponder:
    """Builds playback responses for the active file, honouring single byte ranges."""

    def __init__(
        self,
        streaming_threshold: int = STREAMING_THRESHOLD,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.streaming_threshold = streaming_threshold
        self.chunk_size = chunk_size

    def preflight(self) -> Response:
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    def uses_streaming(self, byte_range: ByteRange) -> bool:
        return byte_range.length > self.streaming_threshold

    def respond(
        self,
        path: Path | None,
        method: str = "GET",
        range_header: str | None = None,
    ) -> Response:
        """
        Build the response for a GET or HEAD against the active file.

        Returns 404 when no file is selected or it cannot be opened, 500
        when its size cannot be read or a seek/read fails, 206 for a valid
        range and 200 (whole file) otherwise. Malformed or unsatisfiable
        ranges fall back to the whole file.
        """
        if path is None:
            logger.error("No file set")
            return self._error(404)

        try:
            handle = open(path, "rb")
        except OSError as e:
            logger.error(f"Failed to open file: {e}")
            return self._error(404)

        try:
            file_size = os.fstat(handle.fileno()).st_size
        except OSError as e:
            handle.close()
            logger.error(f"Failed to get file metadata: {e}")
            return self._error(500)

        content_type = content_type_for(path)
        byte_range = parse_range_header(range_header, file_size)
        head_only = method.upper() == "HEAD"

        if byte_range is None:
            return self._full(handle, file_size, content_type, head_only)
        return self._partial(handle, byte_range, file_size, content_type, head_only)

    def _full(
        self, handle: BinaryIO, file_size: int, content_type: str, head_only: bool
    ) -> Response:
        logger.debug(f"No usable Range header, serving whole file ({file_size} bytes)")
        headers = {**COMMON_HEADERS, "Content-Length": str(file_size)}

        if head_only:
            handle.close()
            return Response(status_code=200, headers=headers, media_type=content_type)

        return StreamingResponse(
            iter_file(handle, file_size, self.chunk_size),
            status_code=200,
            headers=headers,
            media_type=content_type,
        )

    def _partial(
        self,
        handle: BinaryIO,
        byte_range: ByteRange,
        file_size: int,
        content_type: str,
        head_only: bool,
    ) -> Response:
        length = byte_range.length
        headers = {
            **COMMON_HEADERS,
            "Content-Length": str(length),
            "Content-Range": byte_range.content_range(file_size),
        }
        logger.debug(
            f"Serving range {byte_range.start}-{byte_range.end} of {file_size} "
            f"({length // 1024 // 1024}MB)"
        )

        try:
            handle.seek(byte_range.start)
        except OSError as e:
            handle.close()
            logger.error(f"Failed to seek file: {e}")
            return self._error(500)

        if head_only:
            handle.close()
            return Response(status_code=206, headers=headers, media_type=content_type)

        if self.uses_streaming(byte_range):
            logger.debug(f"Using streaming for large range ({length // 1024 // 1024}MB)")
            return StreamingResponse(
                iter_file(handle, length, self.chunk_size),
                status_code=206,
                headers=headers,
                media_type=content_type,
            )

        logger.debug(f"Using buffer for small range ({length // 1024}KB)")
        try:
            with handle:
                buffer = handle.read(length)
        except OSError as e:
            logger.error(f"Failed to read file range: {e}")
            return self._error(500)

        if len(buffer) != length:
            logger.error(
                f"Short read for range {byte_range.start}-{byte_range.end}: "
                f"got {len(buffer)} of {length} bytes"
            )
            return self._error(500)

        return Response(
            content=buffer,
            status_code=206,
            headers=headers,
            media_type=content_type,
        )

    @staticmethod
    def _error(status_code: int) -> Response:
        return Response(status_code=status_code, headers=CORS_HEADERS)
