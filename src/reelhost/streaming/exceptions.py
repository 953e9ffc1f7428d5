class StreamingException(Exception):
    """Base class for playback server exceptions."""

    pass


class FileServerBindException(StreamingException):
    """The playback server could not bind its listening socket."""

    def __init__(self, host: str, port: int, original_exception: OSError) -> None:
        super().__init__(
            f"Failed to bind playback server on {host}:{port}: {original_exception}"
        )

        self.host = host
        self.port = port
        self.original_exception = original_exception
