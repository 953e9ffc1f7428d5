import re
from dataclasses import dataclass

RANGE_UNIT_PREFIX = "bytes="

_DIGITS = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class ByteRange:
    """An inclusive byte interval over a file of known size."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        return f"bytes {self.start}-{self.end}/{file_size}"


def parse_range(range_spec: str, file_size: int) -> ByteRange | None:
    """
    Parse a range specifier like "0-1", "1000-2000" or "1000-".

    The unit prefix must already be stripped. Either number may carry a
    leading "+". Suffix ranges ("-500") and multiple ranges are not
    supported.

    Returns:
        The validated range, or None if the specifier is malformed or does
        not fit inside the file.
    """
    parts = range_spec.split("-")
    if len(parts) != 2:
        return None

    start_token, end_token = parts
    if not _DIGITS.fullmatch(start_token):
        return None
    start = int(start_token)

    if end_token == "":
        end = file_size - 1
    elif _DIGITS.fullmatch(end_token):
        end = int(end_token)
    else:
        return None

    if start <= end < file_size:
        return ByteRange(start=start, end=end)
    return None


def parse_range_header(header_value: str | None, file_size: int) -> ByteRange | None:
    """Resolve a raw `Range` header value against the file size."""
    if not header_value or not header_value.startswith(RANGE_UNIT_PREFIX):
        return None
    return parse_range(header_value[len(RANGE_UNIT_PREFIX):], file_size)
