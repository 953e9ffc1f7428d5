import base64
import binascii

from loguru import logger


def normalize_infohash(infohash: str) -> str:
    """
    Normalize an infohash to 40-character lowercase hexadecimal.

    Base32 infohashes (32 characters, as found in some magnet links) are
    converted to base16. Anything that cannot be decoded is only lowercased.
    """

    infohash = infohash.strip()

    if len(infohash) == 32:
        try:
            infohash = base64.b16encode(base64.b32decode(infohash.upper())).decode(
                "utf-8"
            )
        except (binascii.Error, ValueError) as e:
            logger.debug(f"Failed to convert base32 infohash to base16: {e}")

    return infohash.lower()
