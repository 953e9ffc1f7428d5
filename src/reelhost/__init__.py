"""Local playback server and torrent metadata library."""

from reelhost.utils.logging import register_log_levels

register_log_levels()
