import argparse
import sys
from collections.abc import Sequence

from loguru import logger

from reelhost.context import AppContext
from reelhost.utils.logging import log_cleaner


def handle_args(context: AppContext, argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="reelhost")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Port to run the playback server on (default: from settings, 8765)",
    )
    parser.add_argument(
        "--serve",
        metavar="PATH",
        default=None,
        help="File to serve once the playback server is up.",
    )
    parser.add_argument(
        "--clean_logs",
        action="store_true",
        help="Clean old logs.",
    )
    parser.add_argument(
        "--list_library",
        action="store_true",
        help="Print the torrent metadata index and exit.",
    )

    args = parser.parse_args(argv)

    if args.clean_logs:
        log_cleaner(context.settings_manager.settings.logging, context.logs_dir)
        logger.info("Cleaned old logs.")
        sys.exit(0)

    if args.list_library:
        list_library(context)
        sys.exit(0)

    return args


def list_library(context: AppContext) -> None:
    entries = context.index.list_all()
    if not entries:
        logger.log("LIBRARY", "Torrent index is empty")
        return

    for entry in entries:
        episode = (
            f" S{entry.episode_info.season:02d}E{entry.episode_info.episode:02d}"
            if entry.episode_info
            else ""
        )
        media_type = entry.media_type.value if entry.media_type else "-"
        logger.log(
            "LIBRARY",
            f"[{entry.torrent_id}] {entry.info_hash} tmdb={entry.tmdb_id or '-'} {media_type}{episode}",
        )
