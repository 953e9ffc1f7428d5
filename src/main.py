import signal
import sys
import threading
from types import FrameType

from dotenv import load_dotenv

load_dotenv()  # import required here to support SETTINGS_FILENAME and REELHOST_DATA_DIR

from loguru import logger

from reelhost.context import AppContext
from reelhost.utils import get_version
from reelhost.utils.cli import handle_args
from reelhost.utils.logging import setup_logger


def run():
    context = AppContext.create()
    settings = context.settings_manager.settings
    setup_logger(settings.log_level, settings.logging, context.logs_dir)

    args = handle_args(context)

    shutdown = threading.Event()

    def signal_handler(signum: int, frame: FrameType | None):
        logger.log("PROGRAM", "Exiting Gracefully.")
        shutdown.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.log("PROGRAM", f"Reelhost v{get_version()} starting")
    base_url = context.file_server.start(port=args.port)

    if context.file_server.bind_error is not None:
        logger.critical(f"Playback server could not start: {context.file_server.bind_error}")
        sys.exit(1)

    logger.log("PROGRAM", f"Playback server listening at {base_url}")

    if args.serve:
        playback_url = context.file_server.serve(args.serve)
        logger.log("PROGRAM", f"Playback URL: {playback_url}")

    try:
        while not shutdown.is_set() and context.file_server.is_running:
            shutdown.wait(timeout=1)
    finally:
        context.file_server.stop()
        logger.critical("Server has been stopped")

    sys.exit(0)


if __name__ == "__main__":
    run()
