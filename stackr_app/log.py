import os
import sys
import json
import logging
from logging.handlers import RotatingFileHandler

from flask import g, has_request_context

# Package logger; every module logger ("stackr_app.*") propagates here
logger = logging.getLogger("stackr_app")
logger.setLevel(logging.INFO)

debug_logger = logging.getLogger("stackr_app.debug")
debug_logger.setLevel(logging.INFO)
debug_logger.propagate = False

LOG_FILE_NAME = 'stackr.log'
DEBUG_LOG_FILE_NAME = 'debug.log'


def _has_file_handler(target: logging.Logger, path: str) -> bool:
    return any(getattr(h, "baseFilename", None) == path for h in target.handlers)


def configure_logging(log_dir: str, debug_logging: bool = True) -> None:
    """
    Attach the rotating file and stdout handlers.

    Safe to call more than once (one handler per file).
    """
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.abspath(os.path.join(log_dir, LOG_FILE_NAME))
    debug_file = os.path.abspath(os.path.join(log_dir, DEBUG_LOG_FILE_NAME))

    if not _has_file_handler(logger, log_file):
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s')
        )
        logger.addHandler(file_handler)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(logging.Formatter('%(message)s'))  # Keep stdout clean
        logger.addHandler(stream_handler)

    if not _has_file_handler(debug_logger, debug_file):
        debug_handler = RotatingFileHandler(debug_file, maxBytes=10 * 1024 * 1024, backupCount=10)
        debug_handler.setFormatter(logging.Formatter('%(message)s'))
        debug_logger.addHandler(debug_handler)
    debug_logger.disabled = not debug_logging


def _request_prefix() -> str:
    """Return request id prefix if available."""
    if has_request_context() and getattr(g, "request_id", None):
        return f"[{g.request_id}] "
    return ""


def log(msg: str) -> None:
    """Log a message to console and file, tagged with the request id."""
    logger.info(f"{_request_prefix()}{msg}")


def debug_log_event(event: dict) -> None:
    """Write structured debug events to the debug file (one JSON object per line)."""
    if debug_logger.disabled:
        return
    try:
        debug_logger.info(json.dumps(event, ensure_ascii=True, separators=(',', ':'), default=str))
    except (TypeError, ValueError) as exc:
        logger.info(f"Debug log failure: {exc}")
