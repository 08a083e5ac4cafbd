# src/config/logging_config.py

"""Per-run timestamped logging configuration for feedrank.

Every launch (CLI search or HTTP server) writes to its own file inside
``logs/``, e.g. ``logs/run_20260214_153045.log``.  All ``feedrank.*``
loggers (feeds, aggregator, ranking, api) share that file, so one
aggregation cycle can be followed end to end across feeds.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(threadName)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers of libraries that are noisy at DEBUG
_QUIET_LOGGERS: tuple[str, ...] = ("curl_cffi", "uvicorn.access")


def setup_logging(console_level: int = logging.WARNING) -> Path:
    """Initialise the ``feedrank`` logger tree for the current run.

    Args:
        console_level: Threshold for the stderr handler.  The file
            handler always records DEBUG and above.

    Returns:
        The :class:`~pathlib.Path` of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("feedrank")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, --serve after a search) keep the first setup
    if root_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("Logging initialised, writing to %s", log_file)
    return log_file
