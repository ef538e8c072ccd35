import logging
import sys
from pathlib import Path

from .config import LogConfig

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(threadName)s - %(message)s"

# Transport libraries that are noisy at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def setup_logging(config: LogConfig) -> None:
    """
    Route quarkdrive-fs logs to the configured destinations.

    Called once per CLI invocation, before the Quark session is built. Any
    handlers already on the root logger are replaced, so a long-running shell
    never writes a line twice. The log file (appended, utf-8) is written only
    when `config.file` is non-empty, and stderr only when `config.console` is
    set. Request-level chatter from urllib3 and requests is kept out of the
    log unless `config.level` is DEBUG.
    """
    # Get numeric logging level from string
    level = getattr(logging, config.level.upper(), logging.INFO)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    if config.file:
        log_path = Path(config.file)
        # Create log directory if it doesn't exist
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
