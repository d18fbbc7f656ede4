"""Logging setup.

Everything logs through the ``marketplace_agent`` logger. Its level and log
directory come from ``settings.logging``, so they resolve through the same
override, environment and config.yml chain as every other setting.
"""
import logging
import sys
from pathlib import Path

from marketplace_agent.core.config import LoggingConfig, settings

LOGGER_NAME = "marketplace_agent"
LOG_FILE_NAME = "marketplace_agent.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request INFO lines from the HTTP stack
QUIET_LOGGERS = ("httpx", "httpcore")


def _parse_level(level: str) -> int:
    value = logging.getLevelName(str(level or "").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """(Re)build the handlers of the package logger from ``config``.

    Console output always works; the log file is added only when its
    directory can be created.
    """
    target = logging.getLogger(LOGGER_NAME)
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()
    target.setLevel(_parse_level(config.level))
    target.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    target.addHandler(console)

    log_file = Path(config.logs_path) / LOG_FILE_NAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        target.warning(f"File logging disabled, cannot open {log_file}: {e}")
    else:
        file_handler.setFormatter(formatter)
        target.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return target


logger = configure_logging(settings.logging)
