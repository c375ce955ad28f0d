import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path
from datetime import datetime
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LOG_COLORS = {
    "DEBUG": "\033[36m",      # Cyan
    "INFO": "\033[32m",       # Green
    "WARNING": "\033[33m",    # Yellow
    "ERROR": "\033[31m",      # Red
    "CRITICAL": "\033[38;5;88m",  # Dark Red (ANSI 256-color)
}
RESET_COLOR = "\033[0m"

LOGGER_PREFIX = "modfilter"

# Log file path for this process (initialized on first use)
LOG_FILEPATH: Path | None = None


# -------------------- Formatters --------------------
class ColorFormatter(logging.Formatter):
    """
    Log formatter that applies ANSI color codes based on log level.

    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Dark Red
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """
    Logging handler that writes through prompt_toolkit.

    print_formatted_text keeps log lines from tearing an active prompt
    when the library is embedded in an interactive console.

    Args:
        formatter (logging.Formatter | None): Optional formatter to apply to log records.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            print_formatted_text(ANSI(msg))
        except Exception:
            self.handleError(record)


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def should_use_color() -> bool:
    """Return True if stderr is attached to a terminal."""
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


color_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Logger Setup --------------------

def resolve_log_level() -> int:
    """Read the base level from ``MODFILTER_LOG_LEVEL`` (default INFO)."""
    name = os.getenv("MODFILTER_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_log_filepath() -> Path | None:
    """
    Return the log file shared by every modfilter logger in this process.

    File logging is enabled only when ``MODFILTER_LOG_DIR`` is set; the
    directory is created on first use and one timestamped file is used for
    the whole session.

    Returns:
        Path | None: Path of the session log file, or None when file logging is off.
    """
    global LOG_FILEPATH

    if LOG_FILEPATH is None:
        log_dir = os.getenv("MODFILTER_LOG_DIR")
        if not log_dir:
            return None
        logs_path = Path(log_dir).expanduser().resolve()
        logs_path.mkdir(parents=True, exist_ok=True)
        LOG_FILEPATH = logs_path / (datetime.now().strftime(DATE_FORMAT) + ".log")

    return LOG_FILEPATH


def setup_logger(logger_name: str) -> logging.Logger:
    """Configure and return a logger with console and optional rotating file handlers.

    Parameters
    ----------
    logger_name:
        Name of the logger to configure. Names are nested under ``modfilter``.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    if not logger_name.startswith(LOGGER_PREFIX):
        logger_name = f"{LOGGER_PREFIX}.{logger_name}"
    logger = logging.getLogger(logger_name)

    if logger.handlers:
        return logger

    base_level = resolve_log_level()
    logger.setLevel(base_level)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=color_formatter)
    console_handler.setLevel(base_level)
    logger.addHandler(console_handler)

    log_filepath = get_log_filepath()
    if log_filepath is not None:
        file_handler = RotatingFileHandler(
            log_filepath,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(plain_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Retrieve a logger configured for modfilter, creating it if necessary.

    Parameters
    ----------
    logger_name:
        Name of the logger requested by the caller.

    Returns
    -------
    logging.Logger
        Logger instance ready for use.
    """
    return setup_logger(logger_name)


# -------------------- Suppress Noisy Libraries --------------------
NOISY_LOGGERS = ["openai", "openai._base_client", "httpx", "httpcore"]

for noisy_logger in NOISY_LOGGERS:
    logging.getLogger(noisy_logger).setLevel(logging.ERROR)
