"""CLI logging setup: colored console output plus a per-run log file."""

import logging
import sys
from datetime import datetime
from pathlib import Path

from dockhand.redact import SecretRedactingFilter

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_RESET = "\033[0m"
_STYLES = {
    logging.DEBUG: ("", "·"),
    logging.INFO: ("\033[0;34m", "ℹ"),
    SUCCESS: ("\033[0;32m", "✓"),
    logging.WARNING: ("\033[1;33m", "⚠"),
    logging.ERROR: ("\033[0;31m", "✗"),
    logging.CRITICAL: ("\033[0;31m", "✗"),
}


class _ConsoleFormatter(logging.Formatter):
    """Console formatter: ``<marker> message``, colored when writing to a TTY.

    Remote command output (records with ``raw=True``) is printed as-is.
    """

    def __init__(self, use_color: bool):
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if getattr(record, "raw", False):
            return message
        color, marker = _STYLES.get(record.levelno, ("", ""))
        if self.use_color and color:
            return f"{color}{marker} {message}{_RESET}"
        return f"{marker} {message}"


def log_success(logger: logging.Logger, message: str, *args) -> None:
    """Log *message* at the SUCCESS level."""
    logger.log(SUCCESS, message, *args)


def setup_cli_logging():
    """Configure the root logger with console output only.

    Call add_file_handler() once the log directory is known.
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_ConsoleFormatter(use_color=sys.stdout.isatty()))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)


def add_file_handler(log_dir) -> str:
    """Add a file handler writing to {log_dir}/deploy_YYYYmmdd_HHMMSS.log.

    Returns:
        Path to the log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"deploy_{datetime.now():%Y%m%d_%H%M%S}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    file_handler.addFilter(SecretRedactingFilter())
    logging.getLogger().addHandler(file_handler)

    return str(log_file)
