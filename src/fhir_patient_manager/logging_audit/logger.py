"""Root logger setup for the CLI and the HTTP API.

The console handler follows the requested level; the rotating file handler
always records DEBUG so request traces survive a quiet console.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import PIIRedactingFormatter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "fhir-patient-manager.log"
LOG_FILE_ENV = "FHIR_PM_LOG_FILE"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_configured = False


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Install console and rotating file handlers on the root logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Console level name; the file handler stays at DEBUG
        log_file: Log file path, else $FHIR_PM_LOG_FILE, else logs/fhir-patient-manager.log
        redact_pii: Mask patient names, phones, e-mails and dates in messages

    Raises:
        ValueError: If level is not a standard level name
        RuntimeError: If the log directory cannot be created
    """
    global _configured

    console_level = logging.getLevelName(level.upper())
    if not isinstance(console_level, int):
        raise ValueError(
            f"Invalid log level: {level}. Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    log_file = _resolve_log_file(log_file)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Failed to create log directory {log_file.parent}: {e}") from e

    root = logging.getLogger()
    if _configured:
        root.handlers.clear()
    root.setLevel(logging.DEBUG)

    formatter = PIIRedactingFormatter(fmt=LOG_FORMAT, redact_pii=redact_pii)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        file_handler = RotatingFileHandler(
            str(log_file), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
        )
    except OSError as e:
        root.warning(f"Cannot open log file {log_file} ({e}); logging to console only")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # connection-pool chatter from requests
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    _configured = True


def get_logger(module_name: str) -> logging.Logger:
    """Return the logger for module_name (normally __name__)."""
    return logging.getLogger(module_name)


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return Path(log_file)
    env_value = os.environ.get(LOG_FILE_ENV)
    return Path(env_value) if env_value else DEFAULT_LOG_FILE
