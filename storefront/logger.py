"""
Logging configuration for the storefront service.

All modules log through children of the ``storefront`` logger. Request
audit records go to ``storefront.audit``, which can additionally be
written to a file (one JSON object per line).
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("storefront")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

# Keep records out of the root logger (uvicorn configures its own)
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger (will be appended to 'storefront')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"storefront.{name}")
    return logger


def configure_logging(level: str = "INFO", audit_log_file: Optional[str] = None) -> None:
    """Apply the configured level and attach the audit file handler once."""
    logger.setLevel(level)
    if not audit_log_file:
        return

    audit = get_logger("audit")
    target = str(Path(audit_log_file).resolve())
    for handler in audit.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return

    Path(target).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    # Audit lines are already JSON; write them verbatim
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    audit.addHandler(file_handler)
