"""
Logger Utility
Centralized logging configuration and the computation audit-event sink
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = "logs"


def setup_logger(name: str, level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Setup logger with consistent formatting

    Args:
        name: Logger name
        level: Logging level
        log_dir: Directory for the error log file (defaults to ./logs)

    Returns:
        Configured logger
    """

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler for errors
    try:
        directory = Path(log_dir or DEFAULT_LOG_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        error_handler = logging.FileHandler(
            directory / f"errors_{datetime.now().strftime('%Y%m%d')}.log"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        logger.addHandler(error_handler)
    except OSError as e:
        logger.warning(f"Error log file disabled: {e}")

    return logger


class AuditLogger:
    """
    Audit logger for computed and rejected deadlines

    Writes one JSON object per line. Writing is best-effort: a failure is
    logged and never propagates to the computation that produced the event.
    """

    def __init__(self, log_file: str = "audit.jsonl", log_dir: Optional[str] = None):
        """Initialize audit logger"""

        self.log_file = Path(log_dir or DEFAULT_LOG_DIR) / log_file
        self._logger = logging.getLogger(__name__)

    def log(self, event: str, data: dict) -> bool:
        """
        Log audit event

        Args:
            event: Event type
            data: Event data

        Returns:
            True if the event was written
        """

        entry = {
            "timestamp": datetime.now().isoformat(),
            "event": event,
            "data": data
        }

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + '\n')
            return True
        except (OSError, TypeError, ValueError) as e:
            self._logger.warning(f"Audit event '{event}' not written: {e}")
            return False
