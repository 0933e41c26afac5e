"""Logging setup that keeps personal data out of log output."""

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from household_ledger.lib.config import (
    DEFAULT_LOG_FILE,
    LOG_BACKUP_COUNT,
    LOG_FILE_ENV_VAR,
    LOG_MAX_BYTES,
)

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class PersonalDataFilter(logging.Filter):
    """
    Mask email addresses and card numbers in log records.

    Users are looked up by email and error messages echo what was asked for,
    so both can reach the log. Emails keep their first character and domain
    (``a***@example.com``); runs of 12 to 19 digits keep their last four.
    """

    EMAIL = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
    CARD_NUMBER = re.compile(r"(?<![\w-])\d{8,15}(\d{4})(?![\w-])")

    def mask(self, text: str) -> str:
        text = self.EMAIL.sub(r"\1***@\2", text)
        return self.CARD_NUMBER.sub(r"****\1", text)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: self._mask_arg(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask_arg(arg) for arg in record.args)
        return True

    def _mask_arg(self, value: Any) -> Any:
        return self.mask(value) if isinstance(value, str) else value


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """
    Configure root logging for the CLI.

    Args:
        level: Logging level (default: INFO)
        log_file: Log file path. Defaults to $LOG_FILE, then
                  ~/.household-ledger/household-ledger.log. An empty string
                  disables file logging.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    personal_data = PersonalDataFilter()

    if root_logger.handlers:
        for handler in root_logger.handlers:
            handler.addFilter(personal_data)
        return

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(personal_data)
    root_logger.addHandler(console_handler)

    if log_file is None:
        log_file = os.getenv(LOG_FILE_ENV_VAR, str(DEFAULT_LOG_FILE))
    if not log_file:
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    file_handler.addFilter(personal_data)
    root_logger.addHandler(file_handler)
