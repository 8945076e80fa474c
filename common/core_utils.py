# common/core_utils.py
# -*- coding: utf-8 -*-
"""
Logging setup for the provisioner.

Console and file handlers share one SymbolFormatter so the run log under
/var/log reads the same as the terminal output.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from installer.config import SYMBOLS_DEFAULT

LOG_FORMAT_WITH_PREFIX = "{log_prefix}%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
LOG_FORMAT_NO_PREFIX = "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SymbolFormatter(logging.Formatter):
    """
    A formatter that exposes a per-level symbol as %(symbol)s.
    """

    LEVEL_KEYS = {
        logging.DEBUG: ("debug", "🐛"),
        logging.INFO: ("info", "ℹ️"),
        logging.WARNING: ("warning", "⚠️"),
        logging.ERROR: ("error", "❌"),
        logging.CRITICAL: ("critical", "🔥"),
    }

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        symbols: Optional[Dict[str, str]] = None,
    ):
        super().__init__(fmt, datefmt)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        key, fallback = self.LEVEL_KEYS.get(record.levelno, (None, ""))
        record.symbol = self.symbols.get(key, fallback) if key else ""
        return super().format(record)


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> None:
    """
    Configure the root logger with console and/or file handlers.

    Parameters:
    log_level: int
        Level applied to the root logger.
    log_file: Optional[str]
        Append log records to this file. If it cannot be opened (for
        example /var/log when not root) a warning goes to stderr and
        logging continues on the console.
    log_to_console: bool
        Log to stdout.
    log_prefix: Optional[str]
        Text placed in front of every line, e.g. "[VDS-SETUP]".
    symbols: Optional[Dict[str, str]]
        Level symbols; defaults to SYMBOLS_DEFAULT.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        try:
            log_file_path = Path(log_file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file_path, mode="a"))
        except OSError as e:
            print(
                f"Warning: Could not create file handler for log file {log_file}: {e}",
                file=sys.stderr,
            )

    if log_to_console or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    actual_prefix = (
        (log_prefix.strip() + " ")
        if log_prefix and log_prefix.strip()
        else ""
    )
    if actual_prefix:
        final_format_str = LOG_FORMAT_WITH_PREFIX.format(log_prefix=actual_prefix)
    else:
        final_format_str = LOG_FORMAT_NO_PREFIX

    formatter = SymbolFormatter(
        fmt=final_format_str,
        datefmt=LOG_DATE_FORMAT,
        symbols=symbols,
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. File: {log_file or '-'}"
    )
