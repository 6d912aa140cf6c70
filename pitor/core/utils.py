"""
Logging setup
"""
import logging
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "pitor"


def setup_logger(log_file: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """Configure the global logger: console at INFO (DEBUG in debug mode), file at DEBUG"""
    _logger = logging.getLogger(LOGGER_NAME)
    _logger.setLevel(logging.DEBUG)

    # Avoid adding handlers twice
    if _logger.handlers:
        if debug:
            for h in _logger.handlers:
                if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
                    h.setLevel(logging.DEBUG)
        return _logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(console_handler)

    # Only privileged runs can write the system log file
    if log_file is not None:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            _logger.warning(f"  -> [WARN] Cannot open log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                "[%(asctime)s] [%(levelname)s] [%(module)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            _logger.addHandler(file_handler)

    return _logger


logger = logging.getLogger(LOGGER_NAME)
