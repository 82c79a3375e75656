"""
I/O Utilities for the mgPipe Initialization Layer

Small helpers shared by the resolver and orchestrator modules: timestamped
status messages, memory usage reporting and result directory preparation.
"""

import os
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

import psutil

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def log_with_timestamp(message: str, level: int = logging.INFO):
    """
    Logs a message prefixed with the current UTC timestamp.

    Args:
        message: The message to log.
        level: Logging level of the record (default INFO).
    """
    current_time = datetime.now(tz=timezone.utc)
    logger.log(level, f"[{current_time}] {message}")


def memory_usage_mb() -> float:
    """Returns the resident memory of the running Python process in MB."""
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / (1024 ** 2)


def log_memory_usage(stage: str = ""):
    """
    Logs the current memory usage (in MB) of the running Python process.

    Args:
        stage (str): Description of the pipeline stage.
    """
    logger.info(f"[MEMORY] {stage}: {memory_usage_mb():.2f} MB")


def ensure_result_dir(res_path: PathLike) -> str:
    """
    Ensure the result directory exists and return it with a trailing separator.

    The directory is created recursively if it does not exist.

    Args:
        res_path: the result directory
    """
    res_path = os.fspath(res_path)
    os.makedirs(res_path, exist_ok=True)
    if not res_path.endswith(os.sep):
        res_path = res_path + os.sep
    return res_path


def has_extension(file_path: PathLike, extensions) -> bool:
    """True if `file_path` ends with one of `extensions` (case insensitive)."""
    suffix = Path(os.fspath(file_path)).suffix.lower()
    return suffix in {ext.lower() for ext in extensions}
