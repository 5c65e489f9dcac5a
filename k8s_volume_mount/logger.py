"""Module containing utilities for logging, along with the standard loggers."""

import logging
import sys
from typing import Any, Optional


def _get_logger(name: Optional[str] = "k8s_volume_mount") -> logging.Logger:
    stderrOutput = logging.StreamHandler()

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    stderrOutput.setFormatter(formatter)

    logger = logging.getLogger(name)
    logger.addHandler(stderrOutput)
    logger.setLevel(logging.WARNING)

    return logger


def _get_status_logger(name: str = "k8s_volume_mount_status") -> logging.Logger:
    """
    Create the logger for progress lines that are meant for the operator.

    It lives outside of the "k8s_volume_mount" hierarchy so that status lines only go
    to stdout and not also to the diagnostics handler on stderr.
    """
    stdoutOutput = logging.StreamHandler(sys.stdout)
    stdoutOutput.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(name)
    logger.addHandler(stdoutOutput)
    logger.setLevel(logging.INFO)

    return logger


def summarize(obj: Any, max_length: int = 255) -> str:
    """Return a stringified representation of the object up to the given length."""
    stringified_obj = str(obj)

    if len(stringified_obj) <= max_length:
        return stringified_obj
    else:
        return stringified_obj[: max_length - 3] + "..."


# Default logger
log = _get_logger()

# Operator facing progress output
status = _get_status_logger()
