"""
Host checks used before any snapshot work starts.

Covers drive letter input handling, drive readiness and the administrator
check the Volume Shadow Copy service requires.
"""

import ctypes
import logging
import os
import platform
from pathlib import Path


def is_windows() -> bool:
    return platform.system().lower() == "windows"


def is_administrator() -> bool:
    """
    Check for elevated rights.

    Only Windows is checked; other hosts are treated as elevated since they have
    no shadow copies to mount anyway.
    """
    if not is_windows():
        return True

    logging.debug("Checking for admin rights")
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError) as e:
        logging.warning(f"Could not determine administrator rights: {e}")
        return False


def normalize_drive_letter(value: str) -> str:
    """
    Reduce 'C', 'd:', 'F:\\' and similar input to a single upper-case letter.

    Raises:
        ValueError: If value does not start with a letter
    """
    value = (value or "").strip()
    if not value or not value[0].isalpha():
        raise ValueError(f"'{value}' is not a drive letter")
    return value[0].upper()


def drive_is_ready(drive_letter: str) -> bool:
    """True when the drive's root directory is accessible."""
    root = Path(f"{drive_letter}:{os.sep}")
    try:
        return root.exists()
    except OSError as e:
        logging.debug(f"Drive {drive_letter}: not accessible: {e}")
        return False
