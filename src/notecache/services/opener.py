"""Open a note body with the operating system's default application."""

import logging
import os
import subprocess
import sys
from typing import List

logger = logging.getLogger(__name__)


def _open_command(path: str) -> List[str]:
    if sys.platform == "darwin":
        return ["open", path]
    return ["xdg-open", path]


def open_with_default_app(path: str) -> bool:
    """Ask the OS to open ``path`` with its default handler.

    Failures are logged, not raised: a body that moved or was deleted only
    affects that one note.

    Returns:
        True if the handler was launched successfully.
    """
    if sys.platform == "win32":
        try:
            os.startfile(path)  # type: ignore[attr-defined]
        except OSError as e:
            logger.warning(f"Failed to open {path}: {e}")
            return False
        return True

    command = _open_command(path)
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Failed to open {path} with {command[0]}: {e}")
        return False

    if result.returncode != 0:
        logger.warning(
            f"{command[0]} exited with {result.returncode} for {path}: "
            f"{result.stderr.strip()[:200]}"
        )
        return False
    return True
