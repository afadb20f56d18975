"""
Hostfile artifacts.

A hostfile is a plain text file with one host per line. The rollout
planner writes them, and the reboot and health commands read them.
"""

import logging
import shutil
from pathlib import Path

from ecops_core.exceptions import ArtifactError

logger = logging.getLogger(__name__)


def read_hostfile(path: Path) -> list[str]:
    """
    Read hosts from a newline-delimited file.

    Blank lines and surrounding whitespace are ignored. Order is kept.

    Raises:
        ArtifactError: If the file cannot be read.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactError(Path(path), str(e)) from e

    return [line.strip() for line in text.splitlines() if line.strip()]


def write_hostfile(path: Path, hosts: list[str]) -> None:
    """
    Write hosts to a newline-delimited file, one per line.

    Raises:
        ArtifactError: If the file cannot be written.
    """
    content = "".join(f"{host}\n" for host in hosts)
    try:
        Path(path).write_text(content, encoding="utf-8")
    except OSError as e:
        raise ArtifactError(Path(path), str(e)) from e
    logger.debug("Wrote %d host(s) to %s", len(hosts), path)


def reset_directory(folder: Path) -> None:
    """
    Remove a directory tree (if present) and recreate it empty.

    Raises:
        ArtifactError: If the existing tree cannot be removed or the
            directory cannot be recreated.
    """
    folder = Path(folder)
    try:
        shutil.rmtree(folder)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise ArtifactError(folder, f"cannot remove existing contents: {e}") from e

    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactError(folder, str(e)) from e
