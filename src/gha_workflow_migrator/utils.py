"""
Utility functions for the workflow runner migration tool.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Final

BACKUP_DIR_ENV: Final = "GHA_MIGRATOR_BACKUP_DIR"
LOG_FILE_ENV: Final = "GHA_MIGRATOR_LOG_FILE"
DEFAULT_BACKUP_DIR: Final = Path("~/.github-runner-backups")

LOG_FORMAT: Final = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(*, verbosity: int = 0, log_file: str | Path | None = None) -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, INFO with -v and DEBUG with -vv.
    When a log file is given it always receives DEBUG output.
    """
    if verbosity >= 2:
        console_level = logging.DEBUG
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.DEBUG)
    for handler in handlers:
        root_logger.addHandler(handler)


def resolve_backup_root(cli_value: str | None = None) -> Path:
    """Pick the backup root: CLI flag, then environment, then the default."""
    raw = cli_value or os.environ.get(BACKUP_DIR_ENV)
    return Path(raw).expanduser() if raw else DEFAULT_BACKUP_DIR.expanduser()


def resolve_log_file() -> str | None:
    return os.environ.get(LOG_FILE_ENV) or None


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace `path` with `data` so readers never see a partial file.

    The data goes to a temporary file in the same directory, is flushed to
    disk and then renamed over the target. The target's permission bits are
    kept when it already exists.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            _ = fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def split_lines(content: str) -> list[str]:
    """Split text into physical lines, each keeping its line ending.

    Only `\\n`, `\\r\\n` and `\\r` end a line. Unlike `str.splitlines`, form
    feeds, vertical tabs and Unicode separators stay inside the line, as
    they do for YAML.
    """
    return io.StringIO(content, newline="").readlines()
