from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


def ensure_log_file_exists(path: str | os.PathLike[str]) -> bool:
    """Create an empty log file if none exists. Returns True if one was created."""
    p = Path(path)
    if p.exists():
        return False
    p.parent.mkdir(parents=True, exist_ok=True)
    p.touch(mode=0o644, exist_ok=True)
    logger.info("created empty log file %s", p)
    return True


class LogTailer:
    """Reads lines appended to a file after it was opened.

    The cursor starts at end-of-file and only moves past complete,
    newline-terminated lines; a trailing partial line is left for a later read.
    """

    def __init__(self, path: str | os.PathLike[str], encoding: str = "utf-8") -> None:
        self.path = str(path)
        self.encoding = encoding
        self._f: BinaryIO | None = None
        self._pos: int = 0
        self._shrink_reported = False

    def __enter__(self) -> LogTailer:
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def position(self) -> int:
        return self._pos

    @property
    def is_open(self) -> bool:
        return self._f is not None

    def open(self) -> None:
        if self._f is not None:
            return
        f = open(self.path, "rb")
        try:
            self._pos = f.seek(0, os.SEEK_END)
        except OSError:
            f.close()
            raise
        self._f = f
        logger.debug("tailing %s from offset %d", self.path, self._pos)

    def close(self) -> None:
        if self._f is None:
            return
        try:
            self._f.close()
        finally:
            self._f = None

    def try_read_line(self) -> str | None:
        """Return the next complete line without trailing whitespace, or None."""
        if self._f is None:
            raise RuntimeError(f"tailer for {self.path} is not open")

        raw = self._f.readline()
        if not raw:
            self._check_shrunk(self._f)
            return None
        if not raw.endswith(b"\n"):
            self._f.seek(self._pos)
            return None

        self._pos = self._f.tell()
        return raw.decode(self.encoding, errors="ignore").rstrip()

    def read_available(self, limit: int) -> list[str]:
        lines: list[str] = []
        for _ in range(max(0, int(limit))):
            line = self.try_read_line()
            if line is None:
                break
            lines.append(line)
        return lines

    def _check_shrunk(self, f: BinaryIO) -> None:
        try:
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            logger.debug("fstat failed for %s: %s", self.path, e)
            return

        if size < self._pos:
            if not self._shrink_reported:
                logger.warning(
                    "%s shrank below read offset (%d < %d); truncation is not followed",
                    self.path,
                    size,
                    self._pos,
                )
                self._shrink_reported = True
        else:
            self._shrink_reported = False
