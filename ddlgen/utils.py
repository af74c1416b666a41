# File: ddlgen/utils.py
"""
ddlgen - Utility Functions & Helpers
======================================
Small string, file I/O and timing helpers shared by the SQL generator,
the document exporters and the generation pipeline.

- Identifier and comment helpers keep emitted T-SQL well formed.
- File I/O helpers use atomic rename so a crash never leaves half a script.
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.utils")

_LINE_BREAK_RE: re.Pattern[str] = re.compile(r"[\r\n]+")


# ---------------------------------------------------------------------------
# SQL text helpers
# ---------------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Bracket-quote a T-SQL identifier, doubling any closing bracket."""
    return "[" + name.replace("]", "]]") + "]"


def quote_string_literal(value: str) -> str:
    """Single-quote a T-SQL string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def single_line(text: str) -> str:
    """Collapse line breaks so *text* fits inside a ``--`` comment."""
    return _LINE_BREAK_RE.sub(" ", text).strip()


def indent(text: str, level: int = 1, size: int = 4) -> str:
    """Indent every non-empty line of *text*."""
    pad: str = " " * (level * size)
    return "\n".join(
        (pad + line) if line.strip() else line for line in text.split("\n")
    )


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            shutil.move(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("validate") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "quote_identifier",
    "quote_string_literal",
    "single_line",
    "indent",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("ddlgen.utils loaded: %d public symbols.", len(__all__))
