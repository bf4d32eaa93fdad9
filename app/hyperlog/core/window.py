from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 120
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int

    @property
    def empty(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True)
class RawLine:
    number: int
    text: str


def _decode(raw: bytes) -> str:
    return raw.removesuffix(b"\n").removesuffix(b"\r").decode("utf-8", errors="replace")


def _measure(f: BinaryIO) -> tuple[int, int, bool]:
    """Return (newline count, byte size, has unterminated tail) for an open file."""
    newlines = 0
    size = 0
    last = b""
    while True:
        chunk = f.read(CHUNK_SIZE)
        if not chunk:
            break
        newlines += chunk.count(b"\n")
        size += len(chunk)
        last = chunk[-1:]
    return newlines, size, bool(size) and last != b"\n"


def count_lines(path: str | Path) -> int:
    with open(path, "rb") as f:
        newlines, _size, unterminated = _measure(f)
    return newlines + int(unterminated)


def resolve_range(
    total: int,
    requested_start: int | None = None,
    requested_end: int | None = None,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> LineRange:
    start = requested_start if requested_start is not None else total - window_size
    end = requested_end if requested_end is not None else start + window_size
    return LineRange(start=max(1, start), end=min(total, end))


def _seek_line_from_end(f: BinaryIO, size: int, newlines: int, line_no: int) -> None:
    # Line N starts right after newline N-1, which is newline (newlines - N + 2) counted from the end.
    wanted = newlines - line_no + 2
    if line_no <= 1 or wanted > newlines:
        f.seek(0)
        return

    seen = 0
    pos = size
    while pos > 0:
        read_size = min(CHUNK_SIZE, pos)
        pos -= read_size
        f.seek(pos)
        chunk = f.read(read_size)
        stop = len(chunk)
        while True:
            idx = chunk.rfind(b"\n", 0, stop)
            if idx < 0:
                break
            seen += 1
            if seen == wanted:
                f.seek(pos + idx + 1)
                return
            stop = idx
    f.seek(0)


def _seek_line_from_start(f: BinaryIO, line_no: int) -> None:
    f.seek(0)
    for _ in islice(f, line_no - 1):
        pass


def read_window(
    path: str | Path,
    requested_start: int | None = None,
    requested_end: int | None = None,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> tuple[LineRange, list[RawLine]]:
    """Read lines ``start..end`` (inclusive, 1-based) of ``path``.

    Missing bounds default to the last ``window_size`` lines. Bounds are
    clamped to the file, so an out-of-range request yields an empty list
    rather than an error. The file is streamed, never loaded whole; lines
    appended while reading are picked up only if they fall inside the
    range computed from the initial line count.

    Raises ``OSError`` when the file cannot be opened or read.
    """
    with open(path, "rb") as f:
        newlines, size, unterminated = _measure(f)
        total = newlines + int(unterminated)
        window = resolve_range(total, requested_start, requested_end, window_size)
        if window.empty:
            logger.debug("window_empty path=%s total=%d start=%d end=%d", path, total, window.start, window.end)
            return window, []

        if window.start > total // 2:
            _seek_line_from_end(f, size, newlines, window.start)
        else:
            _seek_line_from_start(f, window.start)

        lines: list[RawLine] = []
        for number, raw in enumerate(f, start=window.start):
            if number > window.end:
                break
            lines.append(RawLine(number=number, text=_decode(raw)))

    logger.debug("window_read path=%s total=%d start=%d end=%d count=%d", path, total, window.start, window.end, len(lines))
    return window, lines
