from __future__ import annotations

import logging
import re
from typing import Iterable

from pydantic import BaseModel, Field

from hyperlog.core.dialects import Dialect, DialectRules, HeaderTier
from hyperlog.core.window import RawLine

logger = logging.getLogger(__name__)


class LogEntry(BaseModel):
    number: int
    text: str
    timestamp: str = ""
    level: str = ""
    trace: list[LogEntry] = Field(default_factory=list)
    # Presentation state for the viewer; never set server-side.
    expanded: bool = False


class ParseResult(BaseModel):
    entries: dict[int, LogEntry] = Field(default_factory=dict)
    has_levels: bool = False
    has_stamps: bool = False


def _match_header(rules: DialectRules, text: str) -> tuple[HeaderTier | None, re.Match[str] | None]:
    for tier in rules.tiers:
        match = tier.pattern.match(text)
        if match:
            return tier, match
    return None, None


def _entry_from_match(number: int, match: re.Match[str]) -> LogEntry:
    groups = match.groupdict()
    return LogEntry(
        number=number,
        text=groups.get("message") or "",
        timestamp=groups.get("stamp") or "",
        level=(groups.get("level") or "").lower(),
    )


def _trace_entry(rules: DialectRules, header: LogEntry, line: RawLine) -> LogEntry:
    match = rules.continuation.match(line.text) if rules.continuation else None
    if match:
        return LogEntry(
            number=line.number,
            text=match.group("message"),
            timestamp=match.group("stamp"),
            level=header.level,
        )
    return LogEntry(number=line.number, text=line.text, timestamp=header.timestamp, level=header.level)


def reconstruct(lines: Iterable[RawLine], dialect: Dialect) -> ParseResult:
    """Group raw lines into top-level entries with their trace lines.

    Single pass in line order. A line matching an opening header tier
    starts a new entry; every following line that does not open another
    entry is appended to its trace, until the input ends. Lines seen
    before any opening header are top-level entries on their own, with the
    stamp of a non-opening tier if one matches and otherwise no stamp or
    level. Every input line lands in exactly one place and nothing raises
    on malformed text.
    """
    rules = dialect.rules
    result = ParseResult(has_levels=rules.has_levels, has_stamps=rules.has_stamps)
    header: LogEntry | None = None

    for line in lines:
        tier, match = _match_header(rules, line.text)
        if tier is not None and tier.opens_trace:
            header = _entry_from_match(line.number, match)
            result.entries[line.number] = header
        elif header is not None:
            header.trace.append(_trace_entry(rules, header, line))
        elif match is not None:
            result.entries[line.number] = _entry_from_match(line.number, match)
        else:
            result.entries[line.number] = LogEntry(number=line.number, text=line.text)

    logger.debug("reconstructed dialect=%s entries=%d", dialect.value, len(result.entries))
    return result
