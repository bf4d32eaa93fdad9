from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class Dialect(str, Enum):
    PLAINTEXT = "plaintext"
    LARAVEL = "laravel"
    PHPLOG = "phplog"

    @property
    def rules(self) -> DialectRules:
        return DIALECT_RULES[self]


@dataclass(frozen=True)
class HeaderTier:
    """One header pattern with ``stamp``/``message`` (and optionally ``level``) groups.

    An opening tier starts a new entry that collects the following lines as
    its trace; a non-opening tier only produces a standalone top-level entry.
    """

    pattern: re.Pattern[str]
    opens_trace: bool = True


@dataclass(frozen=True)
class DialectRules:
    tiers: tuple[HeaderTier, ...] = ()
    # Applied to trace lines to pick up their own stamp and message.
    continuation: re.Pattern[str] | None = None
    has_levels: bool = False
    has_stamps: bool = False


LARAVEL_HEADER_RE = re.compile(r"^\[(?P<stamp>.+?)\] .+?\.(?P<level>[A-Z]+): (?P<message>.*)$")
PHP_ERROR_RE = re.compile(r"^\[(?P<stamp>.+?)\] PHP (?P<level>.+?): (?P<message>.*)$")
PHP_NORMAL_RE = re.compile(r"^\[(?P<stamp>.+?)\] PHP (?P<message>.*)$")

DIALECT_RULES: dict[Dialect, DialectRules] = {
    Dialect.PLAINTEXT: DialectRules(),
    Dialect.LARAVEL: DialectRules(
        tiers=(HeaderTier(LARAVEL_HEADER_RE),),
        has_levels=True,
        has_stamps=True,
    ),
    Dialect.PHPLOG: DialectRules(
        tiers=(
            HeaderTier(PHP_ERROR_RE),
            HeaderTier(PHP_NORMAL_RE, opens_trace=False),
        ),
        continuation=PHP_NORMAL_RE,
        has_levels=True,
        has_stamps=True,
    ),
}


def resolve_dialect(
    file_name: str,
    dialect_rules: Iterable[tuple[str | re.Pattern[str], Dialect | str]],
    default_dialect: Dialect | str = Dialect.PLAINTEXT,
) -> Dialect:
    """Return the dialect of the first rule whose pattern occurs in ``file_name``.

    Rules are checked in order, so specific patterns must come before
    general ones.
    """
    for pattern, dialect in dialect_rules:
        if re.search(pattern, file_name):
            return Dialect(dialect)
    return Dialect(default_dialect)
