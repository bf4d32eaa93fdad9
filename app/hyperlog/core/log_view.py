from __future__ import annotations

import logging
import re
from pathlib import Path

from hyperlog.core.config import AppConfig
from hyperlog.core.dialects import Dialect, resolve_dialect
from hyperlog.core.entries import reconstruct
from hyperlog.core.window import read_window

logger = logging.getLogger(__name__)


class InvalidFileName(ValueError):
    pass


def list_log_files(log_dir: str, file_regex: str) -> list[str]:
    root = Path(log_dir)
    try:
        names = sorted(p.name for p in root.iterdir() if p.is_file())
    except FileNotFoundError:
        logger.warning("log_dir_missing dir=%s", log_dir)
        return []
    pattern = re.compile(file_regex)
    return [name for name in names if pattern.search(name)]


def resolve_log_path(log_dir: str, file_name: str, file_regex: str) -> Path:
    """Map a client-supplied file name to a path inside ``log_dir``.

    Raises ``InvalidFileName`` for anything that is not a bare, allow-listed
    name of an entry directly under ``log_dir``.
    """
    name = (file_name or "").strip()
    if not name or "/" in name or "\\" in name or name in (".", "..") or "\x00" in name:
        logger.warning("log_file_rejected name=%r reason=not_bare_name", file_name)
        raise InvalidFileName("invalid_file_name")
    if not re.search(file_regex, name):
        logger.warning("log_file_rejected name=%r reason=regex", file_name)
        raise InvalidFileName("invalid_file_name")

    root = Path(log_dir).resolve(strict=False)
    path = (root / name).resolve(strict=False)
    if path.parent != root:
        logger.warning("log_file_rejected name=%r reason=outside_dir", file_name)
        raise InvalidFileName("invalid_file_name")
    return path


def dialect_for(cfg: AppConfig, file_name: str) -> Dialect:
    return resolve_dialect(file_name, cfg.logs.rule_pairs(), cfg.logs.default_dialect)


def build_log_payload(
    cfg: AppConfig,
    file_name: str,
    start: int | None = None,
    end: int | None = None,
) -> dict:
    """Read a window of ``file_name`` and reconstruct its entries.

    ``InvalidFileName`` and ``OSError`` propagate to the caller; no partial
    payload is ever returned.
    """
    path = resolve_log_path(cfg.logs.dir, file_name, cfg.logs.file_regex)
    dialect = dialect_for(cfg, file_name)
    window, lines = read_window(path, start, end, cfg.logs.default_num_lines)
    result = reconstruct(lines, dialect)
    return {
        "file": file_name,
        "dialect": dialect.value,
        "start": window.start,
        "end": window.end,
        "count": len(lines),
        **result.model_dump(),
    }
