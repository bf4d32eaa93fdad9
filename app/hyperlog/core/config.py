from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from hyperlog.core.dialects import Dialect
from hyperlog.core.window import DEFAULT_WINDOW_SIZE

logger = logging.getLogger(__name__)


class DialectRule(BaseModel):
    pattern: str
    dialect: Dialect

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid dialect pattern {value!r}: {exc}") from exc
        return value


class LogsConfig(BaseModel):
    dir: str = "./var/log"
    # Only names matching this are listed and served.
    file_regex: str = r"^[^.].+\.log$"
    default_num_lines: int = Field(default=DEFAULT_WINDOW_SIZE, ge=1, le=100000)
    default_dialect: Dialect = Dialect.PLAINTEXT
    # First match wins, list specific patterns first.
    dialect_rules: list[DialectRule] = Field(default_factory=lambda: [
        DialectRule(pattern=r"laravel\.log", dialect=Dialect.LARAVEL),
        DialectRule(pattern=r"php.*\.log", dialect=Dialect.PHPLOG),
    ])

    @field_validator("file_regex")
    @classmethod
    def _file_regex_compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid file_regex {value!r}: {exc}") from exc
        return value

    def rule_pairs(self) -> list[tuple[str, Dialect]]:
        return [(rule.pattern, rule.dialect) for rule in self.dialect_rules]


class ViewerConfig(BaseModel):
    # Browser poll intervals in milliseconds.
    dir_poll_ms: int = Field(default=1000, ge=100)
    log_poll_ms: int = Field(default=100000, ge=100)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "runtime/hyperlog.log"


class AppConfig(BaseModel):
    logs: LogsConfig = Field(default_factory=LogsConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Web UI
    web_bind_host: str = "127.0.0.1"
    web_port: int = 8766


PROJECT_ROOT = Path(os.environ.get("HYPERLOG_HOME") or Path.cwd())
DEFAULT_CONFIG_PATH = Path(os.environ.get("HYPERLOG_CONFIG") or PROJECT_ROOT / "config.yaml")
DEFAULT_CONFIG_TEMPLATE_PATH = PROJECT_ROOT / "config.yaml.example"


def _dump_yaml(cfg: AppConfig) -> str:
    import yaml

    return yaml.safe_dump(cfg.model_dump(mode="json"), allow_unicode=True, sort_keys=False)


def ensure_runtime_dirs(cfg: AppConfig):
    Path(cfg.logging.file).parent.mkdir(parents=True, exist_ok=True)


def _parse(text: str) -> AppConfig:
    import yaml

    return AppConfig.model_validate(yaml.safe_load(text) or {})


def _seed_config() -> tuple[AppConfig, str]:
    """Config for a first run: the example template if it is valid, else defaults."""
    import yaml

    if DEFAULT_CONFIG_TEMPLATE_PATH.exists():
        text = DEFAULT_CONFIG_TEMPLATE_PATH.read_text(encoding="utf-8")
        try:
            return _parse(text), text
        except (yaml.YAMLError, ValidationError) as exc:
            logger.warning("config_template_invalid path=%s error=%s", DEFAULT_CONFIG_TEMPLATE_PATH, exc)
    cfg = AppConfig()
    return cfg, _dump_yaml(cfg)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load ``path``, writing a seeded copy first when it does not exist yet.

    Errors in an existing file propagate.
    """
    if path.exists():
        cfg = _parse(path.read_text(encoding="utf-8"))
    else:
        cfg, text = _seed_config()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.info("config_created path=%s", path)
    ensure_runtime_dirs(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path = DEFAULT_CONFIG_PATH):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dump_yaml(cfg), encoding="utf-8")
