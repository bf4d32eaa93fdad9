import logging
from pathlib import Path

import pytest

from hyperlog.core.logging_setup import setup_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        h.close()
        root.removeHandler(h)
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)


def test_setup_logging_writes_to_file(restore_root_logging, tmp_path: Path):
    logfile = tmp_path / "runtime" / "hyperlog.log"

    root = setup_logging("debug", str(logfile))
    logging.getLogger("hyperlog.core.window").debug("window_read path=x count=3")
    for h in root.handlers:
        h.flush()

    text = logfile.read_text(encoding="utf-8")
    assert "[INFO] [root] logging initialized" in text
    assert "[DEBUG] [hyperlog.core.window] window_read path=x count=3" in text


def test_setup_logging_replaces_handlers_on_reload(restore_root_logging, tmp_path: Path):
    logfile = tmp_path / "hyperlog.log"

    setup_logging("info", str(logfile))
    root = setup_logging("warning", str(logfile))

    assert len(root.handlers) == 2
    assert root.level == logging.WARNING
    assert logging.getLogger("uvicorn.access").propagate is True
    assert logging.getLogger("uvicorn.access").handlers == []
