from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

from hyperlog.core.config import AppConfig
from hyperlog.web import api as api_module
from hyperlog.web import pages as pages_module


def _build_client() -> TestClient:
    app = FastAPI()
    app.include_router(pages_module.router)
    app.include_router(api_module.router)
    return TestClient(app)


def _use_log_dir(monkeypatch, tmp_path: Path) -> AppConfig:
    cfg = AppConfig()
    cfg.logs.dir = str(tmp_path)
    cfg.viewer.dir_poll_ms = 2500
    monkeypatch.setattr(api_module, "load_config", lambda: cfg)
    monkeypatch.setattr(pages_module, "load_config", lambda: cfg)
    return cfg


def _write_laravel(tmp_path: Path) -> None:
    (tmp_path / "laravel.log").write_text(
        "\n".join(
            [
                "[2020-01-01 00:00:00] local.ERROR: boom",
                "#0 foo()",
                "#1 bar()",
                "[2020-01-01 00:00:01] local.INFO: next",
            ]
        )
        + "\n",
        encoding="utf-8",
    )


def test_healthz_returns_alive():
    client = _build_client()
    resp = client.get("/api/healthz")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["ok"] is True
    assert payload["status"] == "alive"
    assert "checked_at" in payload


def test_files_lists_matching_logs(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)
    _write_laravel(tmp_path)
    (tmp_path / "readme.md").write_text("x", encoding="utf-8")

    resp = _build_client().get("/api/files")

    assert resp.status_code == 200
    assert resp.json() == {"log_dir": str(tmp_path), "count": 1, "files": ["laravel.log"]}


def test_log_returns_reconstructed_entries(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)
    _write_laravel(tmp_path)

    resp = _build_client().get("/api/log", params={"file": "laravel.log"})

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["dialect"] == "laravel"
    assert payload["start"] == 1
    assert payload["end"] == 4
    assert list(payload["entries"]) == ["1", "4"]
    assert payload["entries"]["1"]["level"] == "error"
    assert [item["number"] for item in payload["entries"]["1"]["trace"]] == [2, 3]
    assert payload["entries"]["1"]["expanded"] is False


def test_log_rejects_invalid_name(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)

    resp = _build_client().get("/api/log", params={"file": "../config.log"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid_file_name"


def test_log_missing_file_is_404(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)

    resp = _build_client().get("/api/log", params={"file": "gone.log"})

    assert resp.status_code == 404
    assert resp.json()["detail"] == "log_not_found"


def test_query_protocol_echoes_request(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)
    _write_laravel(tmp_path)
    client = _build_client()

    files = client.post("/api/query", json={"wants": "filenames"})
    assert files.status_code == 200
    assert files.json()["wants"] == "filenames"
    assert files.json()["files"] == ["laravel.log"]

    log = client.post("/api/query", json={"wants": "log", "file": "laravel.log", "start": "4", "end": None})
    assert log.status_code == 200
    payload = log.json()
    assert payload["wants"] == "log"
    assert payload["start"] == 4
    assert payload["end"] == 4
    assert list(payload["entries"]) == ["4"]


def test_query_protocol_errors(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)
    client = _build_client()

    bad_name = client.post("/api/query", json={"wants": "log", "file": ".secret"})
    assert bad_name.status_code == 400
    assert bad_name.json()["error"] == "invalid_file_name"

    unknown = client.post("/api/query", json={"wants": "coffee"})
    assert unknown.status_code == 400
    assert unknown.json() == {"wants": "coffee", "error": "unknown_request"}


def test_index_page_embeds_poll_rates(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)

    resp = _build_client().get("/")

    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert "const dirPollMs = 2500;" in resp.text
    assert "const logPollMs = 100000;" in resp.text


def test_build_app_serves_page_and_api_routes(monkeypatch, tmp_path: Path):
    from hyperlog.web.main import build_app

    _use_log_dir(monkeypatch, tmp_path)
    client = TestClient(build_app())

    for path in ("/", "/view", "/api/healthz", "/api/files"):
        assert client.get(path).status_code == 200, path


def test_query_protocol_ignores_non_finite_line_numbers(monkeypatch, tmp_path: Path):
    _use_log_dir(monkeypatch, tmp_path)
    _write_laravel(tmp_path)
    client = _build_client()

    for raw in ("1e400", "-1e400", "NaN"):
        resp = client.post(
            "/api/query",
            content=f'{{"wants": "log", "file": "laravel.log", "start": {raw}, "end": {raw}}}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 200, raw
        payload = resp.json()
        assert payload["start"] == 1
        assert payload["end"] == 4
        assert list(payload["entries"]) == ["1", "4"]
