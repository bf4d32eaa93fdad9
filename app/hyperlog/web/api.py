from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from hyperlog.core.config import load_config
from hyperlog.core.log_view import InvalidFileName, build_log_payload, list_log_files

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_line_no(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None
    return None


def _files_payload() -> dict:
    cfg = load_config()
    files = list_log_files(cfg.logs.dir, cfg.logs.file_regex)
    return {"log_dir": cfg.logs.dir, "count": len(files), "files": files}


def _log_payload(file: str, start: int | None, end: int | None) -> dict:
    cfg = load_config()
    try:
        return build_log_payload(cfg, file, start=start, end=end)
    except InvalidFileName:
        raise HTTPException(status_code=400, detail="invalid_file_name")
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="log_not_found")
    except OSError as e:
        logger.exception("log_read_failed file=%s", file)
        raise HTTPException(status_code=500, detail=f"log_read_failed: {e}")


@router.get("/healthz")
def healthz():
    return {
        "ok": True,
        "status": "alive",
        "checked_at": _now_iso(),
    }


@router.get("/files")
def get_files():
    return _files_payload()


@router.get("/log")
def get_log(file: str, start: int | None = None, end: int | None = None):
    return _log_payload(file, start, end)


@router.post("/query")
def query(payload: dict):
    """Single-endpoint protocol: ``{"wants": "filenames"}`` or ``{"wants": "log", ...}``.

    The response echoes the request fields merged with the data.
    """
    wants = payload.get("wants")
    if wants == "filenames":
        return {**payload, **_files_payload()}
    if wants == "log":
        file = payload.get("file")
        if not isinstance(file, str):
            return JSONResponse(status_code=400, content={**payload, "error": "invalid_file_name"})
        try:
            data = _log_payload(file, _as_line_no(payload.get("start")), _as_line_no(payload.get("end")))
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content={**payload, "error": e.detail})
        return {**payload, **data}
    return JSONResponse(status_code=400, content={**payload, "error": "unknown_request"})
