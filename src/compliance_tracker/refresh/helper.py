"""
Compliance Tracker — Refresh Helper

Mali pomoćni servis (default port 4321, API_PORT) koji pokreće
enrichment runner kao zaseban proces i prati napredak:

  POST /refresh-web  → 202 {ok: true}, proces radi u pozadini
  GET  /progress     → sadržaj progress datoteke ili {status: idle}

Progress datoteka (tmp/refresh-progress.json):
  start:  {status: running, progress: 0, startedAt}
  kraj:   {status: done|error, progress: 100, finishedAt, code}
"""

import json
import logging
import subprocess
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from compliance_tracker.core.config import TrackerConfig
from compliance_tracker.core.errors import DataLoadError
from compliance_tracker.storage.json_store import write_json_atomic

logger = logging.getLogger("compliance_tracker.refresh")

IDLE = {"status": "idle", "progress": 0}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def runner_command(config: TrackerConfig) -> List[str]:
    return [
        sys.executable, "-m", "compliance_tracker.enrichment.runner",
        "--data-file", str(config.compliance_file),
        "--progress-file", str(config.progress_file),
    ]


class RefreshJob:
    """Jedan refresh proces u isto vrijeme; watcher thread upisuje kraj."""

    def __init__(self, progress_file: Path, command: List[str], cwd: Optional[Path] = None):
        self.progress_file = Path(progress_file)
        self.command = command
        self.cwd = cwd
        self._process: Optional[subprocess.Popen] = None
        self._watcher: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> bool:
        """Pokreni proces. False ako prethodni još radi."""
        with self._lock:
            if self.running:
                return False
            write_json_atomic(self.progress_file,
                              {"status": "running", "progress": 0, "startedAt": _now_iso()})
            try:
                self._process = subprocess.Popen(self.command, cwd=self.cwd)
            except OSError as e:
                logger.error("Refresh could not start: %s", e)
                write_json_atomic(self.progress_file, {
                    "status": "error",
                    "progress": 100,
                    "finishedAt": _now_iso(),
                    "error": str(e),
                })
                raise
            logger.info("Refresh started: %s", " ".join(self.command))
            self._watcher = threading.Thread(target=self._watch, args=(self._process,),
                                             daemon=True)
            self._watcher.start()
            return True

    def _watch(self, process: subprocess.Popen):
        code = process.wait()
        write_json_atomic(self.progress_file, {
            "status": "done" if code == 0 else "error",
            "progress": 100,
            "finishedAt": _now_iso(),
            "code": code,
        })
        log = logger.info if code == 0 else logger.error
        log("Refresh finished with exit code %s", code)

    def wait(self, timeout: Optional[float] = None):
        if self._watcher is not None:
            self._watcher.join(timeout)

    def read_progress(self) -> Dict[str, Any]:
        try:
            return json.loads(self.progress_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return dict(IDLE)
        except (OSError, ValueError) as e:
            raise DataLoadError("Cannot read refresh progress", str(self.progress_file), e) from e


def create_helper_app(config: Optional[TrackerConfig] = None,
                      command: Optional[List[str]] = None) -> FastAPI:
    config = config or TrackerConfig.from_env()
    job = RefreshJob(config.progress_file, command or runner_command(config))

    app = FastAPI(title="Compliance Tracker Refresh Helper")
    app.state.job = job
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(DataLoadError)
    async def progress_error(request: Request, exc: DataLoadError):
        logger.error("%s", exc)
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.post("/refresh-web")
    async def refresh_web():
        try:
            started = job.start()
        except OSError as e:
            return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
        if not started:
            return JSONResponse(status_code=409,
                                content={"ok": False, "error": "Refresh already running"})
        return JSONResponse(status_code=202, content={"ok": True})

    @app.get("/progress")
    async def progress():
        return job.read_progress()

    return app


def main():
    import uvicorn

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    config = TrackerConfig.from_env()
    config.ensure_dirs()
    logger.info("[helper] listening on http://localhost:%d", config.helper_port)
    uvicorn.run(create_helper_app(config), host="127.0.0.1", port=config.helper_port)


if __name__ == "__main__":
    main()
