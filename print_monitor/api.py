import threading

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException

from print_monitor import env
from print_monitor.pipeline import JobPipeline
from print_monitor.watcher import DirectoryWatcher


def create_app(pipeline: JobPipeline, watcher: DirectoryWatcher | None = None,
               token: str | None = None) -> FastAPI:
    token = env.STATUS_TOKEN if token is None else token
    app = FastAPI(title="Print Monitor")

    def verify_token(x_agent_token: str | None = Header(None)):
        if token and x_agent_token != token:
            raise HTTPException(status_code=401, detail="Invalid agent token")

    @app.get("/health")
    def health():
        # público: sin datos de trabajos
        return {
            "ok": True,
            "agent_id": env.AGENT_ID,
            "printer": pipeline.printer,
            "watching": bool(watcher and watcher.watching),
        }

    @app.get("/status", dependencies=[Depends(verify_token)])
    def status(limit: int = 20):
        return {
            "ok": True,
            "agent_id": env.AGENT_ID,
            "printer": pipeline.printer,
            **pipeline.counters(),
            "recent": [r.model_dump(mode="json") for r in pipeline.recent(limit)],
        }

    return app


class StatusServer:
    """uvicorn in a daemon thread so it never blocks the watcher."""

    def __init__(self, app: FastAPI, port: int, host: str = "127.0.0.1"):
        self.server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
        self.thread = threading.Thread(target=self.server.run, name="status-api", daemon=True)

    def start(self):
        self.thread.start()

    def stop(self):
        self.server.should_exit = True
        self.thread.join(timeout=5)
