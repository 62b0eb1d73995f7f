from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from services.responder import VacationResponder

LOGGER = logging.getLogger(__name__)


def create_app(responder: VacationResponder) -> FastAPI:
    """HTTP trigger for the responder. Responses never include credentials."""

    app = FastAPI(title="Gmail Vacation Responder")

    @app.get("/")
    def start_responder():
        try:
            started = responder.start()
        except Exception:  # noqa: BLE001
            LOGGER.exception("Failed to start vacation responder")
            return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
        return {"status": "started" if started else "already_running"}

    @app.get("/status")
    def responder_status():
        return responder.status()

    @app.post("/stop")
    def stop_responder():
        stopped = responder.stop()
        return {"status": "stopped" if stopped else "stopping"}

    @app.on_event("shutdown")
    def _shutdown() -> None:
        responder.stop()

    return app
