"""Local control API for AquaVoice: status, runtime settings, start/stop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import TYPE_CHECKING

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from aquavoice.pipeline import Command
from aquavoice.status import PipelineState, StatusEvent

if TYPE_CHECKING:
    from aquavoice.config import ControlConfig, RuntimeSettings
    from aquavoice.pipeline import CommandChannel
    from aquavoice.types import SettingsResponse, StatusResponse

logger = logging.getLogger(__name__)


class SettingsUpdate(BaseModel):
    api_key: str | None = None
    model: str | None = None


class StatusHub:
    """
    Remembers the latest status and forwards events to WebSocket subscribers.

    ``notify`` is called from the pipeline thread; each subscriber queue lives
    on an event loop and is fed with ``call_soon_threadsafe``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = StatusEvent(PipelineState.IDLE)
        self._subscribers: dict[asyncio.Queue[str], asyncio.AbstractEventLoop] = {}

    @property
    def last(self) -> StatusEvent:
        with self._lock:
            return self._last

    def notify(self, event: StatusEvent) -> None:
        with self._lock:
            self._last = event
            subscribers = list(self._subscribers.items())
        for queue, loop in subscribers:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, event.wire)
            except RuntimeError:
                # loop already closed
                self.unsubscribe(queue)

    def subscribe(self) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        with self._lock:
            self._subscribers[queue] = asyncio.get_running_loop()
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        with self._lock:
            self._subscribers.pop(queue, None)


def create_app(
    settings: "RuntimeSettings",
    channel: "CommandChannel",
    hub: StatusHub,
) -> FastAPI:
    app = FastAPI(
        title="AquaVoice Control API",
        description="Local control surface for the push-to-talk dictation pipeline",
        version="1.0.0",
    )

    def settings_payload() -> "SettingsResponse":
        api_key, model = settings.snapshot()
        return {"model": model, "api_key_set": bool(api_key)}

    @app.get("/health")
    async def health_check():
        return JSONResponse({"status": "healthy"})

    @app.get("/status")
    async def get_status():
        event = hub.last
        payload: "StatusResponse" = {
            "status": event.state.value,
            "detail": event.detail,
            "wire": event.wire,
        }
        return JSONResponse(payload)

    @app.get("/settings")
    async def get_settings():
        return JSONResponse(settings_payload())

    @app.put("/settings")
    async def update_settings(update: SettingsUpdate):
        settings.update(api_key=update.api_key, model=update.model)
        return JSONResponse(settings_payload())

    @app.post("/recording/start")
    async def start_recording():
        await asyncio.to_thread(channel.send, Command.START)
        return JSONResponse({"queued": Command.START.value}, status_code=202)

    @app.post("/recording/stop")
    async def stop_recording():
        await asyncio.to_thread(channel.send, Command.STOP)
        return JSONResponse({"queued": Command.STOP.value}, status_code=202)

    @app.websocket("/ws/status")
    async def websocket_status(websocket: WebSocket):
        client_id = id(websocket)
        queue = hub.subscribe()
        await websocket.accept()
        logger.info("Status client %s connected", client_id)

        async def pump() -> None:
            while True:
                wire = await queue.get()
                await websocket.send_text(wire)

        pump_task = asyncio.create_task(pump())
        try:
            while True:
                message = await websocket.receive()
                if message.get("type") == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        finally:
            pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await pump_task
            hub.unsubscribe(queue)
            logger.info("Status client %s disconnected", client_id)

    return app


class ControlServer:
    """Runs the control API with uvicorn on a background thread."""

    def __init__(self, app: FastAPI, config: "ControlConfig") -> None:
        import uvicorn

        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.host,
                port=config.port,
                log_level="warning",
            )
        )
        self._thread: threading.Thread | None = None
        self._address = f"http://{config.host}:{config.port}"

    @property
    def address(self) -> str:
        return self._address

    def start(self) -> None:
        self._thread = threading.Thread(target=self._server.run, name="control-api", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._server.should_exit = True
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
