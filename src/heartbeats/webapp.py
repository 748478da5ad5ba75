# ABOUTME: FastAPI application exposing ping and status endpoints
# ABOUTME: Thin adapter over Runtime; also owns startup/shutdown of the config watcher

import logging
import random
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from . import __version__
from .config import Settings
from .errors import NotFoundError
from .heartbeat import HeartbeatSnapshot, time_ago
from .runtime import Runtime
from .watcher import ConfigWatcher

logger = logging.getLogger(__name__)

OutputFormat = Literal["json", "txt"]


def format_snapshot(snapshot: HeartbeatSnapshot) -> str:
    """Plain text rendering of one heartbeat."""
    return (
        f"Name: {snapshot.name}\n"
        f"Status: {snapshot.status.value}\n"
        f"LastPing: {time_ago(snapshot.last_ping)}"
    )


def create_app(settings: Settings, runtime: Runtime | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    runtime = runtime or Runtime(
        secret_prefix=settings.secret_prefix,
        send_timeout=settings.send_timeout,
    )
    watcher: ConfigWatcher | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal watcher
        # Startup: an invalid config at boot is fatal
        if not runtime.loaded:
            runtime.load_config(settings.config_path)

        watcher = ConfigWatcher(runtime, settings.config_path, debounce=settings.watch_debounce)
        watcher.start()

        logger.info("Heartbeats started successfully")
        yield
        # Shutdown
        await watcher.stop()
        await runtime.shutdown()
        logger.info("Heartbeats stopped")

    app = FastAPI(
        title="Heartbeats",
        description="Waits for heartbeats and notifies if they are missing",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.get("/")
    async def home(output: OutputFormat = "json"):
        """Welcome message."""
        message = f"Welcome to the Heartbeat Server.\nVersion: {__version__}"
        if output == "txt":
            return PlainTextResponse(f"Message: {message}")
        return {"message": message}

    @app.get("/healthz")
    async def healthz(output: OutputFormat = "json"):
        """Health check endpoint."""
        if output == "txt":
            return PlainTextResponse("ok")
        return {"status": "ok", "error": ""}

    @app.get("/ping")
    async def ping_help(output: OutputFormat = "json"):
        """Explain how to ping."""
        statuses = runtime.list_statuses()
        example = random.choice(statuses).name if statuses else "<heartbeat>"
        usage = (
            "you must specify the name of the wanted heartbeat in the URL.\n"
            f"Example: {settings.site_root}/ping/{example}"
        )
        if output == "txt":
            return PlainTextResponse(usage)
        return {"status": "ok", "usage": usage}

    @app.api_route("/ping/{name}", methods=["GET", "POST"])
    async def ping(name: str, output: OutputFormat = "json"):
        """Record a ping for a heartbeat."""
        try:
            runtime.record_ping(name)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        if output == "txt":
            return PlainTextResponse("ok")
        return {"status": "ok", "error": ""}

    @app.get("/status")
    async def list_statuses(output: OutputFormat = "json"):
        """Status of all heartbeats."""
        statuses = runtime.list_statuses()
        if output == "txt":
            return PlainTextResponse("\n".join(format_snapshot(s) for s in statuses))
        return [s.model_dump(mode="json") for s in statuses]

    @app.get("/status/{name}")
    async def get_status(name: str, output: OutputFormat = "json"):
        """Status of one heartbeat."""
        try:
            snapshot = runtime.get_status(name)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        if output == "txt":
            return PlainTextResponse(format_snapshot(snapshot))
        return snapshot.model_dump(mode="json")

    return app
