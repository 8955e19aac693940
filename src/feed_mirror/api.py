"""HTTP trigger for on-demand imports.

Exposes ``/autoblogapi/v1/import`` (GET or POST), which runs the same
import routine as the poller and reports success or the run-level error.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from feed_mirror.config import Settings
from feed_mirror.database import SqliteStore
from feed_mirror.errors import ConfigurationError, FetchError, FetchStatusError
from feed_mirror.importer import Importer
from feed_mirror.poller import start_polling

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def build_http_client(settings: Settings) -> httpx.Client:
    return httpx.Client(
        timeout=settings.http_timeout,
        headers={"User-Agent": f"feed-mirror/{API_VERSION}"},
    )


def create_app(
    settings: Settings | None = None,
    importer: Importer | None = None,
    start_poller: bool = True,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Runtime settings. Read from the environment if omitted.
        importer: Pre-built importer. When omitted one is built on startup
            from settings, with its own SQLite store and HTTP client.
        start_poller: Schedule the recurring import alongside the API.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = None
        client = None
        if importer is None:
            store = SqliteStore(settings.db_path, settings.uploads_dir, settings.uploads_url)
            store.connect()
            client = build_http_client(settings)
            app.state.importer = Importer(
                store,
                client,
                source_url=settings.source_url,
                site_timezone=settings.timezone,
            )
        else:
            app.state.importer = importer

        poller_task = None
        if start_poller and settings.source_url:
            poller_task = asyncio.create_task(
                start_polling(app.state.importer, settings.poll_interval)
            )
        elif start_poller:
            logger.warning("MIRROR_SOURCE_URL is not defined, scheduled imports disabled")

        try:
            yield
        finally:
            if poller_task is not None:
                poller_task.cancel()
                try:
                    await poller_task
                except asyncio.CancelledError:
                    pass
            if client is not None:
                client.close()
            if store is not None:
                store.close()

    app = FastAPI(title="Feed Mirror", version=API_VERSION, lifespan=lifespan)

    @app.get("/health")
    def health():
        return {"status": "ok", "source_configured": bool(settings.source_url)}

    @app.api_route("/autoblogapi/v1/import", methods=["GET", "POST"])
    def run_import(request: Request):
        """Run an import synchronously and report the outcome."""
        try:
            summary = request.app.state.importer.run()
        except ConfigurationError as e:
            logger.error("Import requested without configuration: %s", e)
            return JSONResponse(
                status_code=500,
                content={"code": "autoblogapi_missing_url", "message": str(e)},
            )
        except FetchError as e:
            logger.warning("Import aborted: %s", e)
            content = {"code": e.code, "message": str(e)}
            if isinstance(e, FetchStatusError):
                content["data"] = {"status": e.status_code}
            return JSONResponse(status_code=502, content=content)

        return {"success": True, **summary.as_dict()}

    return app
