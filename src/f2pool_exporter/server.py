"""
HTTP exposition server.

Routes:
  GET {metrics_path}  -> one collection pass, Prometheus text format
  GET /health         -> liveness, never touches the upstream API
  GET anything else   -> 301 to {metrics_path}
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from f2pool_exporter import __version__
from f2pool_exporter.api_client import PoolAPIClient
from f2pool_exporter.collector import PoolCollector
from f2pool_exporter.settings import ExporterConfig
from f2pool_exporter.utils.exceptions import CollectionError

FatalHandler = Callable[[CollectionError], None]


def create_app(
    config: ExporterConfig,
    *,
    client: Optional[PoolAPIClient] = None,
    collector: Optional[PoolCollector] = None,
    on_fatal: Optional[FatalHandler] = None,
) -> FastAPI:
    if collector is None:
        if client is None:
            client = PoolAPIClient(config.api_url, timeout_s=config.request_timeout, verify_tls=config.verify_tls)
        collector = PoolCollector(client, config.resources, error_policy=config.error_policy)
    client = collector.client

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await client.close()

    app = FastAPI(
        title="f2pool-exporter",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.collector = collector

    async def metrics() -> Response:
        try:
            collected = await collector.collect()
        except CollectionError as e:
            # Only raised under ErrorPolicy.EXIT
            logger.critical(f"Collection failed, stopping exporter: {e}")
            if on_fatal is not None:
                on_fatal(e)
            return PlainTextResponse(f"collection failed: {e}\n", status_code=500)
        return Response(content=generate_latest(collected), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(config.metrics_path, metrics, methods=["GET"])

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True, "version": __version__}

    if config.metrics_path != "/":

        # registered last so it only sees paths no other route matched
        @app.get("/{path:path}")
        async def redirect_to_metrics(path: str) -> RedirectResponse:
            return RedirectResponse(config.metrics_path, status_code=301)

    return app


def serve(config: ExporterConfig) -> int:
    """
    Blocking runner. Returns the process exit status: 1 when a fatal
    collection error stopped the server, 0 on a normal shutdown.
    """
    fatal: list[CollectionError] = []
    server: Optional[uvicorn.Server] = None

    def stop_on_fatal(error: CollectionError) -> None:
        fatal.append(error)
        if server is not None:
            server.should_exit = True

    app = create_app(config, on_fatal=stop_on_fatal)
    server = uvicorn.Server(uvicorn.Config(app, host=config.host, port=config.port, log_level="warning"))
    logger.info(f"Listening on {config.listen_address}")
    server.run()
    return 1 if fatal else 0
