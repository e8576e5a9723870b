"""FastAPI transport adapter over the query engine and allow-list manager."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..engine import AllowlistManager, QueryEngine, parse_query_params
from ..errors import ValidationError
from ..logging_conf import component_logger
from .schemas import (
    AllowlistRequest,
    AllowlistResponse,
    ErrorResponse,
    ExitNodeOut,
    ExitNodesResponse,
    MessageResponse,
)


def create_app(
    query_engine: QueryEngine,
    allowlist: AllowlistManager,
    *,
    title: str = "exit-registry",
    version: str = "0.1.0",
) -> FastAPI:
    """Create the FastAPI app exposing exit-node queries and the allow-list."""

    app = FastAPI(title=title, version=version)
    logger = component_logger("api")

    @app.exception_handler(ValidationError)
    async def _validation_error(_request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("query_rejected", field=exc.field, error=exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _request_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": str(message)})

    @app.get(
        "/tor-exit-nodes",
        response_model=ExitNodesResponse,
        responses={400: {"model": ErrorResponse}},
    )
    def get_exit_nodes(
        country: str | None = None,
        starttime: str | None = None,
        endtime: str | None = None,
        count: str | None = None,
    ) -> ExitNodesResponse:
        criteria = parse_query_params(country, starttime, endtime, count)
        records = query_engine.query(criteria)
        return ExitNodesResponse(tor_exit_nodes=[ExitNodeOut.from_record(r) for r in records])

    @app.post("/allowlist", response_model=MessageResponse, responses={400: {"model": ErrorResponse}})
    def add_to_allowlist(payload: AllowlistRequest) -> MessageResponse:
        allowlist.add(payload.ip_addresses)
        return MessageResponse(message="IP addresses added to the allowlist")

    @app.delete("/allowlist", response_model=MessageResponse, responses={400: {"model": ErrorResponse}})
    def remove_from_allowlist(payload: AllowlistRequest) -> MessageResponse:
        allowlist.remove(payload.ip_addresses)
        return MessageResponse(message="IP addresses removed from the allowlist")

    @app.get("/allowlist", response_model=AllowlistResponse)
    def get_allowlist() -> AllowlistResponse:
        return AllowlistResponse(allowlist=allowlist.list())

    return app


def run_app(
    app: FastAPI,
    *,
    host: str = "0.0.0.0",
    port: int = 8080,
    log_level: str = "info",
) -> None:
    """Run one FastAPI app through uvicorn."""
    uvicorn.run(app, host=host, port=port, log_level=log_level)


__all__ = ["create_app", "run_app"]
