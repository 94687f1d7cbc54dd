# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/app.py
"""
FastAPI application: routers under /api, JSON error envelope, CORS.

Endpoints are plain ``def`` functions; FastAPI runs them in its threadpool,
so blocking govc/terraform subprocesses never stall the event loop.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config.app_config import AppConfig
from ..core.exceptions import (
    Fatal,
    GovcError,
    IntegrationError,
    TerraSphereError,
    VMwareError,
)
from ..core.logger import Log
from ..storage.workspaces import WorkspaceNotFound
from ..vmware.vsphere.errors import ErrorKind, classify_error
from .context import AppContext
from .routers import aap, satellite, settings, terraform, vsphere, vsphere_infra, workspaces

API_PREFIX = "/api"

_KIND_STATUS = {
    ErrorKind.BINARY_UNAVAILABLE: 503,
    ErrorKind.AUTH: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NETWORK: 502,
    ErrorKind.UNKNOWN: 502,
}


def status_for(exc: TerraSphereError) -> int:
    if isinstance(exc, WorkspaceNotFound):
        return 404
    if isinstance(exc, GovcError):
        return _KIND_STATUS[classify_error(exc)]
    if isinstance(exc, VMwareError):
        try:
            return _KIND_STATUS[ErrorKind((exc.context or {}).get("kind"))]
        except ValueError:
            return 502
    if isinstance(exc, IntegrationError):
        if exc.status_code in (400, 401, 403, 404):
            return exc.status_code
        return 502
    if isinstance(exc, Fatal):
        return 503 if exc.code == 127 else 500
    return {2: 400, 4: 404}.get(exc.code, 500)


def error_body(exc: TerraSphereError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": exc.msg}
    if isinstance(exc, GovcError):
        body["kind"] = classify_error(exc).value
    elif isinstance(exc, VMwareError) and (exc.context or {}).get("kind"):
        body["kind"] = exc.context["kind"]
    return body


def create_app(config: Optional[AppConfig] = None, *, ctx: Optional[AppContext] = None) -> FastAPI:
    config = config or (ctx.config if ctx else AppConfig())
    ctx = ctx or AppContext.build(config)
    log = ctx.logger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("terrasphere %s starting (govc=%s mode=%s)", __version__, config.govc_path, config.govc_mode)
        if not ctx.executor.available():
            Log.warn_once(log, "govc-missing", f"govc not found at {config.govc_path}; govc-backed endpoints will return 503")
        yield
        log.info("terrasphere shutting down")

    app = FastAPI(title="terrasphere", version=__version__, lifespan=lifespan)
    app.state.ctx = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    @app.get(f"{API_PREFIX}/health")
    def health() -> Dict[str, Any]:
        return {"status": "healthy", "version": __version__, "govc": ctx.executor.available()}

    for r in (vsphere, vsphere_infra, terraform, settings, workspaces, satellite, aap):
        app.include_router(r.router, prefix=API_PREFIX)

    @app.exception_handler(TerraSphereError)
    async def project_error_handler(request: Request, exc: TerraSphereError) -> JSONResponse:
        status = status_for(exc)
        lvl = logging.WARNING if status < 500 else logging.ERROR
        log.log(lvl, "%s %s -> %s: %s", request.method, request.url.path, status, exc.user_message(include_context=True))
        return JSONResponse(status_code=status, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "detail": str(exc) if config.debug else None,
            },
        )

    return app
