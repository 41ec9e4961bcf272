# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
FastAPI application for the Agent Memories HTTP interface.

Serves the REST API and mounts the MCP server (streamable HTTP) at /mcp,
both behind bearer-token authentication.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .. import __version__
from .. import mcp_server
from ..errors import SearchProviderError, StoreError, TransportError, ValidationError
from .api.health import router as health_router
from .api.memories import router as memories_router
from .auth import BearerAuthMiddleware
from .dependencies import create_context_for_web, set_memory_context

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Agent Memories HTTP interface...")
    try:
        context = await create_context_for_web()
    except Exception as e:
        logger.error(f"Failed to initialize memory context: {e}")
        raise

    set_memory_context(context)
    mcp_server.set_memory_context(context)

    async with app.state.mcp_server.session_manager.run():
        logger.info("MCP session manager started")
        yield

    # Shutdown
    logger.info("Shutting down Agent Memories HTTP interface...")
    set_memory_context(None)
    mcp_server.set_memory_context(None)
    await context.close()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Map service errors to {"error": message} responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StoreError)
    @app.exception_handler(TransportError)
    @app.exception_handler(SearchProviderError)
    async def upstream_error_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Agent Memories",
        description="HTTP REST API and MCP interface for agent memory storage and semantic search",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc"
    )

    app.add_middleware(BearerAuthMiddleware)
    register_exception_handlers(app)

    # Include API routers
    app.include_router(health_router, tags=["health"])
    app.include_router(memories_router)

    # MCP over streamable HTTP, one server per app
    app.state.mcp_server = mcp_server.create_mcp_server()
    app.mount("/mcp", app.state.mcp_server.streamable_http_app())

    return app


# Create the application instance
app = create_app()
