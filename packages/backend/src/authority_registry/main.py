"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database engine). Middleware,
CORS, the error handler and routers are all registered here, each concern
living in its own module.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authority_registry import __version__
from authority_registry.api import api_router
from authority_registry.config import settings
from authority_registry.errors import AuthorityError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "authority_registry.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        forbidden_authorities=sorted(settings.forbidden_authority_names),
    )

    yield

    logger.info("authority_registry.shutdown")

    from authority_registry.db.engine import engine
    await engine.dispose()


async def handle_authority_error(request: Request, exc: AuthorityError) -> JSONResponse:
    """Render service-layer failures without leaking store details."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Authority Registry",
        description="Person authority records for a digital repository",
        version=__version__,
        lifespan=lifespan,
    )

    # Request flow: RequestId → CORS → handler
    from authority_registry.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(AuthorityError, handle_authority_error)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: authority_registry.main:app)
app = create_app()
