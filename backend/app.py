import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import setproctitle

import settings
from brotli_asgi import BrotliMiddleware
from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routes.auth_route import router as auth_router
from routes.blocks_route import router as blocks_router
from routes.friend_requests_route import router as friend_requests_router
from routes.friends_route import router as friends_router
from routes.live_route import router as live_router
from routes.messages_route import router as messages_router
from services.errors import AppError
from services.presence import PresenceRegistry
from starlette.middleware import Middleware

from utils import get_version, setup_logs

logger = logging.getLogger("pingcode.main")
setup_logs()
setproctitle.setproctitle("PingCode API")


def update_database():  # pragma: no cover
    """Init the DB or run the Alembic migrations"""
    import alembic.config

    if not Path("alembic.ini").is_file():
        os.chdir(settings.BACKEND_DIR)

    try:
        alembic.config.main(
            argv=[
                "--raiseerr",
                "upgrade",
                "head",
            ]
        )
    except Exception as e:
        logger.exception(f"Cannot run DB migrations: {e}")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app"""
    logger.debug("Starting...")
    update_database()
    # nobody is online after a restart, clients reconnect
    app.state.presence = PresenceRegistry()
    yield
    logger.debug("Closing app")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400, content={"detail": jsonable_encoder(exc.errors())}
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""

    app = FastAPI(
        title="PingCode",
        description="Direct messages between friends",
        version=get_version(),
        middleware=[
            Middleware(BrotliMiddleware, minimum_size=1000),
            Middleware(
                CORSMiddleware,
                allow_origins=[settings.CLIENT_URL],
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            ),
        ],
        swagger_ui_parameters={
            "defaultModelsExpandDepth": 0,
        },  # collapse the swagger schema
        exception_handlers={
            AppError: app_error_handler,
            RequestValidationError: request_validation_handler,
            Exception: unexpected_error_handler,
        },
        lifespan=app_lifespan,
    )

    # Mount routers
    api_router = APIRouter()
    api_router.include_router(auth_router, tags=["users"])
    api_router.include_router(friend_requests_router, tags=["friendship"])
    api_router.include_router(friends_router, tags=["friendship"])
    api_router.include_router(messages_router, tags=["messages"])
    api_router.include_router(blocks_router, tags=["blocks"])
    api_router.include_router(live_router)
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app
