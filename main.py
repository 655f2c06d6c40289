"""
FastAPI application entry point.
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.routes import chat as chat_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.services.chat_service import ChatHub
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging


# Logging is configured here, at the entry point
configure_logging()
logger = get_logger(__name__)


def create_app(hub: Optional[ChatHub] = None) -> FastAPI:
    """Build the application. ``hub`` lets callers share or pre-seed state."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.chat_hub = hub or ChatHub.create(
            max_messages=settings.chat.max_messages,
            guest_prefix=settings.chat.guest_prefix,
        )
        logger.info(
            "chat_hub_initialized",
            max_messages=app.state.chat_hub.messages.capacity,
        )
        yield
        logger.info("application_shutdown", online=len(app.state.chat_hub.presence))

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Single-room real-time chat hub",
    )

    # Middleware runs bottom-up: RequestID first so the access log sees request_id
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(chat_routes.router)

    @app.get("/", tags=["Root"])
    async def root():
        return success_response(
            data={"name": settings.PROJECT_NAME, "version": settings.VERSION},
            message="Welcome",
        )

    @app.get("/health", tags=["Health"])
    async def health_check():
        return success_response(data={"status": "healthy"}, message="OK")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
