import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.http import auth_router, chat_router, health_router
from app.core.config import Settings, get_settings
from app.core.exceptions import register_exception_handlers
from app.core.rate_limit import RateLimitMiddleware, SlidingWindowLimiter
from app.core.security import PasswordHasher, TokenSigner
from app.domains.chats.services import ChatService
from app.domains.identity.services import IdentityService
from app.infrastructure.completion import CompletionGateway, OpenAICompletionGateway
from app.infrastructure.storage import ChatStore, JsonFileStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ChatStore] = None,
    gateway: Optional[CompletionGateway] = None,
) -> FastAPI:
    """Build the application; store and gateway can be swapped, e.g. in tests"""
    settings = settings or get_settings()
    store = store or JsonFileStore(settings.database_path)
    gateway = gateway or OpenAICompletionGateway.from_settings(settings)

    app = FastAPI(
        title="Lucky.ia",
        description="Chat backend with JSON storage and an LLM completion proxy",
        version="1.0.0"
    )

    app.state.settings = settings
    app.state.store = store
    app.state.identity_service = IdentityService(
        store,
        PasswordHasher(settings.bcrypt_rounds),
        TokenSigner.from_settings(settings),
    )
    app.state.chat_service = ChatService.from_settings(store, gateway, settings)

    register_exception_handlers(app)

    app.add_middleware(
        RateLimitMiddleware,
        limiter=SlidingWindowLimiter(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_ms / 1000,
        ),
    )
    # added last so it wraps the limiter and 429 responses keep CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(chat_router)

    # The chat UI is served from the same origin when it is shipped alongside
    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="frontend")

    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Lucky.ia backend (storage: {settings.database_path}) listening on port {settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
