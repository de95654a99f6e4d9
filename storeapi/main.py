import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from storeapi import __version__
from storeapi.auth.jwt import TokenService
from storeapi.auth.router import router as auth_router
from storeapi.base_microservice import (
    BaseMicroservice,
    Settings,
    create_engine_for,
    create_session_factory,
    init_models,
    load_settings,
)
from storeapi.errors import register_exception_handlers
from storeapi.products.router import router as products_router

base_service = BaseMicroservice("main")


def create_app(settings: Optional[Settings] = None, engine: Optional[AsyncEngine] = None) -> FastAPI:
    """
    Build the API application.

    Settings are resolved once here and handed to the components that need
    them; nothing downstream reads configuration from the environment.
    """
    settings = settings or load_settings()
    engine = engine or create_engine_for(settings.database_url)
    logging.getLogger("storeapi").setLevel(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        base_service.log_event("service.startup", {"service": "main"})
        await init_models(engine)
        yield
        base_service.log_event("service.shutdown", {"service": "main"})
        await engine.dispose()

    app = FastAPI(
        title="Store API",
        description="User accounts and product catalog",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService(settings.jwt_secret, expires_in=settings.token_expires_in)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(products_router, prefix="/api/products")

    @app.get("/health", tags=["health"])
    async def health_check():
        """Overall system health check."""
        return base_service.response(data={"status": "ok", "version": __version__})

    return app


# For running directly with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storeapi.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
