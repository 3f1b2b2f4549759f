"""
Gesture Transfer API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .deps import AppContainer, get_container
from .auth import router as auth_router
from .currency import router as currency_router
from .banks import router as banks_router
from .users import router as users_router
from .transfers import router as transfers_router
from .i18n import router as i18n_router
from ..config import get_config
from ..logging_config import setup_logging
from .. import __version__


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """Create and configure the FastAPI application"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.container.close()

    app = FastAPI(
        title="Gesture Transfer API",
        description="Currency conversion and transfers confirmed by a hand gesture",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    if container is None:
        settings = get_config()
        setup_logging(settings.log_level, log_format=settings.log_format, log_file=settings.log_file)
        container = AppContainer(settings)
    app.state.container = container

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(currency_router, prefix="/currencies", tags=["Currencies"])
    app.include_router(banks_router, prefix="/banks", tags=["Banks"])
    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(transfers_router, prefix="/transfers", tags=["Transfers"])
    app.include_router(i18n_router, prefix="/i18n", tags=["I18n"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "gesture_transfer_api",
            "version": __version__
        }

    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Gesture Transfer API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "auth": "/auth",
                "currencies": "/currencies",
                "banks": "/banks",
                "users": "/users",
                "transfers": "/transfers",
                "i18n": "/i18n",
            }
        }

    return app


__all__ = ["AppContainer", "create_app", "get_container"]
