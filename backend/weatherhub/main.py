import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .db import make_engine
from .errors import JSONUTF8Response, register_exception_handlers
from .routes import cities as city_routes
from .routes import health as health_routes
from .routes import predictions as prediction_routes
from .routes import weather as weather_routes
from .storage import Storage, SqlStore

logger = logging.getLogger(__name__)


def create_app(store: Optional[Storage] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    if store is None:
        store = SqlStore(make_engine(settings.database_url, pool_size=settings.db_pool_size))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Tabellen + Trigger (idempotent)
        app.state.store.init()
        logger.info("store initialised")
        yield

    app = FastAPI(
        title="weatherhub backend",
        version="0.1.0",
        default_response_class=JSONUTF8Response,
        lifespan=lifespan,
    )
    app.state.store = store

    # --- CORS: nur konfigurierte Origins ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    register_exception_handlers(app)

    app.include_router(health_routes.router)
    app.include_router(weather_routes.router)
    app.include_router(city_routes.router)
    app.include_router(prediction_routes.router)
    return app
