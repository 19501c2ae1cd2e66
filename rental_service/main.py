import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from rental_service.config import Settings
from rental_service.application.interfaces import PaymentGateway
from rental_service.infrastructure.database import Database
from rental_service.infrastructure.http_clients import HTTPTripayClient
from rental_service.presentation.api import router
from rental_service.presentation.errors import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    database: Database = app.state.database
    await database.create_tables()
    logger.info("Rental Service запущен")

    yield

    logger.info("Приложение останавливается...")
    await database.close()


def create_app(
    settings: Optional[Settings] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    database: Optional[Database] = None
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Rental Service",
        description="Бронирование товаров на даты и оплата через Tripay",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.payment_gateway = payment_gateway or HTTPTripayClient(
        settings.TRIPAY_BASE_URL,
        settings.TRIPAY_API_KEY,
        timeout=settings.TRIPAY_TIMEOUT
    )

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def get_app() -> FastAPI:
    """Точка входа: uvicorn rental_service.main:get_app --factory"""
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    return create_app(settings)
