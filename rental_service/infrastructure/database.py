import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rental_service.infrastructure.db_schema import metadata

logger = logging.getLogger(__name__)


class Database:
    """Async engine и фабрика сессий одного приложения"""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Таблицы созданы")

    async def close(self):
        await self.engine.dispose()
        logger.info("Соединения с БД закрыты")
