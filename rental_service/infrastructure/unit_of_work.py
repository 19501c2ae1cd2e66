import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rental_service.domain.exceptions import PersistenceError
from rental_service.infrastructure.repositories import (
    SQLAlchemyCustomerRepository,
    SQLAlchemyShopRepository,
    SQLAlchemyProductRepository,
    SQLAlchemyOrderRepository
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                uow_impl = _UnitOfWorkImpl(session)
                yield uow_impl
                # Если commit не вызван, откатываем
                await session.rollback()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Ошибка БД, транзакция отменена: {e}")
                raise PersistenceError("Ошибка сохранения данных") from e
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.customers = SQLAlchemyCustomerRepository(session)
        self.shops = SQLAlchemyShopRepository(session)
        self.products = SQLAlchemyProductRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
