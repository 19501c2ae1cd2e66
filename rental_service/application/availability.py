import logging
from datetime import date
from pydantic import BaseModel

from rental_service.domain.models import Product
from rental_service.domain.exceptions import InvalidInputError, ProductNotFoundError
from rental_service.application.interfaces import OrderRepository

logger = logging.getLogger(__name__)


async def available_quantity(orders: OrderRepository, product: Product, start_date: date, end_date: date) -> int:
    """Остаток товара на интервал [start_date, end_date].

    Может быть отрицательным только при нарушенной блокировке; вызывающий код
    отклоняет запрос, если остаток меньше требуемого количества.
    """
    if end_date < start_date:
        raise InvalidInputError("end_date не может быть раньше start_date")
    reserved = await orders.reserved_quantity(product.id, start_date, end_date)
    available = product.stock - reserved
    if available < 0:
        logger.warning(f"Отрицательный остаток товара {product.id}: {available} на {start_date}..{end_date}")
    return available


class AvailabilityDTO(BaseModel):
    product_id: str
    start_date: date
    end_date: date
    stock: int
    available: int


class GetAvailabilityUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: str, start_date: date, end_date: date) -> AvailabilityDTO:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Товар {product_id} не найден")
            available = await available_quantity(uow.orders, product, start_date, end_date)
            return AvailabilityDTO(
                product_id=product.id,
                start_date=start_date,
                end_date=end_date,
                stock=product.stock,
                available=available
            )
