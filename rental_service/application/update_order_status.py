import logging

from rental_service.domain.models import Order, OrderStatus
from rental_service.domain.exceptions import (
    OrderNotFoundError, PermissionDeniedError, InvalidStatusTransitionError
)

logger = logging.getLogger(__name__)


class UpdateOrderStatusUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str, user_id: str, status: OrderStatus) -> Order:
        async with self._uow() as uow:
            shop = await uow.shops.get_by_owner(user_id)
            if not shop:
                raise PermissionDeniedError("Пользователь не владеет магазином")

            order = await uow.orders.get_by_id(order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            if order.shop_id != shop.id:
                raise PermissionDeniedError("Нет прав на изменение этого заказа")

            if order.status == status:
                logger.info(f"Заказ {order_id} уже в статусе {status.value}")
                return order
            if not order.can_transition_to(status):
                raise InvalidStatusTransitionError(order.status, status)

            await uow.orders.update_status(order.id, status)
            await uow.commit()

        logger.info(f"Магазин {shop.id} перевел заказ {order_id}: {order.status.value} -> {status.value}")
        order.status = status
        return order
