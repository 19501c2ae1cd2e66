import logging

from rental_service.domain.models import Order, OrderStatus
from rental_service.domain.exceptions import OrderNotFoundError, PermissionDeniedError, OrderNotCancellableError

logger = logging.getLogger(__name__)


class CancelOrderUseCase:
    """Отмена заказа покупателем: только свой заказ и только в статусе pending"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str, user_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            if order.user_id != user_id:
                raise PermissionDeniedError("Нет прав на отмену этого заказа")
            if not order.can_be_cancelled_by(user_id):
                raise OrderNotCancellableError(
                    f"Отменить можно только заказ в статусе pending (текущий: {order.status.value})"
                )

            await uow.orders.update_status(order.id, OrderStatus.CANCELLED)
            await uow.commit()

        order.status = OrderStatus.CANCELLED
        logger.info(f"Заказ {order_id} отменен покупателем {user_id}")
        return order
