from typing import List, Optional

from rental_service.domain.models import Order, OrderStatus, OrderHistoryEntry
from rental_service.domain.exceptions import PermissionDeniedError


class GetCustomerOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: str) -> List[OrderHistoryEntry]:
        async with self._uow() as uow:
            return await uow.orders.list_for_customer(user_id)


class GetShopOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        async with self._uow() as uow:
            shop = await uow.shops.get_by_owner(user_id)
            if not shop:
                raise PermissionDeniedError("Пользователь не владеет магазином")
            return await uow.orders.list_for_shop(shop.id, status)
