import logging
from pydantic import BaseModel
from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

from rental_service.domain.models import Order, OrderItem, OrderStatus
from rental_service.domain.pricing import rental_days, quote
from rental_service.domain.exceptions import (
    InvalidInputError, CustomerNotFoundError, ShopNotFoundError, ProductNotFoundError, InsufficientStockError
)
from rental_service.application.availability import available_quantity
from rental_service.application.payment_request import InitiatePaymentUseCase


logger = logging.getLogger(__name__)


class OrderLineDTO(BaseModel):
    product_id: str
    quantity: int


class CreateOrderDTO(BaseModel):
    user_id: str
    shop_id: str
    payment_method: str
    start_date: date
    end_date: date
    items: List[OrderLineDTO]


class CreateOrderResult(BaseModel):
    order: Order
    payment: Optional[dict] = None


class CreateOrderUseCase:
    def __init__(self, unit_of_work, initiate_payment: InitiatePaymentUseCase):
        self._uow = unit_of_work
        self._initiate_payment = initiate_payment

    async def __call__(self, order_data: CreateOrderDTO) -> CreateOrderResult:
        logger.info(f"Создание заказа для пользователя {order_data.user_id}, магазин {order_data.shop_id}")
        self._validate(order_data)

        # Количество по товару суммируется, если товар встречается в нескольких строках
        requested: dict[str, int] = {}
        for line in order_data.items:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        async with self._uow() as uow:
            customer = await uow.customers.get_by_id(order_data.user_id)
            if not customer:
                raise CustomerNotFoundError(f"Пользователь {order_data.user_id} не найден")
            shop = await uow.shops.get_by_id(order_data.shop_id)
            if not shop:
                raise ShopNotFoundError(f"Магазин {order_data.shop_id} не найден")

            # 1. Блокировка товаров в фиксированном порядке, чтобы параллельные заказы не пересекались
            locked = {}
            for product_id in sorted(requested):
                locked[product_id] = await uow.products.get_for_update(product_id)

            # 2. Проверка наличия на интервал дат в порядке строк запроса
            products = {}
            for line in order_data.items:
                if line.product_id in products:
                    continue
                product = locked[line.product_id]
                if not product or product.shop_id != shop.id:
                    raise ProductNotFoundError(f"Товар {line.product_id} не найден в магазине {shop.id}")
                available = await available_quantity(
                    uow.orders, product, order_data.start_date, order_data.end_date
                )
                if available < requested[product.id]:
                    logger.info(
                        f"Недостаточно товара {product.id}: доступно {available}, требуется {requested[product.id]}"
                    )
                    raise InsufficientStockError(product.id, product.name, available, requested[product.id])
                products[product.id] = product

            # 3. Снимок цен и расчет суммы
            order_id = str(uuid.uuid4())
            days = rental_days(order_data.start_date, order_data.end_date)
            total_price = 0
            items = []
            for line in order_data.items:
                snapshot = quote(products[line.product_id], line.quantity, days)
                total_price += snapshot.line_total
                items.append(
                    OrderItem(
                        id=str(uuid.uuid4()),
                        order_id=order_id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price_at_time_of_order=snapshot.rental_price
                    )
                )

            # 4. Создание заказа
            order = Order(
                id=order_id,
                user_id=order_data.user_id,
                shop_id=shop.id,
                total_price=total_price,
                status=OrderStatus.PENDING,
                start_date=order_data.start_date,
                end_date=order_data.end_date,
                payment_method=order_data.payment_method,
                created_at=datetime.now(timezone.utc),
                items=items
            )
            await uow.orders.create(order, items)
            await uow.commit()
        logger.info(f"Заказ создан: {order.id}, сумма {order.total_price}, суток {days}")

        # Создание платежа вне транзакции: при ошибке заказ остается pending
        payment = await self._initiate_payment(order, customer, products)
        return CreateOrderResult(order=order, payment=payment)

    def _validate(self, order_data: CreateOrderDTO) -> None:
        if not order_data.items:
            raise InvalidInputError("Заказ должен содержать хотя бы одну позицию")
        if order_data.end_date < order_data.start_date:
            raise InvalidInputError("end_date не может быть раньше start_date")
        if not order_data.payment_method:
            raise InvalidInputError("Не указан способ оплаты")
        for line in order_data.items:
            if line.quantity <= 0:
                raise InvalidInputError(f"Количество товара {line.product_id} должно быть больше нуля")
