import logging
from typing import Optional, List, Dict
from pydantic import BaseModel

from rental_service.domain.models import Order, Customer, Product
from rental_service.domain.signature import transaction_signature
from rental_service.domain.exceptions import PaymentGatewayError, PersistenceError
from rental_service.application.interfaces import PaymentGateway

logger = logging.getLogger(__name__)


class TransactionLine(BaseModel):
    sku: str
    name: str
    price: int
    quantity: int


class TransactionRequest(BaseModel):
    """Подписанный запрос на создание транзакции в Tripay"""
    method: str
    merchant_ref: str
    amount: int
    customer_name: str
    customer_email: str
    order_items: List[TransactionLine]
    callback_url: Optional[str] = None
    return_url: Optional[str] = None
    signature: str

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class PaymentRequestBuilder:
    def __init__(self, merchant_code: str, private_key: str, callback_url: str = "", return_url: str = ""):
        self._merchant_code = merchant_code
        self._private_key = private_key
        self._callback_url = callback_url or None
        self._return_url = return_url or None

    def build_transaction(self, order: Order, customer: Customer, products: Dict[str, Product]) -> TransactionRequest:
        merchant_ref = str(order.id)

        # В позиции уже хранится цена единицы за весь срок аренды
        lines = [
            TransactionLine(
                sku=products[item.product_id].sku,
                name=products[item.product_id].name,
                price=item.price_at_time_of_order,
                quantity=item.quantity
            )
            for item in order.items
        ]

        return TransactionRequest(
            method=order.payment_method,
            merchant_ref=merchant_ref,
            amount=order.total_price,
            customer_name=customer.name,
            customer_email=customer.email,
            order_items=lines,
            callback_url=self._callback_url,
            return_url=self._return_url,
            signature=transaction_signature(self._private_key, self._merchant_code, merchant_ref, order.total_price)
        )


class InitiatePaymentUseCase:
    def __init__(self, unit_of_work, builder: PaymentRequestBuilder, payment_gateway: PaymentGateway):
        self._uow = unit_of_work
        self._builder = builder
        self._gateway = payment_gateway

    async def __call__(self, order: Order, customer: Customer, products: Dict[str, Product]) -> dict:
        request = self._builder.build_transaction(order, customer, products)
        logger.info(f"Создание транзакции Tripay для заказа {order.id} на сумму {order.total_price}")

        try:
            data = await self._gateway.create_transaction(request.to_payload())
        except PaymentGatewayError as e:
            # Заказ остается pending без payment_reference: повтор или ручная сверка
            logger.error(f"Не удалось создать транзакцию для заказа {order.id}: {e}")
            raise type(e)(str(e), order_id=order.id) from e

        reference = data.get("reference")
        if reference:
            try:
                async with self._uow() as uow:
                    await uow.orders.update_payment_reference(order.id, reference)
                    await uow.commit()
            except PersistenceError as e:
                logger.error(f"Не удалось сохранить payment_reference {reference} для заказа {order.id}: {e}")
            else:
                order.payment_reference = reference

        logger.info(f"Транзакция {reference} создана для заказа {order.id}")
        return data
