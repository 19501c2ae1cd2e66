import logging
import json
from pydantic import BaseModel

from rental_service.domain.models import OrderStatus
from rental_service.domain.signature import verify
from rental_service.domain.exceptions import InvalidSignatureError, CallbackPayloadError

logger = logging.getLogger(__name__)


class PaymentCallbackDTO(BaseModel):
    merchant_ref: str
    status: str

    @property
    def target_status(self) -> OrderStatus:
        """PAID → active, любой другой статус Tripay (EXPIRED, FAILED, ...) → cancelled"""
        return OrderStatus.ACTIVE if self.status == "PAID" else OrderStatus.CANCELLED


def parse_callback(raw_body: bytes) -> PaymentCallbackDTO:
    try:
        data = json.loads(raw_body)
    except ValueError:
        raise CallbackPayloadError("Некорректный JSON в callback")
    if not isinstance(data, dict):
        raise CallbackPayloadError("Некорректный формат callback")

    status = data.get("status")
    merchant_ref = data.get("merchant_ref")
    if not isinstance(status, str) or not status:
        raise CallbackPayloadError("В callback нет поля status")
    if not isinstance(merchant_ref, str) or not merchant_ref:
        raise CallbackPayloadError("В callback нет поля merchant_ref")
    return PaymentCallbackDTO(merchant_ref=merchant_ref, status=status)


class ProcessPaymentCallbackUseCase:
    def __init__(self, unit_of_work, private_key: str):
        self._uow = unit_of_work
        self._private_key = private_key

    async def __call__(self, raw_body: bytes, signature: str | None) -> None:
        # 1. Подпись проверяется до разбора тела
        if not verify(self._private_key, raw_body, signature):
            logger.warning("Callback с неверной подписью отклонен")
            raise InvalidSignatureError("Неверная подпись callback")

        dto = parse_callback(raw_body)
        logger.info(f"Обработка payment callback: заказ {dto.merchant_ref}, статус {dto.status}")

        # 2. Внутренние ошибки не возвращаются шлюзу, иначе он будет повторять callback
        try:
            await self._apply(dto)
        except Exception:
            logger.exception(f"Ошибка обработки callback для заказа {dto.merchant_ref}")

    async def _apply(self, dto: PaymentCallbackDTO) -> None:
        target = dto.target_status

        async with self._uow() as uow:
            order = await uow.orders.get_by_id(dto.merchant_ref, for_update=True)
            if not order:
                logger.error(f"Заказ {dto.merchant_ref} из callback не найден")
                return

            # Идемпотентность
            if order.status == target:
                logger.info(f"Заказ {order.id} уже в статусе {target.value}, повторный callback")
                return

            if not order.can_transition_to(target):
                logger.warning(
                    f"Callback {dto.status} для заказа {order.id} проигнорирован: "
                    f"переход {order.status.value} -> {target.value} запрещен"
                )
                return

            await uow.orders.update_status(order.id, target)
            await uow.commit()
            logger.info(f"Заказ {order.id} отмечен {target.value} по callback {dto.status}")
