from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, Query, Request, status

from rental_service.config import Settings
from rental_service.presentation.schemas import (
    CreateOrderRequest, UpdateStatusRequest, OrderResponse, OrderHistoryResponse,
    AvailabilityResponse, MessageResponse, CallbackResponse, ErrorResponse
)
from rental_service.application.interfaces import PaymentGateway
from rental_service.application.availability import GetAvailabilityUseCase
from rental_service.application.create_order import CreateOrderUseCase, CreateOrderDTO, OrderLineDTO
from rental_service.application.payment_request import PaymentRequestBuilder, InitiatePaymentUseCase
from rental_service.application.process_payment import ProcessPaymentCallbackUseCase
from rental_service.application.cancel_order import CancelOrderUseCase
from rental_service.application.update_order_status import UpdateOrderStatusUseCase
from rental_service.application.get_order import GetCustomerOrdersUseCase, GetShopOrdersUseCase
from rental_service.domain.models import OrderStatus
from rental_service.domain.exceptions import AuthenticationError
from rental_service.infrastructure.unit_of_work import UnitOfWork

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_unit_of_work(request: Request) -> UnitOfWork:
    return UnitOfWork(request.app.state.database.session_factory)


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Идентификатор пользователя проставляет внешний слой аутентификации"""
    if not x_user_id:
        raise AuthenticationError("Пользователь не аутентифицирован")
    return x_user_id


# Фабрики для создания use cases
def get_create_order_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings)
):
    builder = PaymentRequestBuilder(
        settings.TRIPAY_MERCHANT_CODE,
        settings.TRIPAY_PRIVATE_KEY,
        callback_url=settings.PAYMENT_CALLBACK_URL,
        return_url=settings.PAYMENT_RETURN_URL
    )
    return CreateOrderUseCase(uow, InitiatePaymentUseCase(uow, builder, gateway))


def get_process_payment_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: Settings = Depends(get_settings)
):
    return ProcessPaymentCallbackUseCase(uow, settings.TRIPAY_PRIVATE_KEY)


def get_cancel_order_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return CancelOrderUseCase(uow)


def get_update_order_status_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return UpdateOrderStatusUseCase(uow)


def get_customer_orders_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return GetCustomerOrdersUseCase(uow)


def get_shop_orders_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return GetShopOrdersUseCase(uow)


def get_availability_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return GetAvailabilityUseCase(uow)


@router.post(
    "/orders",
    responses={
        400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
        409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}
    },
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать заказ и вернуть платежные инструкции Tripay"""
    dto = CreateOrderDTO(
        user_id=user_id,
        shop_id=request.shop_id,
        payment_method=request.payment_method,
        start_date=request.start_date,
        end_date=request.end_date,
        items=[OrderLineDTO(product_id=item.product_id, quantity=item.quantity) for item in request.items]
    )
    result = await use_case(dto)
    return result.payment


@router.get("/orders/me", response_model=List[OrderHistoryResponse])
async def get_my_orders(
    user_id: str = Depends(get_current_user_id),
    use_case: GetCustomerOrdersUseCase = Depends(get_customer_orders_use_case)
):
    """Заказы покупателя с позициями и магазином, новые первыми"""
    return await use_case(user_id)


@router.post(
    "/orders/{order_id}/cancel",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def cancel_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: CancelOrderUseCase = Depends(get_cancel_order_use_case)
):
    await use_case(order_id, user_id)
    return MessageResponse(message="Заказ отменен")


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def update_order_status(
    order_id: str,
    request: UpdateStatusRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Изменение статуса заказа владельцем магазина"""
    order = await use_case(order_id, user_id, request.status)
    return OrderResponse.from_domain(order)


@router.get(
    "/shops/me/orders",
    response_model=List[OrderResponse],
    responses={403: {"model": ErrorResponse}}
)
async def get_shop_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    user_id: str = Depends(get_current_user_id),
    use_case: GetShopOrdersUseCase = Depends(get_shop_orders_use_case)
):
    orders = await use_case(user_id, order_status)
    return [OrderResponse.from_domain(order) for order in orders]


@router.get(
    "/products/{product_id}/availability",
    response_model=AvailabilityResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_availability(
    product_id: str,
    start_date: date,
    end_date: date,
    use_case: GetAvailabilityUseCase = Depends(get_availability_use_case)
):
    availability = await use_case(product_id, start_date, end_date)
    return AvailabilityResponse(**availability.model_dump())


@router.post(
    "/payments/callback",
    response_model=CallbackResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def payment_callback(
    request: Request,
    x_callback_signature: Optional[str] = Header(None),
    use_case: ProcessPaymentCallbackUseCase = Depends(get_process_payment_use_case)
):
    """Обработка callback от Tripay"""
    raw_body = await request.body()
    await use_case(raw_body, x_callback_signature)
    return CallbackResponse(success=True)


@router.get("/payment-channels", responses={502: {"model": ErrorResponse}})
async def get_payment_channels(
    user_id: str = Depends(get_current_user_id),
    gateway: PaymentGateway = Depends(get_payment_gateway)
):
    """Список платежных каналов Tripay как есть"""
    return await gateway.get_payment_channels()
