from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from typing import Optional, List

from rental_service.domain.models import OrderStatus, OrderHistoryEntry


class OrderItemRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class CreateOrderRequest(BaseModel):
    shop_id: str = Field(min_length=1)
    start_date: date
    end_date: date
    payment_method: str = Field(min_length=1)
    items: List[OrderItemRequest] = Field(min_length=1)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date не может быть раньше start_date")
        return self


class UpdateStatusRequest(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    id: str
    user_id: str
    shop_id: str
    total_price: int
    status: OrderStatus
    start_date: date
    end_date: date
    payment_method: str
    payment_reference: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            user_id=order.user_id,
            shop_id=order.shop_id,
            total_price=order.total_price,
            status=order.status,
            start_date=order.start_date,
            end_date=order.end_date,
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
            created_at=order.created_at
        )


# История заказов покупателя отдается в форме read model
OrderHistoryResponse = OrderHistoryEntry


class AvailabilityResponse(BaseModel):
    product_id: str
    start_date: date
    end_date: date
    stock: int
    available: int


class MessageResponse(BaseModel):
    message: str


class CallbackResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    order_id: Optional[str] = None
    details: Optional[list] = None
