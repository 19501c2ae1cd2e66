from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Таблица допустимых переходов; completed и cancelled терминальные
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACTIVE, OrderStatus.CANCELLED}),
    OrderStatus.ACTIVE: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Статусы, которые удерживают товар на интервал аренды
RESERVING_STATUSES = (OrderStatus.PENDING, OrderStatus.ACTIVE)


class Customer(BaseModel):
    id: str
    name: str
    email: str


class Shop(BaseModel):
    """Value Object: магазин арендодателя"""
    id: str
    user_id: str
    shop_name: str
    shop_address: str = ""
    shop_phone_number: str = ""
    shop_profile_image_url: str = ""


class Product(BaseModel):
    """Value Object: товар, сдаваемый посуточно"""
    id: str
    shop_id: str
    sku: str
    name: str
    price_per_day: int
    discount_price_per_day: int = 0
    stock: int
    image_url: str = ""

    @property
    def effective_price_per_day(self) -> int:
        """Цена со скидкой, если она задана, иначе базовая"""
        if self.discount_price_per_day > 0:
            return self.discount_price_per_day
        return self.price_per_day


class OrderItem(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price_at_time_of_order: int


class Order(BaseModel):
    """Domain Entity: заказ аренды"""
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
    items: list[OrderItem] = []

    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def can_be_cancelled_by(self, user_id: str) -> bool:
        """Бизнес-правило: покупатель отменяет только свой заказ в статусе pending"""
        return self.user_id == user_id and self.status == OrderStatus.PENDING


class ShopSummary(BaseModel):
    shop_name: str
    shop_address: str
    shop_phone_number: str
    shop_profile_image_url: str


class OrderHistoryItem(BaseModel):
    product_id: str
    name: str
    image_url: str
    quantity: int
    price_at_time_of_order: int


class OrderHistoryEntry(BaseModel):
    """Read model: заказ покупателя вместе с магазином и позициями"""
    id: str
    shop: ShopSummary
    total_price: int
    status: OrderStatus
    start_date: date
    end_date: date
    created_at: datetime
    payment_method: str
    payment_reference: Optional[str] = None
    items: list[OrderHistoryItem] = []
