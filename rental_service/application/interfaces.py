from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, List
from rental_service.domain.models import (
    Customer, Shop, Product, Order, OrderItem, OrderStatus, OrderHistoryEntry
)


class CustomerRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[Customer]:
        pass


class ShopRepository(ABC):
    @abstractmethod
    async def get_by_id(self, shop_id: str) -> Optional[Shop]:
        pass

    @abstractmethod
    async def get_by_owner(self, user_id: str) -> Optional[Shop]:
        pass


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_for_update(self, product_id: str) -> Optional[Product]:
        """Загружает товар с блокировкой строки до конца транзакции"""
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order, items: List[OrderItem]) -> None:
        pass

    @abstractmethod
    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        pass

    @abstractmethod
    async def update_payment_reference(self, order_id: str, payment_reference: str) -> None:
        pass

    @abstractmethod
    async def reserved_quantity(self, product_id: str, start_date: date, end_date: date) -> int:
        """Сумма количества товара в pending/active заказах, пересекающихся с интервалом"""
        pass

    @abstractmethod
    async def list_for_customer(self, user_id: str) -> List[OrderHistoryEntry]:
        pass

    @abstractmethod
    async def list_for_shop(self, shop_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def customers(self) -> CustomerRepository:
        pass

    @property
    @abstractmethod
    def shops(self) -> ShopRepository:
        pass

    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class PaymentGateway(ABC):
    @abstractmethod
    async def create_transaction(self, payload: dict) -> dict:
        """Создает транзакцию и возвращает платежные инструкции шлюза"""
        pass

    @abstractmethod
    async def get_payment_channels(self) -> list:
        pass
