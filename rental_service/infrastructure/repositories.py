from typing import Optional, List
from datetime import date
from sqlalchemy import select, insert, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from rental_service.domain.models import (
    Customer, Shop, Product, Order, OrderItem, OrderStatus, RESERVING_STATUSES,
    OrderHistoryEntry, OrderHistoryItem, ShopSummary
)
from rental_service.infrastructure.db_schema import (
    users_tbl, shops_tbl, products_tbl, orders_tbl, order_items_tbl
)
from rental_service.application.interfaces import (
    CustomerRepository, ShopRepository, ProductRepository, OrderRepository
)


def product_for_update_stmt(product_id: str):
    return select(products_tbl).where(products_tbl.c.id == product_id).with_for_update()


def order_stmt(order_id: str, for_update: bool = False):
    stmt = select(orders_tbl).where(orders_tbl.c.id == order_id)
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


def reserved_quantity_stmt(product_id: str, start_date: date, end_date: date):
    """Пересечение интервалов включительно с обеих сторон: start <= range_end AND end >= range_start"""
    return (
        select(func.coalesce(func.sum(order_items_tbl.c.quantity), 0))
        .select_from(order_items_tbl.join(orders_tbl, orders_tbl.c.id == order_items_tbl.c.order_id))
        .where(
            order_items_tbl.c.product_id == product_id,
            orders_tbl.c.status.in_(RESERVING_STATUSES),
            orders_tbl.c.start_date <= end_date,
            orders_tbl.c.end_date >= start_date
        )
    )


class SQLAlchemyCustomerRepository(CustomerRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, user_id: str) -> Optional[Customer]:
        result = await self._session.execute(
            select(users_tbl).where(users_tbl.c.id == user_id)
        )
        row = result.fetchone()
        return Customer(id=row.id, name=row.name, email=row.email) if row else None


class SQLAlchemyShopRepository(ShopRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, shop_id: str) -> Optional[Shop]:
        result = await self._session.execute(
            select(shops_tbl).where(shops_tbl.c.id == shop_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_by_owner(self, user_id: str) -> Optional[Shop]:
        result = await self._session.execute(
            select(shops_tbl).where(shops_tbl.c.user_id == user_id).limit(1)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    def _to_domain(self, row) -> Shop:
        return Shop(
            id=row.id,
            user_id=row.user_id,
            shop_name=row.shop_name,
            shop_address=row.shop_address,
            shop_phone_number=row.shop_phone_number,
            shop_profile_image_url=row.shop_profile_image_url
        )


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_for_update(self, product_id: str) -> Optional[Product]:
        result = await self._session.execute(product_for_update_stmt(product_id))
        row = result.fetchone()
        return self._to_domain(row) if row else None

    def _to_domain(self, row) -> Product:
        """Трансформация DB → Domain"""
        return Product(
            id=row.id,
            shop_id=row.shop_id,
            sku=row.sku,
            name=row.name,
            price_per_day=row.price_per_day,
            discount_price_per_day=row.discount_price_per_day or 0,
            stock=row.stock,
            image_url=row.image_url
        )


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        result = await self._session.execute(order_stmt(order_id, for_update))
        row = result.fetchone()
        if not row:
            return None
        items = await self._session.execute(
            select(order_items_tbl).where(order_items_tbl.c.order_id == order_id)
        )
        return self._to_domain(row, [self._item_to_domain(item) for item in items.fetchall()])

    async def create(self, order: Order, items: List[OrderItem]) -> None:
        await self._session.execute(
            insert(orders_tbl).values(
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
        )
        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "id": item.id,
                    "order_id": item.order_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price_at_time_of_order": item.price_at_time_of_order
                }
                for item in items
            ]
        )

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        stmt = (
            update(orders_tbl)
            .where(orders_tbl.c.id == order_id)
            .values(status=status)
        )
        await self._session.execute(stmt)

    async def update_payment_reference(self, order_id: str, payment_reference: str) -> None:
        stmt = (
            update(orders_tbl)
            .where(orders_tbl.c.id == order_id)
            .values(payment_reference=payment_reference)
        )
        await self._session.execute(stmt)

    async def reserved_quantity(self, product_id: str, start_date: date, end_date: date) -> int:
        result = await self._session.execute(reserved_quantity_stmt(product_id, start_date, end_date))
        return int(result.scalar_one())

    async def list_for_customer(self, user_id: str) -> List[OrderHistoryEntry]:
        result = await self._session.execute(
            select(
                orders_tbl.c.id.label("order_id"),
                orders_tbl.c.total_price,
                orders_tbl.c.status,
                orders_tbl.c.start_date,
                orders_tbl.c.end_date,
                orders_tbl.c.created_at,
                orders_tbl.c.payment_method,
                orders_tbl.c.payment_reference,
                shops_tbl.c.shop_name,
                shops_tbl.c.shop_address,
                shops_tbl.c.shop_phone_number,
                shops_tbl.c.shop_profile_image_url,
                products_tbl.c.id.label("product_id"),
                products_tbl.c.name.label("product_name"),
                products_tbl.c.image_url.label("product_image_url"),
                order_items_tbl.c.quantity,
                order_items_tbl.c.price_at_time_of_order
            )
            .select_from(
                orders_tbl
                .join(shops_tbl, shops_tbl.c.id == orders_tbl.c.shop_id)
                .join(order_items_tbl, order_items_tbl.c.order_id == orders_tbl.c.id)
                .join(products_tbl, products_tbl.c.id == order_items_tbl.c.product_id)
            )
            .where(orders_tbl.c.user_id == user_id)
            .order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id, order_items_tbl.c.id)
        )

        # Плоские строки JOIN группируются по заказу с сохранением порядка
        entries: dict[str, OrderHistoryEntry] = {}
        for row in result.fetchall():
            entry = entries.get(row.order_id)
            if entry is None:
                entry = OrderHistoryEntry(
                    id=row.order_id,
                    shop=ShopSummary(
                        shop_name=row.shop_name,
                        shop_address=row.shop_address,
                        shop_phone_number=row.shop_phone_number,
                        shop_profile_image_url=row.shop_profile_image_url
                    ),
                    total_price=row.total_price,
                    status=OrderStatus(row.status),
                    start_date=row.start_date,
                    end_date=row.end_date,
                    created_at=row.created_at,
                    payment_method=row.payment_method,
                    payment_reference=row.payment_reference
                )
                entries[row.order_id] = entry
            entry.items.append(
                OrderHistoryItem(
                    product_id=row.product_id,
                    name=row.product_name,
                    image_url=row.product_image_url,
                    quantity=row.quantity,
                    price_at_time_of_order=row.price_at_time_of_order
                )
            )
        return list(entries.values())

    async def list_for_shop(self, shop_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        stmt = select(orders_tbl).where(orders_tbl.c.shop_id == shop_id)
        if status is not None:
            stmt = stmt.where(orders_tbl.c.status == status)
        result = await self._session.execute(stmt.order_by(orders_tbl.c.created_at.desc()))
        return [self._to_domain(row) for row in result.fetchall()]

    def _to_domain(self, row, items: Optional[List[OrderItem]] = None) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            user_id=row.user_id,
            shop_id=row.shop_id,
            total_price=row.total_price,
            status=OrderStatus(row.status),
            start_date=row.start_date,
            end_date=row.end_date,
            payment_method=row.payment_method,
            payment_reference=row.payment_reference,
            created_at=row.created_at,
            items=items or []
        )

    def _item_to_domain(self, row) -> OrderItem:
        return OrderItem(
            id=row.id,
            order_id=row.order_id,
            product_id=row.product_id,
            quantity=row.quantity,
            price_at_time_of_order=row.price_at_time_of_order
        )
