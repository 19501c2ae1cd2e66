import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import event, insert, select

from rental_service.application.interfaces import PaymentGateway
from rental_service.domain.models import OrderStatus
from rental_service.infrastructure.database import Database
from rental_service.infrastructure.db_schema import (
    users_tbl, shops_tbl, products_tbl, orders_tbl, order_items_tbl
)
from rental_service.infrastructure.unit_of_work import UnitOfWork

PRIVATE_KEY = "test-private-key"
MERCHANT_CODE = "T0001"

CUSTOMER_ID = "c0000000-0000-0000-0000-000000000001"
OTHER_CUSTOMER_ID = "c0000000-0000-0000-0000-000000000002"
VENDOR_ID = "v0000000-0000-0000-0000-000000000001"
OTHER_VENDOR_ID = "v0000000-0000-0000-0000-000000000002"
SHOP_ID = "s0000000-0000-0000-0000-000000000001"
OTHER_SHOP_ID = "s0000000-0000-0000-0000-000000000002"

# stock=2, 100/сутки со скидкой 80
TENT_ID = "p0000000-0000-0000-0000-000000000001"
# stock=5, 50/сутки без скидки
STOVE_ID = "p0000000-0000-0000-0000-000000000002"
# товар другого магазина
KAYAK_ID = "p0000000-0000-0000-0000-000000000003"


class FakePaymentGateway(PaymentGateway):
    def __init__(self):
        self.transactions = []
        self.error = None
        self.channels = [
            {"group": "Virtual Account", "code": "BRIVA", "name": "BRI Virtual Account", "icon_url": "https://x/briva.png"}
        ]

    async def create_transaction(self, payload: dict) -> dict:
        self.transactions.append(payload)
        if self.error:
            raise self.error
        return {
            "reference": f"T{len(self.transactions):04d}",
            "merchant_ref": payload["merchant_ref"],
            "amount": payload["amount"],
            "payment_method": payload["method"],
            "checkout_url": "https://tripay.co.id/checkout/T0001",
            "status": "UNPAID"
        }

    async def get_payment_channels(self) -> list:
        if self.error:
            raise self.error
        return self.channels


async def seed(database: Database):
    async with database.engine.begin() as conn:
        await conn.execute(insert(users_tbl), [
            {"id": CUSTOMER_ID, "name": "Budi", "email": "budi@example.com"},
            {"id": OTHER_CUSTOMER_ID, "name": "Sari", "email": "sari@example.com"},
            {"id": VENDOR_ID, "name": "Vendor", "email": "vendor@example.com"},
            {"id": OTHER_VENDOR_ID, "name": "Vendor 2", "email": "vendor2@example.com"},
        ])
        await conn.execute(insert(shops_tbl), [
            {
                "id": SHOP_ID, "user_id": VENDOR_ID, "shop_name": "Camp Rent",
                "shop_address": "Jl. Merapi 1", "shop_phone_number": "0800", "shop_profile_image_url": "https://x/shop.png"
            },
            {
                "id": OTHER_SHOP_ID, "user_id": OTHER_VENDOR_ID, "shop_name": "Sea Rent",
                "shop_address": "", "shop_phone_number": "", "shop_profile_image_url": ""
            },
        ])
        await conn.execute(insert(products_tbl), [
            {
                "id": TENT_ID, "shop_id": SHOP_ID, "sku": "TENT-4P", "name": "Tent 4P",
                "price_per_day": 100, "discount_price_per_day": 80, "stock": 2, "image_url": "https://x/tent.png"
            },
            {
                "id": STOVE_ID, "shop_id": SHOP_ID, "sku": "STOVE-1", "name": "Camping Stove",
                "price_per_day": 50, "discount_price_per_day": 0, "stock": 5, "image_url": ""
            },
            {
                "id": KAYAK_ID, "shop_id": OTHER_SHOP_ID, "sku": "KAYAK-1", "name": "Kayak",
                "price_per_day": 300, "discount_price_per_day": 0, "stock": 1, "image_url": ""
            },
        ])


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'rental.db'}")
    await db.create_tables()
    await seed(db)
    yield db
    await db.close()


@pytest.fixture
async def serializing_database(tmp_path):
    """SQLite, где каждая транзакция сразу берет блокировку записи, как FOR UPDATE в PostgreSQL"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'rental_serial.db'}")

    @event.listens_for(db.engine.sync_engine, "connect")
    def disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db.engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    await db.create_tables()
    await seed(db)
    yield db
    await db.close()


@pytest.fixture
def uow(database):
    return UnitOfWork(database.session_factory)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def insert_order(database):
    """Создает заказ напрямую в БД, минуя use case"""

    async def _insert(
        status: OrderStatus,
        start_date: date,
        end_date: date,
        items: list,
        user_id: str = CUSTOMER_ID,
        shop_id: str = SHOP_ID,
        created_at: datetime | None = None
    ) -> str:
        order_id = str(uuid.uuid4())
        async with database.engine.begin() as conn:
            await conn.execute(insert(orders_tbl).values(
                id=order_id,
                user_id=user_id,
                shop_id=shop_id,
                total_price=sum(quantity * price for _, quantity, price in items),
                status=status,
                start_date=start_date,
                end_date=end_date,
                payment_method="BRIVA",
                created_at=created_at or datetime.now(timezone.utc)
            ))
            await conn.execute(insert(order_items_tbl), [
                {
                    "id": str(uuid.uuid4()),
                    "order_id": order_id,
                    "product_id": product_id,
                    "quantity": quantity,
                    "price_at_time_of_order": price
                }
                for product_id, quantity, price in items
            ])
        return order_id

    return _insert


@pytest.fixture
def fetch_order(database):
    async def _fetch(order_id: str):
        async with database.engine.connect() as conn:
            result = await conn.execute(select(orders_tbl).where(orders_tbl.c.id == order_id))
            return result.fetchone()

    return _fetch


@pytest.fixture
def count_orders(database):
    async def _count() -> tuple[int, int]:
        async with database.engine.connect() as conn:
            orders = len((await conn.execute(select(orders_tbl.c.id))).fetchall())
            items = len((await conn.execute(select(order_items_tbl.c.id))).fetchall())
            return orders, items

    return _count
