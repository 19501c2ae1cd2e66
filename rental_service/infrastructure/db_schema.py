from sqlalchemy import (
    Table, Column, String, Integer, Enum, Date, DateTime, MetaData, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.sql import func

from rental_service.domain.models import OrderStatus

metadata = MetaData()


users_tbl = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String, nullable=False),
    Column("email", String, unique=True, nullable=False)
)


shops_tbl = Table(
    "shops",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False, index=True),
    Column("shop_name", String, nullable=False),
    Column("shop_address", String, nullable=False, default=""),
    Column("shop_phone_number", String, nullable=False, default=""),
    Column("shop_profile_image_url", String, nullable=False, default="")
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("shop_id", String(36), ForeignKey("shops.id"), nullable=False, index=True),
    Column("sku", String, unique=True, nullable=False),
    Column("name", String, nullable=False),
    Column("price_per_day", Integer, nullable=False),
    Column("discount_price_per_day", Integer, nullable=False, default=0),
    Column("stock", Integer, nullable=False, default=0),
    Column("image_url", String, nullable=False, default=""),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative")
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False, index=True),
    Column("shop_id", String(36), ForeignKey("shops.id"), nullable=False, index=True),
    Column("total_price", Integer, nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING
    ),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("payment_method", String, nullable=False),
    Column("payment_reference", String, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("end_date >= start_date", name="ck_orders_date_range")
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_id", String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price_at_time_of_order", Integer, nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive")
)

# Подсчет резерва по товару на интервал дат
Index("ix_order_items_product_id", order_items_tbl.c.product_id)
Index("ix_orders_status_dates", orders_tbl.c.status, orders_tbl.c.start_date, orders_tbl.c.end_date)
