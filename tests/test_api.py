import json
from datetime import date

import httpx
import pytest

from rental_service.config import Settings
from rental_service.domain.exceptions import PaymentGatewayError, PaymentGatewayTimeoutError
from rental_service.domain.models import OrderStatus
from rental_service.domain.signature import sign
from rental_service.main import create_app
from conftest import PRIVATE_KEY, MERCHANT_CODE, CUSTOMER_ID, VENDOR_ID, SHOP_ID, TENT_ID, STOVE_ID

CUSTOMER = {"X-User-Id": CUSTOMER_ID}
VENDOR = {"X-User-Id": VENDOR_ID}


@pytest.fixture
async def client(database, gateway):
    settings = Settings(TRIPAY_PRIVATE_KEY=PRIVATE_KEY, TRIPAY_MERCHANT_CODE=MERCHANT_CODE)
    app = create_app(settings, payment_gateway=gateway, database=database)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


def order_body(items, start="2024-06-01", end="2024-06-03"):
    return {
        "shop_id": SHOP_ID,
        "start_date": start,
        "end_date": end,
        "payment_method": "BRIVA",
        "items": [{"product_id": product_id, "quantity": quantity} for product_id, quantity in items]
    }


async def post_callback(client, payload: dict, signature: str | None = None):
    body = json.dumps(payload).encode()
    return await client.post(
        "/api/v1/payments/callback",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Callback-Signature": signature if signature is not None else sign(PRIVATE_KEY, body)
        }
    )


async def test_health(client):
    response = await client.get("/health")

    assert response.json() == {"status": "healthy"}


async def test_create_order_returns_payment_instructions(client, gateway):
    response = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 2)]), headers=CUSTOMER)

    assert response.status_code == 201
    assert response.json()["amount"] == 320
    assert response.json()["checkout_url"]
    assert gateway.transactions[0]["merchant_ref"] == response.json()["merchant_ref"]


async def test_create_order_conflict(client, insert_order):
    await insert_order(OrderStatus.ACTIVE, date(2024, 6, 1), date(2024, 6, 5), [(TENT_ID, 2, 80)])

    response = await client.post(
        "/api/v1/orders", json=order_body([(TENT_ID, 1)], "2024-06-03", "2024-06-04"), headers=CUSTOMER
    )

    assert response.status_code == 409
    assert "Tent 4P" in response.json()["error"]


async def test_create_order_unknown_product(client):
    response = await client.post("/api/v1/orders", json=order_body([("missing", 1)]), headers=CUSTOMER)

    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.parametrize("body", [
    order_body([]),
    order_body([(TENT_ID, 0)]),
    order_body([(TENT_ID, 1)], "2024-06-05", "2024-06-01"),
    order_body([(TENT_ID, 1)], "01-06-2024", "2024-06-03"),
    {"shop_id": SHOP_ID},
])
async def test_create_order_bad_input(client, body):
    response = await client.post("/api/v1/orders", json=body, headers=CUSTOMER)

    assert response.status_code == 400
    assert response.json()["details"]


async def test_create_order_requires_user(client):
    response = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1)]))

    assert response.status_code == 401


async def test_create_order_gateway_failure(client, gateway, fetch_order):
    gateway.error = PaymentGatewayError("Tripay вернул ошибку: Invalid method")

    response = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1)]), headers=CUSTOMER)

    assert response.status_code == 502
    order_id = response.json()["order_id"]
    assert (await fetch_order(order_id)).status == OrderStatus.PENDING


async def test_create_order_gateway_timeout(client, gateway):
    gateway.error = PaymentGatewayTimeoutError("Tripay не ответил вовремя, результат неизвестен")

    response = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1)]), headers=CUSTOMER)

    assert response.status_code == 502
    assert response.json()["order_id"]


async def test_paid_callback_and_replay(client):
    created = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1)]), headers=CUSTOMER)
    order_id = created.json()["merchant_ref"]
    payload = {"reference": "T0001", "merchant_ref": order_id, "status": "PAID"}

    first = await post_callback(client, payload)
    second = await post_callback(client, payload)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json() == {"success": True}
    orders = (await client.get("/api/v1/orders/me", headers=CUSTOMER)).json()
    assert orders[0]["status"] == "active"


async def test_callback_with_bad_signature(client, insert_order, fetch_order):
    order_id = await insert_order(OrderStatus.PENDING, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])
    payload = {"merchant_ref": order_id, "status": "PAID"}
    signature = sign(PRIVATE_KEY, json.dumps(payload).encode()).upper()

    response = await post_callback(client, payload, signature)

    assert response.status_code == 403
    assert (await fetch_order(order_id)).status == OrderStatus.PENDING


async def test_callback_missing_fields(client):
    response = await post_callback(client, {"reference": "T0001", "status": "PAID"})

    assert response.status_code == 400


async def test_callback_for_unknown_order_is_acknowledged(client):
    response = await post_callback(client, {"merchant_ref": "missing", "status": "PAID"})

    assert response.status_code == 200
    assert response.json() == {"success": True}


async def test_my_orders_grouped_newest_first(client):
    first = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1), (STOVE_ID, 2)]), headers=CUSTOMER)
    second = await client.post("/api/v1/orders", json=order_body([(STOVE_ID, 1)], "2024-07-01", "2024-07-02"), headers=CUSTOMER)

    response = await client.get("/api/v1/orders/me", headers=CUSTOMER)

    orders = response.json()
    assert [order["id"] for order in orders] == [second.json()["merchant_ref"], first.json()["merchant_ref"]]
    assert len(orders[1]["items"]) == 2
    assert orders[1]["shop"]["shop_name"] == "Camp Rent"
    assert orders[1]["payment_reference"] == "T0001"


async def test_my_orders_empty(client):
    response = await client.get("/api/v1/orders/me", headers=VENDOR)

    assert response.status_code == 200
    assert response.json() == []


async def test_cancel_pending_order(client):
    created = await client.post("/api/v1/orders", json=order_body([(TENT_ID, 1)]), headers=CUSTOMER)
    order_id = created.json()["merchant_ref"]

    response = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=CUSTOMER)

    assert response.status_code == 200
    orders = (await client.get("/api/v1/orders/me", headers=CUSTOMER)).json()
    assert orders[0]["status"] == "cancelled"


async def test_cancel_active_order_is_forbidden(client, insert_order):
    order_id = await insert_order(OrderStatus.ACTIVE, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])

    response = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=CUSTOMER)

    assert response.status_code == 403


async def test_cancel_unknown_order(client):
    response = await client.post("/api/v1/orders/missing/cancel", headers=CUSTOMER)

    assert response.status_code == 404


async def test_shop_updates_status(client, insert_order):
    order_id = await insert_order(OrderStatus.PENDING, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])

    response = await client.put(f"/api/v1/orders/{order_id}/status", json={"status": "active"}, headers=VENDOR)

    assert response.status_code == 200
    assert response.json()["status"] == "active"


async def test_shop_status_update_rejections(client, insert_order):
    order_id = await insert_order(OrderStatus.COMPLETED, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])

    invalid = await client.put(f"/api/v1/orders/{order_id}/status", json={"status": "cancelled"}, headers=VENDOR)
    unknown_value = await client.put(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"}, headers=VENDOR)
    not_owner = await client.put(f"/api/v1/orders/{order_id}/status", json={"status": "cancelled"}, headers=CUSTOMER)

    assert invalid.status_code == 409
    assert unknown_value.status_code == 400
    assert not_owner.status_code == 403


async def test_shop_orders_with_status_filter(client, insert_order):
    await insert_order(OrderStatus.PENDING, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])
    active_id = await insert_order(OrderStatus.ACTIVE, date(2024, 6, 1), date(2024, 6, 3), [(TENT_ID, 1, 80)])

    response = await client.get("/api/v1/shops/me/orders", params={"status": "active"}, headers=VENDOR)
    everything = await client.get("/api/v1/shops/me/orders", headers=VENDOR)
    bad_filter = await client.get("/api/v1/shops/me/orders", params={"status": "lost"}, headers=VENDOR)
    no_shop = await client.get("/api/v1/shops/me/orders", headers=CUSTOMER)

    assert [order["id"] for order in response.json()] == [active_id]
    assert len(everything.json()) == 2
    assert bad_filter.status_code == 400
    assert no_shop.status_code == 403


async def test_availability_endpoint(client, insert_order):
    await insert_order(OrderStatus.ACTIVE, date(2024, 6, 1), date(2024, 6, 5), [(TENT_ID, 1, 80)])

    response = await client.get(
        f"/api/v1/products/{TENT_ID}/availability", params={"start_date": "2024-06-05", "end_date": "2024-06-06"}
    )
    reversed_range = await client.get(
        f"/api/v1/products/{TENT_ID}/availability", params={"start_date": "2024-06-06", "end_date": "2024-06-05"}
    )

    assert response.json()["available"] == 1
    assert response.json()["stock"] == 2
    assert reversed_range.status_code == 400


async def test_payment_channels_proxy(client, gateway):
    response = await client.get("/api/v1/payment-channels", headers=CUSTOMER)

    assert response.status_code == 200
    assert response.json() == gateway.channels


async def test_payment_channels_gateway_failure(client, gateway):
    gateway.error = PaymentGatewayError("Tripay не доступен")

    response = await client.get("/api/v1/payment-channels", headers=CUSTOMER)

    assert response.status_code == 502
