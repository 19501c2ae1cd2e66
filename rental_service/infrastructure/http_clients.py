import httpx
import logging

from rental_service.application.interfaces import PaymentGateway
from rental_service.domain.exceptions import PaymentGatewayError, PaymentGatewayTimeoutError

logger = logging.getLogger(__name__)


class HTTPTripayClient(PaymentGateway):
    def __init__(self, base_url: str, api_key: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def create_transaction(self, payload: dict) -> dict:
        data = await self._request("POST", "/transaction/create", json=payload)
        if not isinstance(data, dict):
            raise PaymentGatewayError("Tripay вернул некорректные данные транзакции")
        return data

    async def get_payment_channels(self) -> list:
        data = await self._request("GET", "/merchant/payment-channel")
        return data or []

    async def _request(self, method: str, path: str, json: dict | None = None):
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    json=json,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    timeout=self._timeout
                )
        except httpx.TimeoutException as e:
            logger.error(f"Tripay не ответил за {self._timeout} с: {e}")
            raise PaymentGatewayTimeoutError("Tripay не ответил вовремя, результат неизвестен")
        except httpx.RequestError as e:
            logger.error(f"Tripay ошибка подключения: {e}")
            raise PaymentGatewayError(f"Tripay не доступен: {str(e)}")

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Tripay вернул не JSON: {response.status_code}")
            raise PaymentGatewayError(f"Tripay ошибка: {response.status_code}")

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            logger.error(f"Tripay вернул ошибку ({response.status_code}): {message}")
            raise PaymentGatewayError(f"Tripay вернул ошибку: {message or response.status_code}")

        return body.get("data")
