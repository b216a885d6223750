"""Async HTTP client for the storefront backend.

Every call returns ``Either[ApiError, dict]``: HTTP and transport failures
are data, so the operations in ``async_ops`` can turn them into ``*_FAIL``
actions without try/except around each request.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx
import structlog

from .config import Settings, get_settings
from .ftypes import Either

logger = structlog.get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Network Error"
MALFORMED_BODY_MESSAGE = "Malformed response body"


@dataclass(frozen=True)
class ApiError:
    status: Optional[int]
    message: str
    details: Optional[Mapping[str, Any]] = None

    @property
    def is_network_error(self) -> bool:
        return self.status is None and self.message == NETWORK_ERROR_MESSAGE


def error_from_response(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = None

    message = body.get("message") if isinstance(body, dict) else None
    return ApiError(
        status=response.status_code,
        message=message or response.reason_phrase,
        details=body if isinstance(body, dict) else None,
    )


class ShopApi:
    """Фасад над REST API магазина"""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ShopApi":
        settings = settings or get_settings()
        return cls(httpx.AsyncClient(base_url=settings.api_url, timeout=settings.timeout))

    async def __aenter__(self) -> "ShopApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Either[ApiError, Dict[str, Any]]:
        try:
            response = await self.client.request(
                method, url, json=json, params=params, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("Request failed", method=method, url=url, error=str(exc))
            return Either.left(ApiError(status=None, message=NETWORK_ERROR_MESSAGE))

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "Request rejected",
                method=method,
                url=url,
                status=error.status,
                message=error.message,
            )
            return Either.left(error)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None
        # Все ответы API - JSON-объекты
        if not isinstance(body, dict):
            logger.warning("Malformed response", method=method, url=url)
            return Either.left(
                ApiError(status=response.status_code, message=MALFORMED_BODY_MESSAGE)
            )
        return Either.right(body)

    # ============ Каталог ============

    async def get_products(self, page: int = 1):
        return await self.request("GET", "/products", params={"page": page})

    async def get_product(self, product_id: str):
        return await self.request("GET", f"/products/{product_id}")

    # ============ Аутентификация ============

    async def login(self, email: str, password: str):
        return await self.request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )

    async def signup(self, email: str, password: str, confirm_password: str):
        return await self.request(
            "POST",
            "/auth/signup",
            json={
                "email": email,
                "password": password,
                "confirmPassword": confirm_password,
            },
        )

    async def admin_login(self, email: str, password: str):
        return await self.request(
            "POST", "/auth/admin-login", json={"email": email, "password": password}
        )

    # ============ Корзина ============

    async def get_cart(self, headers: Mapping[str, str]):
        return await self.request("GET", "/cart", headers=headers)

    async def add_to_cart(self, product_id: str, headers: Mapping[str, str]):
        return await self.request(
            "POST", "/cart", json={"productId": product_id}, headers=headers
        )

    async def remove_from_cart(self, product_id: str, headers: Mapping[str, str]):
        return await self.request(
            "DELETE", "/cart", json={"productId": product_id}, headers=headers
        )

    # ============ Заказы и оплата ============

    async def get_orders(self, headers: Mapping[str, str]):
        return await self.request("GET", "/orders", headers=headers)

    async def validate_checkout(
        self, items: Iterable[Mapping[str, Any]], headers: Mapping[str, str]
    ):
        return await self.request(
            "POST", "/checkout/validate", json={"items": list(items)}, headers=headers
        )

    async def process_payment(
        self, amount: float, token: str, headers: Mapping[str, str], currency: str = "usd"
    ):
        return await self.request(
            "POST",
            "/payment/process",
            json={"amount": amount, "token": token, "currency": currency},
            headers=headers,
        )

    async def create_order(
        self,
        products: Iterable[Mapping[str, Any]],
        transaction_id: str,
        headers: Mapping[str, str],
        **fields: Any,
    ):
        return await self.request(
            "POST",
            "/create-order",
            json={"products": list(products), "transactionId": transaction_id, **fields},
            headers=headers,
        )

    # ============ Администрирование ============

    async def create_product(self, product: Mapping[str, Any], headers: Mapping[str, str]):
        return await self.request("POST", "/admin/products", json=dict(product), headers=headers)

    async def update_product(
        self, product_id: str, product: Mapping[str, Any], headers: Mapping[str, str]
    ):
        return await self.request(
            "PUT", f"/admin/products/{product_id}", json=dict(product), headers=headers
        )

    async def delete_product(self, product_id: str, headers: Mapping[str, str]):
        return await self.request("DELETE", f"/admin/products/{product_id}", headers=headers)

    async def get_all_orders(self, headers: Mapping[str, str]):
        return await self.request("GET", "/admin/orders", headers=headers)

    async def update_order_status(
        self, order_id: str, status: str, headers: Mapping[str, str]
    ):
        return await self.request(
            "PATCH", f"/admin/orders/{order_id}", json={"status": status}, headers=headers
        )
