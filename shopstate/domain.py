from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

# Заглушка токена до первого входа
AUTH_PLACEHOLDER_TOKEN = "dummy"
LAST_PAGE = 3


@dataclass(frozen=True)
class Action:
    type: Enum
    payload: Mapping[str, Any] = field(default_factory=dict)
    id: str = ""
    ts: str = ""


@dataclass(frozen=True)
class AuthState:
    token: Optional[str] = AUTH_PLACEHOLDER_TOKEN
    user_id: Optional[str] = None
    email: Optional[str] = None
    error: Optional[str] = None
    loading: bool = False


@dataclass(frozen=True)
class CartLine:
    product_id: str
    price: float
    quantity: int
    product: Optional[Mapping[str, Any]] = None  # populated productId

    @staticmethod
    def from_payload(raw: Union["CartLine", Mapping[str, Any]]) -> "CartLine":
        """
        Строка корзины с сервера: productId - строка или запись {_id, ...}
        """
        if isinstance(raw, CartLine):
            return raw

        ref = raw.get("productId")
        product = ref if isinstance(ref, Mapping) else None
        product_id = product.get("_id") if product is not None else ref
        price = raw.get("price")
        if price is None and product is not None:
            price = product.get("price", 0)

        return CartLine(
            product_id=str(product_id),
            price=price or 0,
            quantity=int(raw.get("quantity", 1)),
            product=product,
        )


@dataclass(frozen=True)
class CartState:
    products: Tuple[CartLine, ...] = ()
    total_price: float = 0
    error: Union[str, bool] = False
    loading: bool = False
    to_cart: Optional[bool] = None  # подсказка для UI, ставится при FETCH_CART_START


@dataclass(frozen=True)
class OrderState:
    orders: Tuple[Mapping[str, Any], ...] = ()
    loading: bool = False
    error: Union[str, bool] = False


@dataclass(frozen=True)
class ShopState:
    products: Tuple[Mapping[str, Any], ...] = ()
    current_page: int = 1
    loading: bool = False
    error: Union[str, bool] = False
    last_page: int = LAST_PAGE


@dataclass(frozen=True)
class RootState:
    auth: AuthState = field(default_factory=AuthState)
    cart: CartState = field(default_factory=CartState)
    orders: OrderState = field(default_factory=OrderState)
    shop: ShopState = field(default_factory=ShopState)
