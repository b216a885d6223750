import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import json
import httpx
import pytest

from shopstate import actions, async_ops
from shopstate.api import ShopApi
from shopstate.store import Store, apply_actions


def routes(table, seen=None):
    """
    Мок backend'а: {(METHOD, path): (status, body)}
    Значение "network" имитирует обрыв соединения
    """

    def handler(request):
        if seen is not None:
            body = json.loads(request.content) if request.content else None
            seen.append((request.method, request.url.path, body, request.headers))
        outcome = table[(request.method, request.url.path)]
        if outcome == "network":
            raise httpx.ConnectError("Network Error", request=request)
        status, body = outcome
        return httpx.Response(status, json=body)

    return handler


def make_api(table, seen=None) -> ShopApi:
    transport = httpx.MockTransport(routes(table, seen))
    return ShopApi(httpx.AsyncClient(transport=transport, base_url="http://shop.test"))


@pytest.fixture
def customer_store():
    return Store().dispatch(
        actions.auth_success("valid-token", "customer-123", "customer@example.com")
    )


@pytest.fixture
def cart_items():
    return [
        {"productId": "1", "title": "Product 1", "quantity": 2, "price": 29.99},
    ]


# ============ Guest: каталог и вход ============


@pytest.mark.asyncio
async def test_browse_products():
    products = [
        {"_id": "1", "title": "Product 1", "price": 29.99, "imageUrl": "/img1.jpg"},
        {"_id": "2", "title": "Product 2", "price": 49.99, "imageUrl": "/img2.jpg"},
    ]
    api = make_api({("GET", "/products"): (200, {"products": products})})

    store = await async_ops.fetch_products(api, Store(), page=2)

    assert store.state.shop.products == tuple(products)
    assert store.state.shop.current_page == 2
    assert store.state.shop.loading is False
    assert [a.type.value for a in store.history] == ["FETCH_PRODUCTS_START", "FETCH_PRODUCTS_SUCCESS"]


@pytest.mark.asyncio
async def test_browse_products_network_error():
    api = make_api({("GET", "/products"): "network"})

    store = await async_ops.fetch_products(api, Store())

    assert store.state.shop.error == "Network Error"
    assert store.state.shop.loading is False
    assert store.state.shop.products == ()


@pytest.mark.asyncio
async def test_browse_products_null_list():
    api = make_api({("GET", "/products"): (200, {"products": None})})

    store = await async_ops.fetch_products(api, Store())

    assert store.state.shop.products == ()
    assert store.state.shop.loading is False
    assert store.state.shop.error is False


@pytest.mark.asyncio
async def test_browse_products_list_body_is_fail():
    api = make_api({("GET", "/products"): (200, [{"_id": "1"}])})

    store = await async_ops.fetch_products(api, Store())

    assert store.state.shop.error == "Malformed response body"
    assert store.state.shop.loading is False
    assert store.state.shop.products == ()


@pytest.mark.asyncio
async def test_product_details_and_not_found():
    product = {"_id": "123", "title": "Test Product", "price": 99.99, "stock": 10}
    api = make_api(
        {
            ("GET", "/products/123"): (200, {"product": product}),
            ("GET", "/products/999"): (404, {"message": "Product not found"}),
        }
    )

    found = await async_ops.get_product(api, "123")
    missing = await async_ops.get_product(api, "999")

    assert found.get_or_else(None) == product
    assert missing.is_left and missing.value.status == 404


@pytest.mark.asyncio
async def test_login_success():
    api = make_api(
        {("POST", "/auth/login"): (200, {"token": "test-token-123", "userId": "user-123", "email": "test@example.com"})}
    )

    store = await async_ops.login(api, Store(), "test@example.com", "password123")

    auth = store.state.auth
    assert (auth.token, auth.user_id, auth.email) == ("test-token-123", "user-123", "test@example.com")
    assert auth.loading is False and auth.error is None


@pytest.mark.asyncio
async def test_login_invalid_credentials():
    api = make_api({("POST", "/auth/login"): (401, {"message": "Invalid credentials"})})

    store = await async_ops.login(api, Store(), "wrong@example.com", "wrongpassword")

    assert store.state.auth.error == "Invalid credentials"
    assert store.state.auth.loading is False
    assert store.state.auth.token == "dummy"


@pytest.mark.asyncio
async def test_signup_email_already_exists():
    api = make_api({("POST", "/auth/signup"): (422, {"message": "Email already exists"})})

    store = await async_ops.signup(api, Store(), "existing@example.com", "password123", "password123")

    assert store.state.auth.error == "Email already exists"


@pytest.mark.asyncio
async def test_admin_login_denied_for_customer():
    api = make_api({("POST", "/auth/admin-login"): (403, {"message": "Access denied"})})

    store = await async_ops.admin_login(api, Store(), "user@example.com", "pass")

    assert store.state.auth.error == "Access denied"


def test_logout(customer_store):
    store = async_ops.logout(customer_store)
    assert store.state.auth.token is None
    assert store.state.auth.user_id is None


# ============ Customer: корзина ============


@pytest.mark.asyncio
async def test_fetch_cart_sends_auth_headers(customer_store):
    seen = []
    cart = {
        "products": [
            {"productId": "1", "title": "Product 1", "quantity": 2, "price": 29.99},
            {"productId": "2", "title": "Product 2", "quantity": 1, "price": 49.99},
        ],
        "totalPrice": 109.97,
    }
    api = make_api({("GET", "/cart"): (200, cart)}, seen)

    store = await async_ops.fetch_cart(api, customer_store)

    assert len(store.state.cart.products) == 2
    assert store.state.cart.total_price == 109.97
    headers = seen[0][3]
    assert headers["Authorization"] == "Bearer valid-token"
    assert headers["UserId"] == "customer-123"


@pytest.mark.asyncio
async def test_add_product_to_cart(customer_store):
    body = {"cart": {"products": [{"productId": "product-123", "quantity": 2, "title": "Test Product", "price": 29.99}]}}
    seen = []
    api = make_api({("POST", "/cart"): (200, body)}, seen)

    store = await async_ops.add_product_to_cart(api, customer_store, "product-123")

    line = store.state.cart.products[0]
    assert (line.product_id, line.quantity) == ("product-123", 2)
    assert seen[0][2] == {"productId": "product-123"}


@pytest.mark.asyncio
async def test_add_product_out_of_stock(customer_store):
    api = make_api({("POST", "/cart"): (400, {"message": "Product out of stock"})})

    store = await async_ops.add_product_to_cart(api, customer_store, "out-of-stock-123")

    assert store.state.cart.error == "Product out of stock"
    assert store.state.cart.loading is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "route, body, operation",
    [
        (("POST", "/cart"), {"cart": None}, lambda api, store: async_ops.add_product_to_cart(api, store, "1")),
        (("POST", "/cart"), {"cart": {"products": None}}, lambda api, store: async_ops.add_product_to_cart(api, store, "1")),
        (("GET", "/cart"), {"cart": None}, async_ops.fetch_cart),
        (("GET", "/cart"), {"products": None, "totalPrice": None}, async_ops.fetch_cart),
    ],
)
async def test_cart_null_fields_mean_empty(customer_store, route, body, operation):
    api = make_api({route: (200, body)})

    store = await operation(api, customer_store)

    assert store.state.cart.products == ()
    assert store.state.cart.total_price == 0
    assert store.state.cart.loading is False


@pytest.mark.asyncio
async def test_remove_product_recomputes_total_locally(customer_store, cart_items):
    store = customer_store.dispatch(
        actions.fetch_cart_success(
            {
                "products": cart_items + [{"productId": "2", "quantity": 1, "price": 49.99}],
                "totalPrice": 109.97,
            }
        )
    )
    api = make_api({("DELETE", "/cart"): (200, {"message": "Product removed"})})

    store = await async_ops.remove_product_from_cart(api, store, "1")

    assert [line.product_id for line in store.state.cart.products] == ["2"]
    assert store.state.cart.total_price == 49.99


@pytest.mark.asyncio
async def test_remove_product_failure_keeps_cart(customer_store, cart_items):
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    api = make_api({("DELETE", "/cart"): "network"})

    result = await async_ops.remove_product_from_cart(api, store, "1")

    assert result.state.cart.products == store.state.cart.products
    assert result.state.cart.error == "Network Error"


# ============ Customer: оформление и заказы ============


@pytest.mark.asyncio
async def test_checkout_pays_then_creates_order(customer_store, cart_items):
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    seen = []
    api = make_api(
        {
            ("POST", "/checkout/validate"): (200, {"valid": True}),
            ("POST", "/payment/process"): (200, {"transactionId": "txn-123", "status": "success"}),
            ("POST", "/create-order"): (
                200,
                {"orderId": "order-456", "products": cart_items, "totalPrice": 59.98, "status": "pending"},
            ),
        },
        seen,
    )

    result = await async_ops.checkout(api, store, "stripe-token")

    assert result.is_right
    assert result.value["orderId"] == "order-456"
    assert [path for _, path, _, _ in seen] == ["/checkout/validate", "/payment/process", "/create-order"]
    validate_body, payment_body, order_body = (body for _, _, body, _ in seen)
    assert validate_body == {"items": [{"productId": "1", "quantity": 2, "price": 29.99}]}
    assert payment_body["amount"] == 59.98
    assert payment_body["token"] == "stripe-token"
    assert order_body["transactionId"] == "txn-123"
    assert order_body["products"] == [{"productId": "1", "quantity": 2, "price": 29.99}]


@pytest.mark.asyncio
async def test_checkout_payment_declined_skips_order(customer_store, cart_items):
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    seen = []
    api = make_api(
        {
            ("POST", "/checkout/validate"): (200, {"valid": True}),
            ("POST", "/payment/process"): (402, {"message": "Payment declined"}),
        },
        seen,
    )

    result = await async_ops.checkout(api, store, "invalid-token")

    assert result.is_left
    assert result.value.status == 402
    assert [path for _, path, _, _ in seen] == ["/checkout/validate", "/payment/process"]
    assert store.state.cart.total_price == 59.98


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, message",
    [(500, "Failed to create order"), (409, "Duplicate order detected")],
)
async def test_checkout_order_creation_failure(customer_store, cart_items, status, message):
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    api = make_api(
        {
            ("POST", "/checkout/validate"): (200, {"valid": True}),
            ("POST", "/payment/process"): (200, {"transactionId": "existing-txn", "status": "success"}),
            ("POST", "/create-order"): (status, {"message": message}),
        }
    )

    result = await async_ops.checkout(api, store, "stripe-token")

    assert result.is_left
    assert result.value.message == message


@pytest.mark.asyncio
async def test_checkout_network_error_preserves_cart(customer_store, cart_items):
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    api = make_api(
        {
            ("POST", "/checkout/validate"): (200, {"valid": True}),
            ("POST", "/payment/process"): "network",
            ("GET", "/cart"): (200, {"products": cart_items, "totalPrice": 59.98}),
        }
    )

    result = await async_ops.checkout(api, store, "stripe-token")
    refreshed = await async_ops.fetch_cart(api, store)

    assert result.value.is_network_error
    assert refreshed.state.cart.products == store.state.cart.products
    assert refreshed.state.cart.total_price == 59.98


@pytest.mark.asyncio
async def test_checkout_empty_cart_sends_nothing(customer_store):
    seen = []
    api = make_api({}, seen)

    result = await async_ops.checkout(api, customer_store, "stripe-token")

    assert result.is_left
    assert result.value.message == async_ops.EMPTY_CART_MESSAGE
    assert not result.value.is_network_error
    assert seen == []


@pytest.mark.asyncio
async def test_checkout_unavailable_item_skips_payment(customer_store, cart_items):
    """Товар закончился: оплата не проводится, корзина остаётся"""
    store = customer_store.dispatch(
        actions.fetch_cart_success({"products": cart_items, "totalPrice": 59.98})
    )
    seen = []
    api = make_api(
        {("POST", "/checkout/validate"): (400, {"message": "Item no longer available"})},
        seen,
    )

    result = await async_ops.checkout(api, store, "stripe-token")

    assert result.is_left
    assert (result.value.status, result.value.message) == (400, "Item no longer available")
    assert [path for _, path, _, _ in seen] == ["/checkout/validate"]
    assert store.state.cart.total_price == 59.98


@pytest.mark.asyncio
async def test_view_orders(customer_store):
    orders = [
        {"orderId": "order-1", "date": "2025-11-01", "total": 59.98, "status": "delivered"},
        {"orderId": "order-2", "date": "2025-11-05", "total": 29.99, "status": "pending"},
    ]
    api = make_api({("GET", "/orders"): (200, {"orders": orders})})

    store = await async_ops.fetch_orders(api, customer_store)

    assert len(store.state.orders.orders) == 2
    assert store.state.orders.orders[0]["orderId"] == "order-1"


@pytest.mark.asyncio
async def test_view_orders_network_error(customer_store):
    api = make_api({("GET", "/orders"): "network"})

    store = await async_ops.fetch_orders(api, customer_store)

    assert store.state.orders.error == "Network Error"
    assert store.state.orders.loading is False


@pytest.mark.asyncio
async def test_view_orders_null_list(customer_store):
    api = make_api({("GET", "/orders"): (200, {"orders": None})})

    store = await async_ops.fetch_orders(api, customer_store)

    assert store.state.orders.orders == ()
    assert store.state.orders.loading is False


# ============ Admin ============


@pytest.fixture
def admin_store():
    return apply_actions(
        Store(),
        (actions.auth_start(), actions.auth_success("admin-token", "admin-123", "admin@example.com")),
    )


@pytest.mark.asyncio
async def test_admin_manages_products(admin_store):
    new_product = {"title": "New Product", "price": 99.99, "stock": 50}
    seen = []
    api = make_api(
        {
            ("POST", "/admin/products"): (200, {"productId": "new-product-id", **new_product}),
            ("PUT", "/admin/products/product-123"): (200, {"_id": "product-123", "title": "Updated Product", "price": 79.99}),
            ("DELETE", "/admin/products/product-123"): (200, {"message": "Product deleted"}),
        },
        seen,
    )

    created = await async_ops.create_product(api, admin_store, new_product)
    updated = await async_ops.update_product(api, admin_store, "product-123", {"title": "Updated Product", "price": 79.99})
    deleted = await async_ops.delete_product(api, admin_store, "product-123")

    assert created.value["productId"] == "new-product-id"
    assert updated.value["price"] == 79.99
    assert deleted.value["message"] == "Product deleted"
    assert all(headers["Authorization"] == "Bearer admin-token" for *_, headers in seen)


@pytest.mark.asyncio
async def test_admin_product_validation_error(admin_store):
    api = make_api(
        {("POST", "/admin/products"): (422, {"message": "Validation failed", "errors": ["Invalid price"]})}
    )

    result = await async_ops.create_product(api, admin_store, {"title": "", "price": -10})

    assert result.is_left
    assert result.value.status == 422


@pytest.mark.asyncio
async def test_admin_views_and_updates_orders(admin_store):
    orders = [
        {"orderId": "order-1", "customerId": "customer-1", "total": 99.99, "status": "pending"},
        {"orderId": "order-2", "customerId": "customer-2", "total": 149.99, "status": "delivered"},
    ]
    api = make_api(
        {
            ("GET", "/admin/orders"): (200, {"orders": orders}),
            ("PATCH", "/admin/orders/order-1"): (200, {"orderId": "order-1", "status": "shipped"}),
        }
    )

    store = await async_ops.fetch_all_orders(api, admin_store)
    updated = await async_ops.update_order_status(api, store, "order-1", "shipped")

    assert store.state.orders.orders == tuple(orders)
    assert updated.value["status"] == "shipped"


def test_run_sync_wrapper():
    api = make_api({("GET", "/products"): (200, {"products": []})})

    store = async_ops.run_sync(async_ops.fetch_products(api, Store(), page=1))

    assert store.state.shop.products == ()
    assert store.state.shop.current_page == 1
