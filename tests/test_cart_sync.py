import asyncio

import httpx
import pytest

from storefront.models.remote_cart import CartLineInput, RemoteCart, RemoteCartState
from storefront.services.cart_sync import RemoteCartService
from storefront.services.storefront_client import StorefrontAPIError, StorefrontClient

VARIANT_A = "gid://shopify/ProductVariant/1"
VARIANT_B = "gid://shopify/ProductVariant/2"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(fake_shopify):
    return RemoteCartService(fake_shopify.client())


def test_client_endpoint_and_errors(fake_shopify):
    client = StorefrontClient("https://shop.example.com/", "test-token", api_version="2024-10")
    assert client.endpoint == "https://shop.example.com/api/2024-10/graphql.json"

    fake_shopify.graphql_errors = [{"message": "Throttled"}]

    async def scenario():
        shopify_client = fake_shopify.client()
        try:
            await shopify_client.request("query GetCart { cart(id: $cartId) { id } }", {"cartId": "x"})
        finally:
            await shopify_client.close()

    with pytest.raises(StorefrontAPIError, match="Throttled"):
        run(scenario())


def test_create_cart_records_id(service, fake_shopify):
    cart = run(service.create_cart())

    assert isinstance(cart, RemoteCart)
    assert service.cart_id == cart.id
    assert service.state == RemoteCartState.CREATED
    assert service.checkout_url == cart.checkout_url
    assert fake_shopify.operations() == ["cartCreate"]


def test_create_cart_with_initial_lines(service):
    cart = run(service.create_cart([CartLineInput(merchandise_id=VARIANT_A, quantity=2)]))

    assert cart.total_quantity == 2
    assert cart.lines[0].merchandise.id == VARIANT_A


def test_create_cart_user_errors_do_not_record_id(service):
    cart = run(service.create_cart([CartLineInput(merchandise_id="gid://shopify/ProductVariant/404")]))

    assert cart is None
    assert service.cart_id is None
    assert service.state == RemoteCartState.FAILED
    assert service.last_errors == ["The merchandise does not exist."]


def test_create_cart_transport_failure(service, fake_shopify):
    fake_shopify.fail_status = 503

    assert run(service.create_cart()) is None
    assert service.cart_id is None
    assert service.state == RemoteCartState.FAILED


def test_add_line_creates_then_extends_cart(service, fake_shopify):
    async def scenario():
        first = await service.add_line(VARIANT_A, 1)
        second = await service.add_line(VARIANT_B, 3)
        return first, second

    first, second = run(scenario())

    assert first.id == second.id
    assert second.total_quantity == 4
    assert fake_shopify.operations() == ["cartCreate", "cartLinesAdd", "GetCart", "cartLinesAdd"]
    assert service.state == RemoteCartState.SYNCED


def test_get_or_create_resumes_known_cart(fake_shopify):
    existing = run(RemoteCartService(fake_shopify.client()).create_cart())
    fake_shopify.calls.clear()

    service = RemoteCartService(fake_shopify.client(), cart_id=existing.id)
    cart = run(service.get_or_create_cart())

    assert cart.id == existing.id
    assert fake_shopify.operations() == ["GetCart"]


def test_get_or_create_replaces_expired_cart(fake_shopify):
    service = RemoteCartService(fake_shopify.client())
    service.set_cart_id("gid://shopify/Cart/expired")

    cart = run(service.get_or_create_cart())

    assert cart.id != "gid://shopify/Cart/expired"
    assert service.cart_id == cart.id
    assert fake_shopify.operations() == ["GetCart", "cartCreate"]


def test_add_line_user_error(service):
    assert run(service.add_line("gid://shopify/ProductVariant/404")) is None
    assert service.state == RemoteCartState.FAILED


def test_add_line_rejects_bad_quantity_without_calls(service, fake_shopify):
    assert run(service.add_line(VARIANT_A, 0)) is None
    assert fake_shopify.calls == []


def test_update_and_remove_need_a_cart(service, fake_shopify):
    assert run(service.update_line_quantity("gid://shopify/CartLine/1", 2)) is None
    assert run(service.remove_line("gid://shopify/CartLine/1")) is None
    assert fake_shopify.calls == []


def test_update_and_remove_lines(service):
    async def scenario():
        cart = await service.add_line(VARIANT_A, 1)
        line_id = cart.lines[0].id
        updated = await service.update_line_quantity(line_id, 5)
        removed = await service.remove_line(line_id)
        return updated, removed

    updated, removed = run(scenario())

    assert updated.lines[0].quantity == 5
    assert removed.lines == []
    assert removed.total_quantity == 0


def test_remove_unknown_line_is_failure(service):
    async def scenario():
        await service.add_line(VARIANT_A, 1)
        return await service.remove_line("gid://shopify/CartLine/999")

    assert run(scenario()) is None
    assert service.last_errors == ["The line does not exist."]


def test_graphql_errors_are_failures(service, fake_shopify):
    fake_shopify.graphql_errors = [{"message": "Access denied"}]

    assert run(service.create_cart()) is None
    assert service.state == RemoteCartState.FAILED
    assert "Access denied" in service.last_errors[0]


def service_returning(body):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    return RemoteCartService(StorefrontClient("shop.example.com", "test-token", transport=transport))


def test_user_error_with_unexpected_field_shape():
    service = service_returning(
        {"data": {"cartCreate": {"cart": None, "userErrors": [{"field": "lines", "message": "bad"}]}}}
    )

    assert run(service.create_cart()) is None
    assert service.cart_id is None
    assert service.state == RemoteCartState.FAILED
    assert service.last_errors == ["bad"]


@pytest.mark.parametrize(
    "body",
    [
        ["not", "an", "object"],
        "maintenance",
        {"data": ["cartCreate"]},
        {"data": {"cartCreate": "nope"}},
    ],
)
def test_malformed_response_is_failure(body):
    service = service_returning(body)

    assert run(service.create_cart()) is None
    assert run(service.add_line(VARIANT_A)) is None
    assert service.state == RemoteCartState.FAILED


def test_network_error_is_failure():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = StorefrontClient("shop.example.com", "test-token", transport=httpx.MockTransport(unreachable))
    service = RemoteCartService(client)

    assert run(service.add_line(VARIANT_A)) is None
    assert service.state == RemoteCartState.FAILED


def test_remote_cart_transform(service):
    cart = run(service.add_line(VARIANT_A, 2))

    view = cart.to_cart()

    assert view.items[0].id == cart.lines[0].id
    assert view.items[0].variant_id == VARIANT_A
    assert view.items[0].product.price == 50.00
    assert view.items[0].product.images == ["https://cdn.example/p.jpg"]
    assert view.subtotal == 100.00
    assert view.tax == 0.0
    assert view.shipping == 0.0
    assert view.total == 100.00
