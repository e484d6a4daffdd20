import json
import itertools

import httpx
import pytest

from storefront.database.storage import MemoryStorage
from storefront.database.carts import CartStore
from storefront.models.product import Product
from storefront.services.storefront_client import StorefrontClient

STORE_DOMAIN = "eonlife-test.myshopify.com"


class FakeShopify:
    """
    In-memory stand-in for the Storefront GraphQL cart API.

    Knows a fixed set of variants; anything else is rejected with a
    userError, like the real API does.
    """

    def __init__(self, variants=None):
        self.variants = variants or {
            "gid://shopify/ProductVariant/1": 50.00,
            "gid://shopify/ProductVariant/2": 20.00,
            "gid://shopify/ProductVariant/3": 20.00,
        }
        self.carts: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, dict]] = []
        self.fail_status = None
        self.graphql_errors = None
        self._ids = itertools.count(1)
        self.transport = httpx.MockTransport(self.handle)

    def client(self) -> StorefrontClient:
        return StorefrontClient(STORE_DOMAIN, "test-token", transport=self.transport)

    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    # ==================== Transport ====================

    def handle(self, request: httpx.Request) -> httpx.Response:
        assert request.headers["X-Shopify-Storefront-Access-Token"] == "test-token"
        body = json.loads(request.content)
        query, variables = body["query"], body["variables"]

        name = next(
            op for op in ("cartCreate", "cartLinesAdd", "cartLinesUpdate", "cartLinesRemove", "GetCart")
            if op in query
        )
        self.calls.append((name, variables))

        if self.fail_status:
            return httpx.Response(self.fail_status, text="upstream error")
        if self.graphql_errors:
            return httpx.Response(200, json={"errors": self.graphql_errors})

        handler = getattr(self, f"_{name}")
        return httpx.Response(200, json={"data": handler(variables)})

    # ==================== Operations ====================

    def _GetCart(self, variables):
        cart_id = variables["cartId"]
        if cart_id not in self.carts:
            return {"cart": None}
        return {"cart": self._render(cart_id)}

    def _cartCreate(self, variables):
        errors = self._validate(variables.get("lines", []))
        if errors:
            return {"cartCreate": {"cart": None, "userErrors": errors}}

        cart_id = f"gid://shopify/Cart/{next(self._ids)}"
        self.carts[cart_id] = []
        self._add(cart_id, variables.get("lines", []))
        return {"cartCreate": {"cart": self._render(cart_id), "userErrors": []}}

    def _cartLinesAdd(self, variables):
        errors = self._validate(variables["lines"])
        if errors:
            return {"cartLinesAdd": {"cart": None, "userErrors": errors}}

        self._add(variables["cartId"], variables["lines"])
        return {"cartLinesAdd": {"cart": self._render(variables["cartId"]), "userErrors": []}}

    def _cartLinesUpdate(self, variables):
        lines = self.carts[variables["cartId"]]
        for update in variables["lines"]:
            for line in lines:
                if line["id"] == update["id"]:
                    line["quantity"] = update["quantity"]
        self.carts[variables["cartId"]] = [line for line in lines if line["quantity"] > 0]
        return {"cartLinesUpdate": {"cart": self._render(variables["cartId"]), "userErrors": []}}

    def _cartLinesRemove(self, variables):
        cart_id = variables["cartId"]
        known = {line["id"] for line in self.carts[cart_id]}
        missing = [line_id for line_id in variables["lineIds"] if line_id not in known]
        if missing:
            return {
                "cartLinesRemove": {
                    "cart": None,
                    "userErrors": [{"field": ["lineIds"], "message": "The line does not exist."}],
                }
            }
        self.carts[cart_id] = [line for line in self.carts[cart_id] if line["id"] not in variables["lineIds"]]
        return {"cartLinesRemove": {"cart": self._render(cart_id), "userErrors": []}}

    # ==================== Helpers ====================

    def _validate(self, lines):
        return [
            {"field": ["lines", str(i), "merchandiseId"], "message": "The merchandise does not exist."}
            for i, line in enumerate(lines)
            if line["merchandiseId"] not in self.variants
        ]

    def _add(self, cart_id, lines):
        cart = self.carts[cart_id]
        for line in lines:
            existing = next((l for l in cart if l["merchandiseId"] == line["merchandiseId"]), None)
            if existing:
                existing["quantity"] += line["quantity"]
            else:
                cart.append({
                    "id": f"gid://shopify/CartLine/{next(self._ids)}",
                    "merchandiseId": line["merchandiseId"],
                    "quantity": line["quantity"],
                })

    def _render(self, cart_id):
        lines = self.carts[cart_id]
        subtotal = sum(self.variants[l["merchandiseId"]] * l["quantity"] for l in lines)
        money = lambda amount: {"amount": f"{amount:.2f}", "currencyCode": "USD"}
        return {
            "id": cart_id,
            "checkoutUrl": f"https://{STORE_DOMAIN}/cart/c/{cart_id.rsplit('/', 1)[-1]}",
            "totalQuantity": sum(l["quantity"] for l in lines),
            "cost": {
                "totalAmount": money(subtotal),
                "subtotalAmount": money(subtotal),
                "totalTaxAmount": None,
            },
            "lines": {
                "edges": [
                    {
                        "node": {
                            "id": l["id"],
                            "quantity": l["quantity"],
                            "merchandise": {
                                "id": l["merchandiseId"],
                                "title": "Default Title",
                                "price": money(self.variants[l["merchandiseId"]]),
                                "product": {
                                    "id": "gid://shopify/Product/" + l["merchandiseId"].rsplit("/", 1)[-1],
                                    "title": "Test Product",
                                    "handle": "test-product",
                                    "featuredImage": {"url": "https://cdn.example/p.jpg", "altText": None},
                                },
                            },
                        }
                    }
                    for l in lines
                ]
            },
        }


@pytest.fixture
def fake_shopify():
    return FakeShopify()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return CartStore(storage=storage)


def _make_product(product_id="p1", price=50.00, variant_ids=None, name=None):
    variants = None
    if variant_ids:
        variants = [
            {"id": vid, "name": f"Variant {vid}", "price": price, "inStock": True}
            for vid in variant_ids
        ]
    return Product.model_validate({
        "id": product_id,
        "name": name or f"Product {product_id}",
        "price": price,
        "images": [f"https://cdn.example/{product_id}.jpg"],
        "inStock": True,
        "variants": variants,
    })


@pytest.fixture
def make_product():
    return _make_product
