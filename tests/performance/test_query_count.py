"""Performance regression tests: constant query count (N+1 prevention).

List and retrieve endpoints must run a bounded number of SQL queries
regardless of how many orders or items exist, proving the repository's
``select_related`` / ``Prefetch`` chain is applied.
"""

from __future__ import annotations

from decimal import Decimal

import pytest


@pytest.fixture()
def auth_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


@pytest.fixture()
def orders_with_items(order_service, make_order_dto, make_product, customer):
    """Ten orders, each with three lines on products that have images."""
    products = [
        make_product(
            price=Decimal("10.00"),
            quantity=1000,
            image_url=f"https://cdn.example.com/{i}.jpg",
        )
        for i in range(3)
    ]
    return [
        order_service.create_order(
            make_order_dto(customer, [(product, 1) for product in products])
        )
        for _ in range(10)
    ]


class TestOrderListQueryCount:
    def test_list_query_count_is_constant(
        self, auth_client, orders_with_items, django_assert_max_num_queries
    ):
        """COUNT, orders joined with user, items with products, primary images."""
        with django_assert_max_num_queries(5):
            response = auth_client.get("/api/v1/orders/")

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 10
        assert all(o["item_count"] == 3 for o in response.json()["results"])


class TestOrderRetrieveQueryCount:
    def test_retrieve_query_count_is_constant(
        self, auth_client, orders_with_items, django_assert_max_num_queries
    ):
        order = orders_with_items[0]

        with django_assert_max_num_queries(5):
            response = auth_client.get(f"/api/v1/orders/{order.id}/")

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 3
        assert all(item["product_image"].startswith("https://") for item in items)
