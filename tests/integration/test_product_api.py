"""Integration tests for the read-only catalog endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

pytestmark = pytest.mark.integration

URL = "/api/v1/products/"


@pytest.fixture()
def auth_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


class TestProductList:
    def test_lists_active_products_only(self, auth_client, product_a, make_product):
        make_product(name="Retired", is_active=False)

        response = auth_client.get(URL)

        assert response.status_code == 200
        names = [p["name"] for p in response.json()["results"]]
        assert names == ["Whey Protein"]

    def test_includes_images(self, auth_client, product_a):
        (product,) = auth_client.get(URL).json()["results"]
        assert product["images"][0]["url"] == "https://cdn.example.com/whey.jpg"
        assert product["images"][0]["is_primary"] is True

    def test_filter_by_price_range(self, auth_client, product_a, product_b):
        response = auth_client.get(URL, {"min_price": "20"})
        assert [p["name"] for p in response.json()["results"]] == ["Creatine"]

    def test_filter_in_stock(self, auth_client, product_a, make_product):
        make_product(name="Sold Out", quantity=0)

        response = auth_client.get(URL, {"in_stock": "false"})

        assert [p["name"] for p in response.json()["results"]] == ["Sold Out"]

    def test_search(self, auth_client, product_a, product_b):
        response = auth_client.get(URL, {"search": "creat"})
        assert [p["name"] for p in response.json()["results"]] == ["Creatine"]

    def test_requires_authentication(self, api_client):
        assert api_client.get(URL).status_code == 401


class TestProductDetail:
    def test_retrieve(self, auth_client, product_b):
        response = auth_client.get(f"{URL}{product_b.id}/")

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("25.50")
        assert response.json()["quantity"] == 10

    def test_inactive_product_is_404(self, auth_client, make_product):
        retired = make_product(is_active=False)
        assert auth_client.get(f"{URL}{retired.id}/").status_code == 404

    def test_read_only(self, auth_client, product_a):
        response = auth_client.delete(f"{URL}{product_a.id}/")
        assert response.status_code == 405
