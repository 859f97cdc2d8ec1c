"""Tests for the brand directory and the health endpoints."""
import pytest

from app.brands.service import BrandService
from app.core.exceptions import NotFoundException


class TestBrandService:

    def test_list_all(self):
        brands = BrandService.list_brands()
        assert [b["name"] for b in brands] == ["Nike", "Starbucks", "Samsung"]

    def test_search_name_or_email(self):
        assert [b["id"] for b in BrandService.list_brands(search="STAR")] == ["brand-2"]
        assert [b["id"] for b in BrandService.list_brands(search="samsung.com")] == ["brand-3"]
        assert BrandService.list_brands(search="adidas") == []

    def test_status_filter(self):
        assert len(BrandService.list_brands(status="Active")) == 3
        assert BrandService.list_brands(status="Inactive") == []

    def test_results_are_copies(self):
        BrandService.list_brands()[0]["name"] = "Changed"
        assert BrandService.get_brand("brand-1")["name"] == "Nike"

    def test_unknown_brand(self):
        with pytest.raises(NotFoundException):
            BrandService.get_brand("brand-99")


class TestBrandsApi:

    async def test_list(self, client):
        response = await client.get("/api/brands", params={"search": "nike"})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["brands"][0]["social"]["instagram"] == "@nike"

    async def test_get(self, client):
        response = await client.get("/api/brands/brand-2")
        assert response.status_code == 200
        assert response.json()["name"] == "Starbucks"

        response = await client.get("/api/brands/brand-99")
        assert response.status_code == 404


class TestHealth:

    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["endpoints"]["market"] == "/api/market"

    async def test_health_reports_database(self, client):
        response = await client.get("/health")
        assert response.json()["database"] == "connected"
