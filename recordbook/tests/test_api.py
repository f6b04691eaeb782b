"""Tests for the HTTP surface — app wiring, routers, and error envelopes.

Covers: health endpoint, CRUD routes for all four entities, joined reads,
the update body ({selected, fields}), and the mapping of every domain
error onto a status code and ApiResponse error code.

Uses httpx.AsyncClient with ASGITransport (async test client). All tests use
explicit @pytest.mark.asyncio per strict mode. Every test gets a fresh
InMemoryStore through app.dependency_overrides.
"""

import logging
from dataclasses import replace

import httpx
import pytest
from fastapi import APIRouter
from httpx import ASGITransport

from recordbook.api import deps
from recordbook.api.deps import get_provider
from recordbook.config import get_settings
from recordbook.hooks.interfaces import StoreError
from recordbook.hooks.memory import InMemoryStore
from recordbook.main import _init_store, app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clears dependency overrides after each test."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def api_store() -> InMemoryStore:
    """A fresh store wired into the app for one test."""
    store = InMemoryStore()
    app.dependency_overrides[get_provider] = lambda: store
    return store


@pytest.fixture
def client(api_store: InMemoryStore) -> httpx.AsyncClient:
    """Async test client wired to the app."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


_CUSTOMER = {"account_no": "C1", "name": "Alice", "delivery_address": "1 Main St"}
_BASKET = {"basket_no": "B1", "name": "Tropical", "price": "12.50"}
_PURCHASE = {"account_no": "C1", "basket_no": "B1", "purchase_date": "2024-01-15"}


# Unhandled-exception route, mounted once.
_test_router = APIRouter(prefix="/api/v1/test")


@_test_router.get("/explode")
async def exploding_route() -> dict:
    raise RuntimeError("Something went terribly wrong")


app.include_router(_test_router)


# ---------------------------------------------------------------------------
# Health and generic errors
# ---------------------------------------------------------------------------


class TestAppWiring:
    """Envelopes, handlers, health and request logging."""

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "data": {"status": "healthy"}, "error": None}

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_generic_500(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/test/explode")
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "terribly" not in body["error"]["message"]

    @pytest.mark.asyncio
    async def test_unknown_route_wrapped(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/nowhere")
        assert resp.status_code == 404
        assert resp.json()["ok"] is False
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_requests_are_logged(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="recordbook"):
            async with client:
                await client.get("/api/v1/health")
        assert any("GET /api/v1/health 200" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class TestCustomerRoutes:
    """Customer routes end to end over the in-memory store."""

    @pytest.mark.asyncio
    async def test_create_then_get(self, client: httpx.AsyncClient) -> None:
        async with client:
            created = await client.post("/api/v1/customers", json=_CUSTOMER)
            fetched = await client.get("/api/v1/customers/C1")
        assert created.status_code == 201
        assert fetched.json()["data"] == _CUSTOMER

    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/customers/ghost")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_duplicate_is_409(self, client: httpx.AsyncClient) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            resp = await client.post("/api/v1/customers", json=_CUSTOMER)
        assert resp.status_code == 409
        assert resp.json()["error"] == {
            "code": "DUPLICATE_KEY",
            "message": "A customer with this AccountNo already exists.",
        }

    @pytest.mark.asyncio
    async def test_update_non_key_fields(self, client: httpx.AsyncClient) -> None:
        edited = {**_CUSTOMER, "name": "Alicia"}
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            resp = await client.put(
                "/api/v1/customers", json={"selected": _CUSTOMER, "fields": edited}
            )
            listed = await client.get("/api/v1/customers")
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Alicia"
        assert listed.json()["data"] == [edited]

    @pytest.mark.asyncio
    async def test_key_change_is_409_and_never_stored(
        self, client: httpx.AsyncClient, api_store: InMemoryStore
    ) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            resp = await client.put(
                "/api/v1/customers",
                json={"selected": _CUSTOMER, "fields": {**_CUSTOMER, "account_no": "C2"}},
            )
        assert resp.status_code == 409
        assert resp.json()["error"] == {
            "code": "KEY_CHANGE_REJECTED",
            "message": "Cannot update customer account number!",
        }
        assert not any(proc == "uspUpdateCustomer" for proc, _ in api_store.calls)

    @pytest.mark.asyncio
    async def test_update_without_selection_is_400(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.put("/api/v1/customers", json={"fields": _CUSTOMER})
        assert resp.status_code == 400
        assert resp.json()["error"] == {
            "code": "NO_SELECTION",
            "message": "No customer selected!",
        }

    @pytest.mark.asyncio
    async def test_delete_referenced_customer_is_503(self, client: httpx.AsyncClient) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            await client.post("/api/v1/baskets", json=_BASKET)
            await client.post("/api/v1/purchases", json=_PURCHASE)
            resp = await client.delete("/api/v1/customers/C1")
        assert resp.status_code == 503
        assert resp.json()["error"] == {
            "code": "STORAGE_ERROR",
            "message": "Error deleting customer with AccountNo: C1",
        }

    @pytest.mark.asyncio
    async def test_delete_missing_is_ok(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.delete("/api/v1/customers/ghost")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_with_baskets(self, client: httpx.AsyncClient) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            await client.post("/api/v1/baskets", json=_BASKET)
            await client.post("/api/v1/purchases", json=_PURCHASE)
            resp = await client.get("/api/v1/customers/with-baskets")
        data = resp.json()["data"]
        assert data == [
            {
                "customer": _CUSTOMER,
                "baskets": [{"basket_no": "B1", "name": "Tropical", "price": 12.5}],
            }
        ]


# ---------------------------------------------------------------------------
# Baskets, students, purchases
# ---------------------------------------------------------------------------


class TestOtherRoutes:
    """Student, basket and purchase routes."""

    @pytest.mark.asyncio
    async def test_bad_price_is_422(
        self, client: httpx.AsyncClient, api_store: InMemoryStore
    ) -> None:
        async with client:
            resp = await client.post("/api/v1/baskets", json={**_BASKET, "price": "cheap"})
        assert resp.status_code == 422
        assert resp.json()["error"] == {
            "code": "VALIDATION_ERROR",
            "message": "Price must be a decimal value!",
        }
        assert api_store.calls == []

    @pytest.mark.asyncio
    async def test_missing_field_is_422(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.post("/api/v1/baskets", json={"name": "No number"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
        assert resp.json()["error"]["message"].startswith("basket_no: ")

    @pytest.mark.asyncio
    async def test_basket_with_customers(self, client: httpx.AsyncClient) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            await client.post("/api/v1/baskets", json=_BASKET)
            await client.post("/api/v1/purchases", json=_PURCHASE)
            resp = await client.get("/api/v1/baskets/with-customers")
        data = resp.json()["data"]
        assert data[0]["basket"]["basket_no"] == "B1"
        assert data[0]["customers"] == [_CUSTOMER]

    @pytest.mark.asyncio
    async def test_student_crud(self, client: httpx.AsyncClient) -> None:
        student = {"personal_no": "S1", "name": "Ada", "email": "ada@example.com"}
        async with client:
            await client.post("/api/v1/students", json=student)
            updated = await client.put(
                "/api/v1/students",
                json={"selected": student, "fields": {**student, "email": "a@l.org"}},
            )
            deleted = await client.delete("/api/v1/students/S1")
            listed = await client.get("/api/v1/students")
        assert updated.json()["data"]["email"] == "a@l.org"
        assert deleted.status_code == 200
        assert listed.json()["data"] == []

    @pytest.mark.asyncio
    async def test_student_with_courses(
        self, client: httpx.AsyncClient, api_store: InMemoryStore
    ) -> None:
        student = {"personal_no": "S1", "name": "Ada", "email": "ada@example.com"}
        async with client:
            await client.post("/api/v1/students", json=student)
            api_store.seed_course("DB101", "Databases", 7)
            api_store.seed_enrollment("S1", "DB101")
            resp = await client.get("/api/v1/students/with-courses")
        assert resp.json()["data"] == [
            {
                "student": student,
                "courses": [{"course_code": "DB101", "name": "Databases", "credits": 7}],
            }
        ]

    @pytest.mark.asyncio
    async def test_purchase_composite_key_routes(self, client: httpx.AsyncClient) -> None:
        async with client:
            await client.post("/api/v1/customers", json=_CUSTOMER)
            await client.post("/api/v1/baskets", json=_BASKET)
            await client.post("/api/v1/purchases", json=_PURCHASE)
            dup = await client.post("/api/v1/purchases", json=_PURCHASE)
            fetched = await client.get("/api/v1/purchases/C1/B1")
            key_change = await client.put(
                "/api/v1/purchases",
                json={"selected": _PURCHASE, "fields": {**_PURCHASE, "basket_no": "B2"}},
            )
            deleted = await client.delete("/api/v1/purchases/C1/B1")
            missing = await client.get("/api/v1/purchases/C1/B1")

        assert dup.status_code == 409
        assert fetched.json()["data"] == _PURCHASE
        assert key_change.status_code == 409
        assert deleted.status_code == 200
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_storage_failure_is_503(
        self, client: httpx.AsyncClient, failing_provider
    ) -> None:
        app.dependency_overrides[get_provider] = lambda: failing_provider()
        async with client:
            resp = await client.get("/api/v1/baskets")
        assert resp.status_code == 503
        assert resp.json()["error"] == {
            "code": "STORAGE_ERROR",
            "message": "Error fetching all baskets.",
        }


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


class TestStartup:
    """create_app() builds the store and fails fast when it cannot be reached."""

    def test_memory_backend_installs_fresh_store(self, monkeypatch) -> None:
        monkeypatch.setattr(deps, "_provider", None)
        _init_store(replace(get_settings(), store_backend="memory"))
        assert isinstance(deps._provider, InMemoryStore)

    def test_unreachable_store_is_fatal(self, monkeypatch, failing_provider) -> None:
        previous = deps._provider
        monkeypatch.setattr(deps, "create_provider", lambda settings: failing_provider())

        with pytest.raises(StoreError):
            _init_store(replace(get_settings(), store_backend="sqlserver"))
        assert deps._provider is previous

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValueError, match="oracle"):
            deps.create_provider(replace(get_settings(), store_backend="oracle"))
