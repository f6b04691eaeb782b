"""Shared test fixtures for the access layer, screens and API.

Factory-pattern fixtures that return callables accepting **overrides.

Fixtures:
    store: A fresh, empty InMemoryStore
    make_student / make_customer / make_basket / make_purchase: Record factories
    failing_provider: Factory for a provider whose every call fails
"""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import pytest

from recordbook.hooks.interfaces import ConnectionProvider, Row, StoreConnection, StoreError
from recordbook.hooks.memory import InMemoryStore
from recordbook.schemas import Customer, FruitBasket, Purchase, Student


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryStore:
    """A fresh, empty in-memory store."""
    return InMemoryStore()


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_student():
    """Returns a factory for Student records. Override any field via kwargs."""

    def _make(**overrides) -> Student:
        defaults = {"personal_no": "19900101-1234", "name": "Ada", "email": "ada@example.com"}
        defaults.update(overrides)
        return Student(**defaults)

    return _make


@pytest.fixture
def make_customer():
    """Returns a factory for Customer records."""

    def _make(**overrides) -> Customer:
        defaults = {"account_no": "C1", "name": "Alice", "delivery_address": "1 Main St"}
        defaults.update(overrides)
        return Customer(**defaults)

    return _make


@pytest.fixture
def make_basket():
    """Returns a factory for FruitBasket records."""

    def _make(**overrides) -> FruitBasket:
        defaults = {"basket_no": "B1", "name": "Tropical", "price": 12.5}
        defaults.update(overrides)
        return FruitBasket(**defaults)

    return _make


@pytest.fixture
def make_purchase():
    """Returns a factory for Purchase records."""

    def _make(**overrides) -> Purchase:
        defaults = {"account_no": "C1", "basket_no": "B1", "purchase_date": "2024-01-15"}
        defaults.update(overrides)
        return Purchase(**defaults)

    return _make


# ---------------------------------------------------------------------------
# Failing provider
# ---------------------------------------------------------------------------


class _FailingConnection(StoreConnection):
    def __init__(self, error: StoreError) -> None:
        self._error = error

    def call(self, procedure: str, params: Sequence[Any] = ()) -> list[Row]:
        raise self._error


class _FailingProvider(ConnectionProvider):
    """Every connect() (or every call, with on_call=True) raises the given error."""

    unique_violation_codes = frozenset({2627, 2601})

    def __init__(self, error: StoreError, on_call: bool) -> None:
        self._error = error
        self._on_call = on_call

    @contextmanager
    def connect(self) -> Iterator[StoreConnection]:
        if not self._on_call:
            raise self._error
        yield _FailingConnection(self._error)


@pytest.fixture
def failing_provider():
    """Returns a factory for providers that always fail.

    Defaults to a connection that cannot be opened. Pass on_call=True to
    fail on the procedure call instead, and native_code to choose the
    store's error number.
    """

    def _make(
        message: str = "Login failed for user 'sa'.",
        native_code: int | None = 18456,
        on_call: bool = False,
    ) -> ConnectionProvider:
        return _FailingProvider(StoreError(message, native_code), on_call)

    return _make
