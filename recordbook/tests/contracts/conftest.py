"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance. Today there's only the
stub ("stub" param). A SQL Server run needs a live, empty database with the
procedures installed, so it is added as a second param value and an elif
branch on a machine that has one.

To test another ConnectionProvider against the contracts:
    1. Add your param string (e.g., "sqlserver") to the params list.
    2. Add an elif branch that yields your provider instance.
    3. Run: python -m pytest recordbook/tests/contracts/ -v
    All tests should pass. If any fail, your provider doesn't satisfy the
    contract — read the failing test's docstring for what's expected.

The access layer is synchronous, so these are plain pytest fixtures.
"""

import pytest

from recordbook.data.baskets import FruitBasketDao
from recordbook.data.customers import CustomerDao
from recordbook.data.purchases import PurchaseDao
from recordbook.data.students import StudentDao
from recordbook.hooks.memory import InMemoryStore


# ---------------------------------------------------------------------------
# Interface fixture (parameterized for future implementations)
# ---------------------------------------------------------------------------


@pytest.fixture(params=["stub"])
def provider(request):
    """Yields a ConnectionProvider backed by an empty store.

    Add your provider here:
        @pytest.fixture(params=["stub", "sqlserver"])
        def provider(request):
            if request.param == "stub":
                yield InMemoryStore()
            elif request.param == "sqlserver":
                provider = SqlServerConnectionProvider(test_database_settings)
                yield provider
                truncate_all_tables(provider)  # if needed
    """
    if request.param == "stub":
        yield InMemoryStore()


# ---------------------------------------------------------------------------
# Access objects over the provider
# ---------------------------------------------------------------------------


@pytest.fixture
def students(provider) -> StudentDao:
    return StudentDao(provider)


@pytest.fixture
def customers(provider) -> CustomerDao:
    return CustomerDao(provider)


@pytest.fixture
def baskets(provider) -> FruitBasketDao:
    return FruitBasketDao(provider)


@pytest.fixture
def purchases(provider) -> PurchaseDao:
    return PurchaseDao(provider)
