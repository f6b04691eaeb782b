"""Shared FastAPI dependencies — connection provider and access objects.

One module-level provider singleton. Route handlers reach it through
Depends() and never construct a provider themselves. The app factory
replaces the in-memory default with whatever STORE_BACKEND selects;
tests override get_provider with their own InMemoryStore.

Tier 2 service module: imports from hooks/* (Tier 2), hooks/interfaces
(Tier 1), data/* (Tier 2), config (Tier 2).

Usage:
    from recordbook.api.deps import get_customer_dao

    @router.get("")
    def list_customers(dao: CustomerDao = Depends(get_customer_dao)): ...
"""

import logging

from fastapi import Depends

from recordbook.config import Settings
from recordbook.data.baskets import FruitBasketDao
from recordbook.data.customers import CustomerDao
from recordbook.data.purchases import PurchaseDao
from recordbook.data.students import StudentDao
from recordbook.hooks.interfaces import ConnectionProvider
from recordbook.hooks.memory import InMemoryStore

logger = logging.getLogger("recordbook")

# ---------------------------------------------------------------------------
# Provider singleton (the swap point)
# ---------------------------------------------------------------------------

_provider: ConnectionProvider = InMemoryStore()


def create_provider(settings: Settings) -> ConnectionProvider:
    """Builds the provider STORE_BACKEND names.

    Args:
        settings: Application settings. For sqlserver, the connection
            values have already been checked by get_settings().

    Returns:
        A concrete ConnectionProvider.

    Raises:
        ValueError: If the backend name is not recognized.
    """
    if settings.store_backend == "memory":
        return InMemoryStore()

    if settings.store_backend == "sqlserver":
        # Local import: pyodbc needs the system ODBC library at import time,
        # and the memory backend should not.
        from recordbook.hooks.sqlserver import SqlServerConnectionProvider

        return SqlServerConnectionProvider(settings.database)

    raise ValueError(
        f"Unknown store backend: {settings.store_backend!r}. "
        f"Expected 'memory' or 'sqlserver'."
    )


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_provider() -> ConnectionProvider:
    """Returns the connection provider singleton."""
    return _provider


def get_student_dao(provider: ConnectionProvider = Depends(get_provider)) -> StudentDao:
    return StudentDao(provider)


def get_customer_dao(provider: ConnectionProvider = Depends(get_provider)) -> CustomerDao:
    return CustomerDao(provider)


def get_basket_dao(provider: ConnectionProvider = Depends(get_provider)) -> FruitBasketDao:
    return FruitBasketDao(provider)


def get_purchase_dao(provider: ConnectionProvider = Depends(get_provider)) -> PurchaseDao:
    return PurchaseDao(provider)
