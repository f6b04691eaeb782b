"""Hook interfaces — the contract between access objects and a relational store.

Access objects never import a database driver. They ask a ConnectionProvider
for a scoped connection, make exactly one stored-procedure call on it, and
let the provider release it. Swapping SQL Server for the in-memory store
(tests, local development) is a one-line change in recordbook.api.deps.

Tier 1 leaf module: imports only from abc, collections.abc, contextlib, typing.

To implement a real store, subclass ConnectionProvider and StoreConnection
and implement every abstract method. Python will raise TypeError at
instantiation if any method is missing.

Usage:
    from recordbook.hooks.interfaces import ConnectionProvider, StoreError

    with provider.connect() as connection:
        rows = connection.call("uspGetAllCustomers")
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import AbstractContextManager
from typing import Any

# One result row, keyed by column name exactly as the procedure returns it.
Row = dict[str, Any]


class StoreError(Exception):
    """Driver-neutral failure raised by a provider or one of its connections.

    Covers both "could not connect" and "the call failed". Access objects
    catch this and nothing else from the store.

    Attributes:
        message: The driver's error text.
        native_code: The store's own error number, if it reported one
            (SQL Server: 2627 for a unique constraint violation).
    """

    def __init__(self, message: str, native_code: int | None = None) -> None:
        self.message = message
        self.native_code = native_code
        super().__init__(message)


class StoreConnection(ABC):
    """A live connection, valid only inside its provider's connect() block."""

    @abstractmethod
    def call(self, procedure: str, params: Sequence[Any] = ()) -> list[Row]:
        """Executes one stored procedure with positional parameters.

        Args:
            procedure: Server-side procedure name, e.g. "uspAddCustomer".
            params: Values bound in order. Order and count must match the
                procedure's declaration exactly.

        Returns:
            The result rows, or an empty list for procedures that return
            no result set.

        Raises:
            StoreError: If the store rejects the call.
        """
        ...


class ConnectionProvider(ABC):
    """Hands out short-lived, scoped connections. No pooling, no retry.

    unique_violation_codes is the store-specific conflict indicator: the
    native error numbers that mean "this key already exists".
    """

    unique_violation_codes: frozenset[int] = frozenset()

    @abstractmethod
    def connect(self) -> AbstractContextManager[StoreConnection]:
        """Acquires a connection for one operation.

        The connection is committed and released when the block exits
        normally, rolled back and released when it exits with an exception.

        Raises:
            StoreError: If no connection can be opened.
        """
        ...

    def ping(self) -> None:
        """Opens and releases one connection. Used at startup to fail fast.

        Raises:
            StoreError: If no connection can be opened.
        """
        with self.connect():
            pass

    def is_unique_violation(self, error: StoreError) -> bool:
        """Returns True if the error is this store's duplicate-key signal."""
        return error.native_code is not None and error.native_code in self.unique_violation_codes
