"""SQL Server connection provider — pyodbc over the Microsoft ODBC driver.

Opens one connection per operation from the five configured values, calls
the procedure with ODBC call escape syntax, and converts every pyodbc.Error
into a StoreError carrying the SQL Server native error number.

Usage:
    from recordbook.hooks.sqlserver import SqlServerConnectionProvider

    provider = SqlServerConnectionProvider(settings.database)
    with provider.connect() as connection:
        connection.call("uspGetCustomerByAccountNo", ("C1",))
"""

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import pyodbc

from recordbook.config import DatabaseSettings
from recordbook.hooks.interfaces import ConnectionProvider, Row, StoreConnection, StoreError

logger = logging.getLogger(__name__)

# Violation of PRIMARY KEY / UNIQUE constraint, and of a unique index.
SQLSERVER_UNIQUE_VIOLATIONS = frozenset({2627, 2601})

# pyodbc puts the native error number in parentheses right before the
# failing ODBC function name: "... (2627) (SQLExecDirectW)".
_NATIVE_CODE_RE = re.compile(r"\((\d+)\)\s*\(SQL\w+\)")


def native_error_code(exc: pyodbc.Error) -> int | None:
    """Extracts the SQL Server native error number from a pyodbc error."""
    for arg in exc.args:
        if isinstance(arg, str):
            match = _NATIVE_CODE_RE.search(arg)
            if match:
                return int(match.group(1))
    return None


def build_connection_string(settings: DatabaseSettings) -> str:
    """Builds an ODBC connection string from the configured values."""
    trust = "yes" if settings.trust_server_certificate else "no"
    return (
        f"DRIVER={{{settings.driver}}};"
        f"SERVER={settings.server},{settings.port};"
        f"DATABASE={settings.name};"
        f"UID={settings.user};"
        f"PWD={settings.password};"
        f"Encrypt=yes;"
        f"TrustServerCertificate={trust};"
    )


def call_statement(procedure: str, param_count: int) -> str:
    """ODBC call escape for a procedure: {CALL name(?, ?)} or {CALL name}."""
    if param_count == 0:
        return f"{{CALL {procedure}}}"
    placeholders = ", ".join("?" * param_count)
    return f"{{CALL {procedure}({placeholders})}}"


def _release(action: Callable[[], None], what: str) -> None:
    """Runs a cleanup call on a connection that may already be dead.

    A driver failure here is logged and dropped; the StoreError that led to
    the cleanup (if any) is the one the caller sees.
    """
    try:
        action()
    except pyodbc.Error as exc:
        logger.warning("%s failed (native code %s)", what, native_error_code(exc))


class _PyodbcConnection(StoreConnection):
    """StoreConnection over one open pyodbc connection."""

    def __init__(self, connection: pyodbc.Connection) -> None:
        self._connection = connection

    def call(self, procedure: str, params: Sequence[Any] = ()) -> list[Row]:
        try:
            cursor = self._connection.cursor()
        except pyodbc.Error as exc:
            raise StoreError(str(exc), native_error_code(exc)) from exc
        try:
            cursor.execute(call_statement(procedure, len(params)), *params)
            # Row-count messages from procedures without SET NOCOUNT ON come
            # through as result sets with no description; skip past them.
            while cursor.description is None:
                if not cursor.nextset():
                    return []
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        except pyodbc.Error as exc:
            raise StoreError(str(exc), native_error_code(exc)) from exc
        finally:
            _release(cursor.close, "Cursor close")


class SqlServerConnectionProvider(ConnectionProvider):
    """Connection-per-call provider for SQL Server."""

    unique_violation_codes = SQLSERVER_UNIQUE_VIOLATIONS

    def __init__(self, settings: DatabaseSettings) -> None:
        settings.require_complete()
        self._settings = settings
        self._connection_string = build_connection_string(settings)

    @contextmanager
    def connect(self) -> Iterator[StoreConnection]:
        try:
            connection = pyodbc.connect(self._connection_string)
        except pyodbc.Error as exc:
            logger.warning(
                "Could not connect to %s,%d/%s",
                self._settings.server,
                self._settings.port,
                self._settings.name,
            )
            raise StoreError(str(exc), native_error_code(exc)) from exc

        try:
            yield _PyodbcConnection(connection)
            try:
                connection.commit()
            except pyodbc.Error as exc:
                raise StoreError(str(exc), native_error_code(exc)) from exc
        except Exception:
            _release(connection.rollback, "Rollback")
            raise
        finally:
            _release(connection.close, "Connection close")
