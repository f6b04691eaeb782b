"""Access object base — one stored-procedure call per operation.

EntityDao implements the uniform contract once: get_all, get_by_key, save,
update, delete_by_key. A concrete access object only declares its
procedure names, its ColumnMap, and its duplicate-key message, plus any
parameter-order quirks its procedures have.

Every operation opens a scoped connection from the injected provider,
makes exactly one call, and lets the provider release the connection on
the way out. Store failures become StorageAccessError (DuplicateKeyError
for the provider's unique-violation signal) with the original failure
chained. Nothing is retried.

update() does not check that the key is unchanged — that is the caller's
precondition (see recordbook.screens.base.ensure_key_unchanged).
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from recordbook.data.mapping import ColumnMap, RowMappingError, group_joined_rows
from recordbook.errors import DuplicateKeyError, StorageAccessError
from recordbook.hooks.interfaces import ConnectionProvider, Row, StoreError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
GroupT = TypeVar("GroupT", bound=BaseModel)
T = TypeVar("T")


@dataclass(frozen=True)
class Procedures:
    """Server-side procedure names for the five uniform operations."""

    get_all: str
    get_by_key: str
    save: str
    update: str
    delete: str


@dataclass(frozen=True)
class JoinedRead:
    """A joined "with related records" read.

    Attributes:
        procedure: Procedure returning one row per (primary, related) pair.
        primary: Columns for the grouping side.
        related: Columns for the repeated side.
        build: Projection constructor, (primary, related list) -> group.
        failure_message: StorageAccessError text when the read fails.
    """

    procedure: str
    primary: ColumnMap
    related: ColumnMap
    build: Callable[[Any, list[Any]], Any]
    failure_message: str


class EntityDao(Generic[RecordT]):
    """Uniform access-object contract over one record type.

    Subclasses set the class attributes below. Keys are passed positionally
    in key order: ``dao.get_by_key("C1")``, ``dao.get_by_key("C1", "B1")``.
    """

    entity: ClassVar[str]
    entity_plural: ClassVar[str]
    procedures: ClassVar[Procedures]
    columns: ClassVar[ColumnMap]
    duplicate_message: ClassVar[str]

    def __init__(self, provider: ConnectionProvider) -> None:
        self._provider = provider

    # -- Contract ------------------------------------------------------------

    def get_all(self) -> list[RecordT]:
        """Returns every record. Empty list, never None, when there are none.

        Raises:
            StorageAccessError: On any connection or query failure.
        """
        failure = f"Error fetching all {self.entity_plural}."
        rows = self._call(self.procedures.get_all, (), failure)
        return self._mapped(failure, lambda: [self.columns.to_record(row) for row in rows])

    def get_by_key(self, *key: str) -> RecordT | None:
        """Returns the record with this key, or None when no row matches.

        Raises:
            StorageAccessError: On any connection or query failure.
        """
        key = self._check_key(key)
        failure = f"Error fetching {self.entity} with {self.describe_key(key)}"
        rows = self._call(self.procedures.get_by_key, key, failure)
        if not rows:
            return None
        return self._mapped(failure, lambda: self.record_from_lookup(key, rows[0]))

    def save(self, record: RecordT) -> None:
        """Inserts a new record.

        Raises:
            DuplicateKeyError: If the store reports the key already exists.
            StorageAccessError: On any other failure.
        """
        self._call(
            self.procedures.save,
            self.save_params(record),
            f"Error saving {self.entity}: {self.format_key(record.key)}",
            duplicate_message=self.duplicate_message,
        )

    def update(self, record: RecordT) -> None:
        """Updates the non-key fields of the record stored under record.key.

        Raises:
            StorageAccessError: On any connection or query failure.
        """
        self._call(
            self.procedures.update,
            self.update_params(record),
            f"Error updating {self.entity}: {self.format_key(record.key)}",
        )

    def delete_by_key(self, *key: str) -> None:
        """Deletes the record with this key. A missing key is a silent no-op.

        Raises:
            StorageAccessError: On any connection or query failure, including
                the store refusing to delete a row that is still referenced.
        """
        key = self._check_key(key)
        self._call(
            self.procedures.delete,
            key,
            f"Error deleting {self.entity} with {self.describe_key(key)}",
        )

    # -- Per-entity hooks ----------------------------------------------------

    def save_params(self, record: RecordT) -> tuple:
        """Parameters for the insert procedure, in declaration order."""
        return self.columns.params(record)

    def update_params(self, record: RecordT) -> tuple:
        """Parameters for the update procedure, in declaration order."""
        return self.columns.params(record)

    def record_from_lookup(self, key: tuple[str, ...], row: Row) -> RecordT:
        """Builds the record returned by get_by_key from its single row."""
        return self.columns.to_record(row)

    # -- Messages ------------------------------------------------------------

    def describe_key(self, key: Sequence[str]) -> str:
        """Column-labelled key for messages: "AccountNo: C1, BasketNo: B1"."""
        labels = [self.columns.columns[field] for field in self.columns.key_fields]
        return ", ".join(f"{label}: {value}" for label, value in zip(labels, key))

    @staticmethod
    def format_key(key: Sequence[str]) -> str:
        return ", ".join(key)

    # -- Plumbing ------------------------------------------------------------

    def _check_key(self, key: tuple[str, ...]) -> tuple[str, ...]:
        expected = len(self.columns.key_fields)
        if len(key) != expected:
            raise TypeError(
                f"{type(self).__name__} keys have {expected} component(s), got {len(key)}"
            )
        return key

    def _call(
        self,
        procedure: str,
        params: tuple,
        failure: str,
        duplicate_message: str | None = None,
    ) -> list[Row]:
        """Runs one procedure on a fresh scoped connection.

        Logs the procedure name and native error code only, never parameter
        values or driver text (driver text can echo key values back).
        """
        logger.debug("CALL %s (%d params)", procedure, len(params))
        try:
            with self._provider.connect() as connection:
                return connection.call(procedure, params)
        except StoreError as exc:
            if duplicate_message is not None and self._provider.is_unique_violation(exc):
                logger.info("%s rejected a duplicate key", procedure)
                raise DuplicateKeyError(duplicate_message, exc) from exc
            logger.warning("%s failed (native code %s)", procedure, exc.native_code)
            raise StorageAccessError(failure, exc) from exc

    def _mapped(self, failure: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except RowMappingError as exc:
            logger.warning("%s result did not map: %s", self.entity, exc)
            raise StorageAccessError(failure, exc) from exc


class JoinedEntityDao(EntityDao[RecordT], Generic[RecordT, GroupT]):
    """An access object that also offers a joined "with related" read."""

    joined: ClassVar[JoinedRead]

    def get_all_with_related(self) -> list[GroupT]:
        """Returns one projection per primary record, related records in row order.

        Raises:
            StorageAccessError: On any connection or query failure.
        """
        joined = self.joined
        rows = self._call(joined.procedure, (), joined.failure_message)
        return self._mapped(
            joined.failure_message,
            lambda: group_joined_rows(rows, joined.primary, joined.related, joined.build),
        )
