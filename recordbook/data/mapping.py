"""Declarative row-to-record mapping.

Each access object declares, per record type, which result column feeds
which field. The mapping is pure: one row in, one record out, no coercion
beyond what the store's native column types and pydantic's standard
validation already do.

The joined reads need a second trick: the same record type is fed from
different column names ("Name" on uspGetAllCustomers, "CustomerName" on
uspGetAllPurchases), so a ColumnMap describes one result shape, not one
record type.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from recordbook.hooks.interfaces import Row

RecordT = TypeVar("RecordT", bound=BaseModel)
RelatedT = TypeVar("RelatedT", bound=BaseModel)
GroupT = TypeVar("GroupT")


class RowMappingError(Exception):
    """A result row did not have the shape its ColumnMap expects."""


@dataclass(frozen=True)
class ColumnMap(Generic[RecordT]):
    """Maps result columns onto the fields of one record type.

    Attributes:
        model: The record class to build.
        columns: Field name -> result column name, in the record's
            natural field order.
        key_fields: The fields that form the record's key, in key order.
    """

    model: type[RecordT]
    columns: Mapping[str, str]
    key_fields: tuple[str, ...]

    def to_record(self, row: Row) -> RecordT:
        """Builds one record from one row.

        Raises:
            RowMappingError: If a column is missing or a value does not fit
                the field's type.
        """
        try:
            values = {field: row[column] for field, column in self.columns.items()}
        except KeyError as exc:
            raise RowMappingError(
                f"Result row for {self.model.__name__} has no column {exc.args[0]!r}"
            ) from exc
        try:
            return self.model(**values)
        except ValidationError as exc:
            raise RowMappingError(f"Result row does not fit {self.model.__name__}: {exc}") from exc

    def key_of_row(self, row: Row) -> tuple:
        """Reads the record key straight from a row, without building the record."""
        try:
            return tuple(row[self.columns[field]] for field in self.key_fields)
        except KeyError as exc:
            raise RowMappingError(
                f"Result row for {self.model.__name__} has no key column {exc.args[0]!r}"
            ) from exc

    def params(self, record: RecordT) -> tuple:
        """The record's field values in declared column order."""
        return tuple(getattr(record, field) for field in self.columns)


def group_joined_rows(
    rows: Iterable[Row],
    primary: ColumnMap[RecordT],
    related: ColumnMap[RelatedT],
    build: Callable[[RecordT, list[RelatedT]], GroupT],
) -> list[GroupT]:
    """Folds a flat one-row-per-pair stream into one group per primary key.

    The primary record is built on first sight of its key; every row,
    including that first one, appends one related record. Groups come out
    in order of first appearance, related records in row order.

    Args:
        rows: The joined result rows.
        primary: Mapping for the grouping side (e.g. the customer columns).
        related: Mapping for the repeated side (e.g. the basket columns).
        build: Turns (primary, related list) into the projection type.

    Returns:
        One built projection per distinct primary key.
    """
    groups: dict[tuple, tuple[RecordT, list[RelatedT]]] = {}
    for row in rows:
        key = primary.key_of_row(row)
        group = groups.get(key)
        if group is None:
            group = groups[key] = (primary.to_record(row), [])
        group[1].append(related.to_record(row))
    return [build(record, related_records) for record, related_records in groups.values()]
