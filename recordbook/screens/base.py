"""View controllers — the state behind one table-and-form screen.

A screen holds the last loaded list, the selected record (if any) and the
last message shown to the user. It does no persistence itself: every
action goes through the screen's access object. Two rules live here and
nowhere else:

- Add vs update: with nothing selected the primary action saves a new
  record; with a record selected it updates that record. Any successful
  action clears the selection, which puts the screen back in add mode.
- Key immutability: an update whose edited key differs from the selected
  record's key is rejected before storage is touched.

Errors never escape a screen action. RecordbookError of any kind is turned
into ``error_message``; the action returns False.

Usage:
    screen = CustomerScreen(CustomerDao(provider))
    screen.load()
    screen.select(screen.records[0])
    screen.submit(CustomerForm(account_no="C1", name="Alicia", ...))
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Generic, Literal, TypeVar

from pydantic import BaseModel

from recordbook.data.base import EntityDao
from recordbook.errors import (
    KeyChangeRejected,
    NoSelectionError,
    RecordbookError,
    StorageAccessError,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
FormT = TypeVar("FormT", bound=BaseModel)


def ensure_key_unchanged(
    loaded: RecordT,
    edited: RecordT,
    key_of: Callable[[RecordT], tuple],
    message: str,
) -> None:
    """Rejects an edit that changes any component of the record's key.

    Args:
        loaded: The record as last loaded from storage.
        edited: The record built from the edited fields.
        key_of: Extracts the key tuple from a record.
        message: The entity-specific text to show when the key changed.

    Raises:
        KeyChangeRejected: If any key component differs.
    """
    loaded_key = key_of(loaded)
    edited_key = key_of(edited)
    if loaded_key != edited_key:
        raise KeyChangeRejected(message, loaded_key, edited_key)


@dataclass(frozen=True)
class ScreenMessages:
    """Entity-specific texts for client-side rejections."""

    key_change: str
    no_selection: str
    no_selection_delete: str


class EntityScreen(Generic[RecordT, FormT]):
    """Generic controller for one entity's screen.

    Subclasses set ``title`` (plural noun used in load errors), ``form_type``
    and ``messages``.
    """

    title: ClassVar[str]
    form_type: ClassVar[type]
    messages: ClassVar[ScreenMessages]

    def __init__(self, dao: EntityDao[RecordT]) -> None:
        self.dao = dao
        self.records: list[RecordT] = []
        self.selected: RecordT | None = None
        self.fields: FormT | None = None
        self.error_message = ""

    @property
    def mode(self) -> Literal["add", "update"]:
        return "add" if self.selected is None else "update"

    @staticmethod
    def key_of(record: RecordT) -> tuple:
        return record.key

    # -- Selection -----------------------------------------------------------

    def select(self, record: RecordT | None) -> None:
        """Selects a record and fills the fields from it. None clears."""
        if record is None:
            self.clear()
            return
        self.selected = record
        self.fields = self.form_type.from_record(record)

    def clear(self) -> None:
        """Drops the selection and the field contents. Back to add mode."""
        self.selected = None
        self.fields = None

    # -- Actions -------------------------------------------------------------

    def load(self) -> list[RecordT]:
        """Reloads the list. On failure keeps the old list and shows why."""
        self.error_message = ""
        try:
            self.records = self.dao.get_all()
        except StorageAccessError as exc:
            self._show(f"Error loading {self.title}: {exc.message}")
        return self.records

    def submit(self, form: FormT) -> bool:
        """The primary action: add in add mode, update in update mode."""
        if self.mode == "add":
            return self._run(lambda: self.add(form))
        return self._run(lambda: self.update(form))

    def delete(self) -> bool:
        """Deletes the selected record."""
        return self._run(self._delete_selected)

    # -- Operations (raise; _run turns errors into messages) ----------------

    def add(self, form: FormT) -> None:
        self.dao.save(form.to_record())

    def update(self, form: FormT) -> None:
        """Stores the form as the new state of the selected record.

        The loaded list keeps the old record until the store accepts the
        new one; then the new one takes its place and becomes the selection.

        Raises:
            NoSelectionError: If nothing is selected.
            FieldValidationError: If the form does not parse.
            KeyChangeRejected: If the form changes the key.
        """
        selected = self.selected
        if selected is None:
            raise NoSelectionError(self.messages.no_selection)
        edited = form.to_record()
        ensure_key_unchanged(selected, edited, self.key_of, self.messages.key_change)
        self.dao.update(edited)
        self.records = [edited if record is selected else record for record in self.records]
        self.selected = edited

    def _delete_selected(self) -> None:
        if self.selected is None:
            raise NoSelectionError(self.messages.no_selection_delete)
        self.dao.delete_by_key(*self.key_of(self.selected))

    def _run(self, action: Callable[[], None]) -> bool:
        self.error_message = ""
        try:
            action()
        except RecordbookError as exc:
            logger.info("%s screen: %s", self.title, type(exc).__name__)
            self._show(exc.message)
            return False
        self.load()
        self.clear()
        return True

    def _show(self, message: str) -> None:
        self.error_message = message
