"""Error taxonomy for the access layer and the screens.

Two families:
- Storage errors (StorageAccessError, DuplicateKeyError) come out of the
  access objects and always chain the driver failure that caused them.
- Client-side precondition errors (KeyChangeRejected, NoSelectionError,
  FieldValidationError) are raised before any storage call is made.

Every error carries ``message``, the exact text a screen shows the user.

Tier 1 leaf module: stdlib only.
"""


class RecordbookError(Exception):
    """Base class for every error Recordbook raises on purpose.

    Attributes:
        message: Human-readable text, safe to display as-is.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageAccessError(RecordbookError):
    """A statement could not be executed or a connection could not be opened.

    Attributes:
        message: Operation-level description ("Error fetching all customers.").
        cause: The underlying store failure. Also set as ``__cause__`` when
            raised with ``from``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DuplicateKeyError(StorageAccessError):
    """The store rejected an insert because the (composite) key already exists."""


# ---------------------------------------------------------------------------
# Client-side preconditions
# ---------------------------------------------------------------------------


class KeyChangeRejected(RecordbookError):
    """An update tried to change a key component. Storage was never called.

    Attributes:
        loaded_key: The key as last loaded from storage.
        edited_key: The key read back from the edited fields.
    """

    def __init__(
        self,
        message: str,
        loaded_key: tuple[str, ...],
        edited_key: tuple[str, ...],
    ) -> None:
        super().__init__(message)
        self.loaded_key = loaded_key
        self.edited_key = edited_key


class NoSelectionError(RecordbookError):
    """An update or delete was attempted with no record selected."""


class FieldValidationError(RecordbookError):
    """A form field could not be parsed (e.g. a non-numeric price).

    Attributes:
        field: Name of the offending form field.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
