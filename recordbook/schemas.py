"""Core data models — shared Pydantic types for Recordbook.

Every row read from the store, every form a screen submits, and every API
response flows through these types.

Base records (Student, Course, Customer, FruitBasket, Purchase) are plain
mutable models. A screen never edits a loaded record in place: an update
builds a new record and swaps it in once the store has accepted it.
They carry no relationship lists. Joined reads return the frozen projection
types below instead, so nobody mistakes a one-off read for a live graph.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Usage:
    from recordbook.schemas import Customer, CustomerWithBaskets, ApiResponse
"""

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


# ---------------------------------------------------------------------------
# Base records
# ---------------------------------------------------------------------------


def _date_to_text(value: Any) -> Any:
    """Renders driver date values (date, datetime) as ISO date text."""
    if isinstance(value, date):
        return value.isoformat()[:10]
    return value


IsoDateText = Annotated[str, BeforeValidator(_date_to_text)]
"""A date carried as "YYYY-MM-DD" text, whatever type the store returned."""


class Student(BaseModel):
    """A student, keyed by personal number."""

    personal_no: str
    name: str
    email: str

    @property
    def key(self) -> tuple[str, ...]:
        return (self.personal_no,)


class Course(BaseModel):
    """A course, keyed by course code. Only ever read through a student join."""

    course_code: str
    name: str
    credits: int

    @property
    def key(self) -> tuple[str, ...]:
        return (self.course_code,)


class Customer(BaseModel):
    """A customer, keyed by account number."""

    account_no: str
    name: str
    delivery_address: str

    @property
    def key(self) -> tuple[str, ...]:
        return (self.account_no,)


class FruitBasket(BaseModel):
    """A fruit basket, keyed by basket number."""

    basket_no: str
    name: str
    price: float

    @property
    def key(self) -> tuple[str, ...]:
        return (self.basket_no,)


class Purchase(BaseModel):
    """A customer buying a basket. Composite key (account_no, basket_no).

    purchase_date is ISO date text. A driver date value is converted on the
    way in, so SQL Server DATE columns and the in-memory store read the same.
    """

    account_no: str
    basket_no: str
    purchase_date: IsoDateText

    @property
    def key(self) -> tuple[str, ...]:
        return (self.account_no, self.basket_no)


# ---------------------------------------------------------------------------
# Read-only projections (joined reads)
# ---------------------------------------------------------------------------


class StudentWithCourses(BaseModel):
    """One student and the courses they are enrolled in, in row order."""

    model_config = ConfigDict(frozen=True)

    student: Student
    courses: list[Course] = Field(default_factory=list)

    @classmethod
    def from_group(cls, primary: Student, related: list[Course]) -> "StudentWithCourses":
        return cls(student=primary, courses=related)


class CustomerWithBaskets(BaseModel):
    """One customer and every basket they have purchased, in row order."""

    model_config = ConfigDict(frozen=True)

    customer: Customer
    baskets: list[FruitBasket] = Field(default_factory=list)

    @classmethod
    def from_group(cls, primary: Customer, related: list[FruitBasket]) -> "CustomerWithBaskets":
        return cls(customer=primary, baskets=related)


class FruitBasketWithCustomers(BaseModel):
    """One basket and every customer who bought it, in row order."""

    model_config = ConfigDict(frozen=True)

    basket: FruitBasket
    customers: list[Customer] = Field(default_factory=list)

    @classmethod
    def from_group(
        cls, primary: FruitBasket, related: list[Customer]
    ) -> "FruitBasketWithCustomers":
        return cls(basket=primary, customers=related)


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "DUPLICATE_KEY", "KEY_CHANGE_REJECTED",
    "STORAGE_ERROR". message is the human-readable text a screen displays.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
