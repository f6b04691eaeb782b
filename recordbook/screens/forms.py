"""Edit forms — raw text fields as a screen holds them.

A form is what the user typed, before any parsing. to_record() turns it
into a record or raises FieldValidationError; from_record() fills the
fields when a record is selected. The API layer accepts these same forms
as request bodies, so parsing rules live in exactly one place.
"""

import math

from pydantic import BaseModel

from recordbook.errors import FieldValidationError
from recordbook.schemas import Customer, FruitBasket, Purchase, Student


class StudentForm(BaseModel):
    """Fields of the student screen."""

    personal_no: str
    name: str = ""
    email: str = ""

    @classmethod
    def from_record(cls, record: Student) -> "StudentForm":
        return cls(personal_no=record.personal_no, name=record.name, email=record.email)

    def to_record(self) -> Student:
        return Student(personal_no=self.personal_no, name=self.name, email=self.email)


class CustomerForm(BaseModel):
    """Fields of the customer screen."""

    account_no: str
    name: str = ""
    delivery_address: str = ""

    @classmethod
    def from_record(cls, record: Customer) -> "CustomerForm":
        return cls(
            account_no=record.account_no,
            name=record.name,
            delivery_address=record.delivery_address,
        )

    def to_record(self) -> Customer:
        return Customer(
            account_no=self.account_no,
            name=self.name,
            delivery_address=self.delivery_address,
        )


class FruitBasketForm(BaseModel):
    """Fields of the fruit basket screen. price is raw text until parsed."""

    basket_no: str
    name: str = ""
    price: str = ""

    @classmethod
    def from_record(cls, record: FruitBasket) -> "FruitBasketForm":
        return cls(basket_no=record.basket_no, name=record.name, price=str(record.price))

    def to_record(self) -> FruitBasket:
        """Parses the price and builds the basket.

        Raises:
            FieldValidationError: If price is not a finite decimal number.
        """
        return FruitBasket(basket_no=self.basket_no, name=self.name, price=parse_price(self.price))


class PurchaseForm(BaseModel):
    """Fields of the purchase screen."""

    account_no: str
    basket_no: str
    purchase_date: str = ""

    @classmethod
    def from_record(cls, record: Purchase) -> "PurchaseForm":
        return cls(
            account_no=record.account_no,
            basket_no=record.basket_no,
            purchase_date=record.purchase_date,
        )

    def to_record(self) -> Purchase:
        return Purchase(
            account_no=self.account_no,
            basket_no=self.basket_no,
            purchase_date=self.purchase_date,
        )


def parse_price(text: str) -> float:
    """Parses a price field. Surrounding whitespace is ignored.

    Raises:
        FieldValidationError: On anything that is not a finite number.
    """
    try:
        price = float(text.strip())
    except ValueError:
        raise FieldValidationError("price", "Price must be a decimal value!") from None
    if not math.isfinite(price):
        raise FieldValidationError("price", "Price must be a decimal value!")
    return price
