"""In-memory store — development stub for ConnectionProvider.

Python dict-backed tables that answer the same stored-procedure calls the
SQL Server database does, with the same parameter order and result
columns. Failures carry SQL Server native error numbers so access objects
cannot tell the difference:

    2627  unique constraint violation (duplicate key on insert; 2601 is the
          unique-index variant and is treated the same)
    547   foreign key conflict (insert with a dangling reference, or delete
          of a row something else still references)
    2812  unknown procedure
    201   too few parameters
    8144  too many parameters

Rows come back in insertion order, like a heap scanned without ORDER BY.
Data lives only in memory and is lost on restart.

Every call is recorded in ``calls`` so tests can assert that a rejected
operation never reached storage.

Usage:
    from recordbook.hooks.memory import InMemoryStore

    store = InMemoryStore()
    with store.connect() as connection:
        connection.call("uspAddCustomer", ("C1", "Alice", "123 Main St"))
"""

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from recordbook.hooks.interfaces import ConnectionProvider, Row, StoreConnection, StoreError

UNIQUE_VIOLATION = 2627
UNIQUE_INDEX_VIOLATION = 2601
REFERENCE_CONFLICT = 547
UNKNOWN_PROCEDURE = 2812
MISSING_PARAMETER = 201
TOO_MANY_PARAMETERS = 8144


class _MemoryConnection(StoreConnection):
    """Routes calls to the owning store. Valid only inside connect()."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store
        self.closed = False

    def call(self, procedure: str, params: Sequence[Any] = ()) -> list[Row]:
        if self.closed:
            raise StoreError("The connection is closed.")
        return self._store.execute(procedure, tuple(params))


class InMemoryStore(ConnectionProvider):
    """STUB — dict-backed tables behind the real procedure names.

    Courses and enrollments have no procedures of their own (the database
    manages them elsewhere), so seed_course() and seed_enrollment() fill
    them directly.
    """

    unique_violation_codes = frozenset({UNIQUE_VIOLATION, UNIQUE_INDEX_VIOLATION})

    def __init__(self) -> None:
        """Initialises empty tables and the procedure table."""
        self._students: dict[str, Row] = {}
        self._courses: dict[str, Row] = {}
        self._enrollments: list[tuple[str, str]] = []
        self._customers: dict[str, Row] = {}
        self._baskets: dict[str, Row] = {}
        self._purchases: dict[tuple[str, str], str] = {}

        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.open_connections = 0

        self._procedures: dict[str, tuple[int, Callable[..., list[Row]]]] = {
            # Students
            "uspGetAllStudents": (0, self._get_all_students),
            "uspGetStudentByPersonalNo": (1, self._get_student),
            "uspInsertStudent": (3, self._insert_student),
            "uspUpdateStudent": (3, self._update_student),
            "uspDeleteStudent": (1, self._delete_student),
            "uspGetAllStudentsWithDepartments": (0, self._get_students_with_courses),
            # Customers
            "uspGetAllCustomers": (0, self._get_all_customers),
            "uspGetCustomerByAccountNo": (1, self._get_customer),
            "uspAddCustomer": (3, self._add_customer),
            "uspUpdateCustomer": (3, self._update_customer),
            "uspDeleteCustomer": (1, self._delete_customer),
            # Baskets
            "uspGetAllBaskets": (0, self._get_all_baskets),
            "uspGetBasketByBasketNo": (1, self._get_basket),
            "uspAddBasket": (3, self._add_basket),
            "uspUpdateBasket": (3, self._update_basket),
            "uspDeleteBasket": (1, self._delete_basket),
            # Purchases
            "uspGetAllPurchases": (0, self._get_all_purchases),
            "uspGetPurchaseByAccountNoBasketNo": (2, self._get_purchase),
            "uspAddPurchase": (3, self._add_purchase),
            "uspUpdatePurchase": (3, self._update_purchase),
            "uspDeletePurchase": (2, self._delete_purchase),
        }

    # -- ConnectionProvider ------------------------------------------------

    @contextmanager
    def connect(self) -> Iterator[StoreConnection]:
        connection = _MemoryConnection(self)
        self.open_connections += 1
        try:
            yield connection
        finally:
            connection.closed = True
            self.open_connections -= 1

    def execute(self, procedure: str, params: tuple[Any, ...]) -> list[Row]:
        """Runs one procedure against the tables. Records the call first."""
        self.calls.append((procedure, params))
        entry = self._procedures.get(procedure)
        if entry is None:
            raise StoreError(
                f"Could not find stored procedure '{procedure}'.", UNKNOWN_PROCEDURE
            )
        arity, handler = entry
        if len(params) < arity:
            raise StoreError(
                f"Procedure or function '{procedure}' expects {arity} parameters, "
                f"which were not supplied.",
                MISSING_PARAMETER,
            )
        if len(params) > arity:
            raise StoreError(
                f"Procedure or function {procedure} has too many arguments specified.",
                TOO_MANY_PARAMETERS,
            )
        return handler(*params)

    # -- Seeding (not part of the procedure surface) ---------------------

    def seed_course(self, course_code: str, name: str, credits: int) -> None:
        """Adds or replaces a course row."""
        self._courses[course_code] = {"CourseCode": course_code, "Name": name, "Credits": credits}

    def seed_enrollment(self, personal_no: str, course_code: str) -> None:
        """Enrolls an existing student in an existing course.

        Raises:
            StoreError: With code 547 if either side does not exist.
        """
        if personal_no not in self._students or course_code not in self._courses:
            raise StoreError(
                "The INSERT statement conflicted with the FOREIGN KEY constraint "
                "on table 'Enrollment'.",
                REFERENCE_CONFLICT,
            )
        self._enrollments.append((personal_no, course_code))

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _duplicate(table: str, key: str) -> StoreError:
        return StoreError(
            f"Violation of PRIMARY KEY constraint 'PK_{table}'. Cannot insert duplicate "
            f"key in object 'dbo.{table}'. The duplicate key value is ({key}).",
            UNIQUE_VIOLATION,
        )

    @staticmethod
    def _referenced(statement: str, table: str) -> StoreError:
        return StoreError(
            f"The {statement} statement conflicted with the REFERENCE constraint "
            f"on table 'dbo.{table}'.",
            REFERENCE_CONFLICT,
        )

    # -- Students ----------------------------------------------------------

    def _get_all_students(self) -> list[Row]:
        return [dict(row) for row in self._students.values()]

    def _get_student(self, personal_no: str) -> list[Row]:
        row = self._students.get(personal_no)
        return [dict(row)] if row else []

    def _insert_student(self, personal_no: str, name: str, email: str) -> list[Row]:
        if personal_no in self._students:
            raise self._duplicate("Student", personal_no)
        self._students[personal_no] = {"PersonalNo": personal_no, "Name": name, "Email": email}
        return []

    def _update_student(self, personal_no: str, name: str, email: str) -> list[Row]:
        row = self._students.get(personal_no)
        if row is not None:
            row.update(Name=name, Email=email)
        return []

    def _delete_student(self, personal_no: str) -> list[Row]:
        if any(pno == personal_no for pno, _ in self._enrollments):
            raise self._referenced("DELETE", "Enrollment")
        self._students.pop(personal_no, None)
        return []

    def _get_students_with_courses(self) -> list[Row]:
        rows = []
        for personal_no, course_code in self._enrollments:
            student = self._students[personal_no]
            course = self._courses[course_code]
            rows.append({
                "StudentPersonalNo": student["PersonalNo"],
                "StudentName": student["Name"],
                "StudentEmail": student["Email"],
                "CourseCode": course["CourseCode"],
                "CourseName": course["Name"],
                "CourseCredits": course["Credits"],
            })
        return rows

    # -- Customers ---------------------------------------------------------

    def _get_all_customers(self) -> list[Row]:
        return [dict(row) for row in self._customers.values()]

    def _get_customer(self, account_no: str) -> list[Row]:
        row = self._customers.get(account_no)
        return [dict(row)] if row else []

    def _add_customer(self, account_no: str, name: str, address: str) -> list[Row]:
        if account_no in self._customers:
            raise self._duplicate("Customer", account_no)
        self._customers[account_no] = {"AccountNo": account_no, "Name": name, "Address": address}
        return []

    def _update_customer(self, account_no: str, name: str, address: str) -> list[Row]:
        row = self._customers.get(account_no)
        if row is not None:
            row.update(Name=name, Address=address)
        return []

    def _delete_customer(self, account_no: str) -> list[Row]:
        if any(acct == account_no for acct, _ in self._purchases):
            raise self._referenced("DELETE", "Purchase")
        self._customers.pop(account_no, None)
        return []

    # -- Baskets -----------------------------------------------------------

    def _get_all_baskets(self) -> list[Row]:
        return [dict(row) for row in self._baskets.values()]

    def _get_basket(self, basket_no: str) -> list[Row]:
        row = self._baskets.get(basket_no)
        return [dict(row)] if row else []

    def _add_basket(self, basket_no: str, name: str, price: float) -> list[Row]:
        if basket_no in self._baskets:
            raise self._duplicate("FruitBasket", basket_no)
        self._baskets[basket_no] = {"BasketNo": basket_no, "Name": name, "Price": price}
        return []

    def _update_basket(self, basket_no: str, name: str, price: float) -> list[Row]:
        row = self._baskets.get(basket_no)
        if row is not None:
            row.update(Name=name, Price=price)
        return []

    def _delete_basket(self, basket_no: str) -> list[Row]:
        if any(bno == basket_no for _, bno in self._purchases):
            raise self._referenced("DELETE", "Purchase")
        self._baskets.pop(basket_no, None)
        return []

    # -- Purchases ---------------------------------------------------------

    def _get_all_purchases(self) -> list[Row]:
        rows = []
        for (account_no, basket_no), purchase_date in self._purchases.items():
            customer = self._customers[account_no]
            basket = self._baskets[basket_no]
            rows.append({
                "AccountNo": account_no,
                "CustomerName": customer["Name"],
                "DeliveryAddress": customer["Address"],
                "BasketNo": basket_no,
                "BasketName": basket["Name"],
                "Price": basket["Price"],
                "PurchaseDate": purchase_date,
            })
        return rows

    def _get_purchase(self, account_no: str, basket_no: str) -> list[Row]:
        purchase_date = self._purchases.get((account_no, basket_no))
        if purchase_date is None:
            return []
        return [{"PurchaseDate": purchase_date}]

    def _add_purchase(self, basket_no: str, account_no: str, purchase_date: str) -> list[Row]:
        if (account_no, basket_no) in self._purchases:
            raise self._duplicate("Purchase", f"{account_no}, {basket_no}")
        if account_no not in self._customers or basket_no not in self._baskets:
            raise StoreError(
                "The INSERT statement conflicted with the FOREIGN KEY constraint "
                "on table 'dbo.Purchase'.",
                REFERENCE_CONFLICT,
            )
        self._purchases[(account_no, basket_no)] = purchase_date
        return []

    def _update_purchase(self, account_no: str, basket_no: str, purchase_date: str) -> list[Row]:
        if (account_no, basket_no) in self._purchases:
            self._purchases[(account_no, basket_no)] = purchase_date
        return []

    def _delete_purchase(self, account_no: str, basket_no: str) -> list[Row]:
        self._purchases.pop((account_no, basket_no), None)
        return []
