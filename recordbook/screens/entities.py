"""The four screens: students, customers, fruit baskets, purchases."""

from recordbook.schemas import Customer, FruitBasket, Purchase, Student
from recordbook.screens.base import EntityScreen, ScreenMessages
from recordbook.screens.forms import CustomerForm, FruitBasketForm, PurchaseForm, StudentForm


class StudentScreen(EntityScreen[Student, StudentForm]):
    title = "students"
    form_type = StudentForm
    messages = ScreenMessages(
        key_change="Cannot update student personal number!",
        no_selection="No student selected!",
        no_selection_delete="No student selected to delete!",
    )


class CustomerScreen(EntityScreen[Customer, CustomerForm]):
    title = "customers"
    form_type = CustomerForm
    messages = ScreenMessages(
        key_change="Cannot update customer account number!",
        no_selection="No customer selected!",
        no_selection_delete="No customer selected to delete!",
    )


class FruitBasketScreen(EntityScreen[FruitBasket, FruitBasketForm]):
    title = "fruit baskets"
    form_type = FruitBasketForm
    messages = ScreenMessages(
        key_change="Cannot update fruit basket number!",
        no_selection="No basket selected!",
        no_selection_delete="No basket selected to delete!",
    )


class PurchaseScreen(EntityScreen[Purchase, PurchaseForm]):
    """Both halves of the composite key are frozen once a purchase exists."""

    title = "purchases"
    form_type = PurchaseForm
    messages = ScreenMessages(
        key_change=(
            "Cannot update account number or basket number! "
            "Delete old purchase and add a new one."
        ),
        no_selection="No purchase selected!",
        no_selection_delete="No purchase selected to delete!",
    )
