"""Customer access object — customers, and customers with their baskets."""

from recordbook.data.base import JoinedEntityDao, JoinedRead, Procedures
from recordbook.data.mapping import ColumnMap
from recordbook.schemas import Customer, CustomerWithBaskets, FruitBasket

# uspGetAllCustomers names the delivery address column plain "Address".
CUSTOMER_COLUMNS = ColumnMap(
    model=Customer,
    columns={"account_no": "AccountNo", "name": "Name", "delivery_address": "Address"},
    key_fields=("account_no",),
)

# uspGetAllPurchases: one row per purchase, customer and basket side by side.
PURCHASE_CUSTOMER_COLUMNS = ColumnMap(
    model=Customer,
    columns={
        "account_no": "AccountNo",
        "name": "CustomerName",
        "delivery_address": "DeliveryAddress",
    },
    key_fields=("account_no",),
)

PURCHASE_BASKET_COLUMNS = ColumnMap(
    model=FruitBasket,
    columns={"basket_no": "BasketNo", "name": "BasketName", "price": "Price"},
    key_fields=("basket_no",),
)


class CustomerDao(JoinedEntityDao[Customer, CustomerWithBaskets]):
    """Customers keyed by AccountNo."""

    entity = "customer"
    entity_plural = "customers"
    procedures = Procedures(
        get_all="uspGetAllCustomers",
        get_by_key="uspGetCustomerByAccountNo",
        save="uspAddCustomer",
        update="uspUpdateCustomer",
        delete="uspDeleteCustomer",
    )
    columns = CUSTOMER_COLUMNS
    duplicate_message = "A customer with this AccountNo already exists."
    joined = JoinedRead(
        procedure="uspGetAllPurchases",
        primary=PURCHASE_CUSTOMER_COLUMNS,
        related=PURCHASE_BASKET_COLUMNS,
        build=CustomerWithBaskets.from_group,
        failure_message="Error fetching customers and their baskets.",
    )
