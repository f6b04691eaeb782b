"""Fruit basket access object — baskets, and baskets with their customers."""

from recordbook.data.base import JoinedEntityDao, JoinedRead, Procedures
from recordbook.data.customers import PURCHASE_BASKET_COLUMNS, PURCHASE_CUSTOMER_COLUMNS
from recordbook.data.mapping import ColumnMap
from recordbook.schemas import FruitBasket, FruitBasketWithCustomers

BASKET_COLUMNS = ColumnMap(
    model=FruitBasket,
    columns={"basket_no": "BasketNo", "name": "Name", "price": "Price"},
    key_fields=("basket_no",),
)


class FruitBasketDao(JoinedEntityDao[FruitBasket, FruitBasketWithCustomers]):
    """Fruit baskets keyed by BasketNo.

    The joined read reuses uspGetAllPurchases with the sides swapped:
    baskets group, customers repeat.
    """

    entity = "basket"
    entity_plural = "baskets"
    procedures = Procedures(
        get_all="uspGetAllBaskets",
        get_by_key="uspGetBasketByBasketNo",
        save="uspAddBasket",
        update="uspUpdateBasket",
        delete="uspDeleteBasket",
    )
    columns = BASKET_COLUMNS
    duplicate_message = "A basket with this BasketNo already exists."
    joined = JoinedRead(
        procedure="uspGetAllPurchases",
        primary=PURCHASE_BASKET_COLUMNS,
        related=PURCHASE_CUSTOMER_COLUMNS,
        build=FruitBasketWithCustomers.from_group,
        failure_message="Error fetching baskets and their customers.",
    )
