"""Purchase access object — the (AccountNo, BasketNo) link table."""

from recordbook.data.base import EntityDao, Procedures
from recordbook.data.mapping import ColumnMap
from recordbook.hooks.interfaces import Row
from recordbook.schemas import Purchase

PURCHASE_COLUMNS = ColumnMap(
    model=Purchase,
    columns={"account_no": "AccountNo", "basket_no": "BasketNo", "purchase_date": "PurchaseDate"},
    key_fields=("account_no", "basket_no"),
)


class PurchaseDao(EntityDao[Purchase]):
    """Purchases keyed by (AccountNo, BasketNo). No joined read of its own."""

    entity = "purchase"
    entity_plural = "purchases"
    procedures = Procedures(
        get_all="uspGetAllPurchases",
        get_by_key="uspGetPurchaseByAccountNoBasketNo",
        save="uspAddPurchase",
        update="uspUpdatePurchase",
        delete="uspDeletePurchase",
    )
    columns = PURCHASE_COLUMNS
    duplicate_message = "A purchase with this AccountNo, BasketNo already exists."

    def save_params(self, record: Purchase) -> tuple:
        # uspAddPurchase declares BasketNo before AccountNo.
        return (record.basket_no, record.account_no, record.purchase_date)

    def record_from_lookup(self, key: tuple[str, ...], row: Row) -> Purchase:
        # The lookup procedure only returns PurchaseDate; the key is ours.
        account_no, basket_no = key
        return self.columns.to_record({**row, "AccountNo": account_no, "BasketNo": basket_no})
