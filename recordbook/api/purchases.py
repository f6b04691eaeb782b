"""Purchase API routes — the purchase screen's storage actions over HTTP.

Purchases are addressed by their composite key in the path:
/purchases/{account_no}/{basket_no}. There is no joined read here; the
customer and basket routes each offer one over the same procedure.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from recordbook.api.deps import get_purchase_dao
from recordbook.data.purchases import PurchaseDao
from recordbook.schemas import ApiError, ApiResponse, Purchase
from recordbook.screens.entities import PurchaseScreen
from recordbook.screens.forms import PurchaseForm

router = APIRouter()


class UpdatePurchaseRequest(BaseModel):
    """Request body for PUT /purchases."""

    selected: Purchase | None = None
    fields: PurchaseForm


@router.get("")
def list_purchases(dao: PurchaseDao = Depends(get_purchase_dao)) -> dict[str, Any]:
    purchases = dao.get_all()
    return ApiResponse(ok=True, data=[p.model_dump() for p in purchases]).model_dump()


@router.get("/{account_no}/{basket_no}")
def get_purchase(
    account_no: str,
    basket_no: str,
    dao: PurchaseDao = Depends(get_purchase_dao),
) -> dict[str, Any]:
    purchase = dao.get_by_key(account_no, basket_no)
    if purchase is None:
        raise HTTPException(
            status_code=404,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="NOT_FOUND",
                    message=f"No purchase with AccountNo: {account_no}, BasketNo: {basket_no}",
                ),
            ).model_dump(),
        )
    return ApiResponse(ok=True, data=purchase.model_dump()).model_dump()


@router.post("", status_code=201)
def create_purchase(
    form: PurchaseForm,
    dao: PurchaseDao = Depends(get_purchase_dao),
) -> dict[str, Any]:
    record = form.to_record()
    dao.save(record)
    return ApiResponse(ok=True, data=record.model_dump()).model_dump()


@router.put("")
def update_purchase(
    body: UpdatePurchaseRequest,
    dao: PurchaseDao = Depends(get_purchase_dao),
) -> dict[str, Any]:
    screen = PurchaseScreen(dao)
    screen.select(body.selected)
    screen.update(body.fields)
    return ApiResponse(ok=True, data=screen.selected.model_dump()).model_dump()


@router.delete("/{account_no}/{basket_no}")
def delete_purchase(
    account_no: str,
    basket_no: str,
    dao: PurchaseDao = Depends(get_purchase_dao),
) -> dict[str, Any]:
    dao.delete_by_key(account_no, basket_no)
    return ApiResponse(
        ok=True, data={"account_no": account_no, "basket_no": basket_no}
    ).model_dump()
