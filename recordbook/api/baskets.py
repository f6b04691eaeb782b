"""Fruit basket API routes — the basket screen's storage actions over HTTP.

Six endpoints:
- List: all baskets, and all baskets with the customers who bought them
- Lookup by BasketNo (404 when absent)
- Create, update, delete

Update carries the basket as last loaded (``selected``) next to the
edited ``fields``, exactly what the screen holds. The key check runs
before storage is touched. Domain errors are raised and turned into
ApiResponse envelopes by the handlers in recordbook.main.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from recordbook.api.deps import get_basket_dao
from recordbook.data.baskets import FruitBasketDao
from recordbook.schemas import ApiError, ApiResponse, FruitBasket
from recordbook.screens.entities import FruitBasketScreen
from recordbook.screens.forms import FruitBasketForm

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class UpdateBasketRequest(BaseModel):
    """Request body for PUT /baskets."""

    selected: FruitBasket | None = None
    fields: FruitBasketForm


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
def list_baskets(dao: FruitBasketDao = Depends(get_basket_dao)) -> dict[str, Any]:
    baskets = dao.get_all()
    return ApiResponse(ok=True, data=[b.model_dump() for b in baskets]).model_dump()


@router.get("/with-customers")
def list_baskets_with_customers(
    dao: FruitBasketDao = Depends(get_basket_dao),
) -> dict[str, Any]:
    groups = dao.get_all_with_related()
    return ApiResponse(ok=True, data=[g.model_dump() for g in groups]).model_dump()


@router.get("/{basket_no}")
def get_basket(
    basket_no: str,
    dao: FruitBasketDao = Depends(get_basket_dao),
) -> dict[str, Any]:
    basket = dao.get_by_key(basket_no)
    if basket is None:
        raise HTTPException(
            status_code=404,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="NOT_FOUND",
                    message=f"No basket with BasketNo: {basket_no}",
                ),
            ).model_dump(),
        )
    return ApiResponse(ok=True, data=basket.model_dump()).model_dump()


@router.post("", status_code=201)
def create_basket(
    form: FruitBasketForm,
    dao: FruitBasketDao = Depends(get_basket_dao),
) -> dict[str, Any]:
    record = form.to_record()
    dao.save(record)
    return ApiResponse(ok=True, data=record.model_dump()).model_dump()


@router.put("")
def update_basket(
    body: UpdateBasketRequest,
    dao: FruitBasketDao = Depends(get_basket_dao),
) -> dict[str, Any]:
    screen = FruitBasketScreen(dao)
    screen.select(body.selected)
    screen.update(body.fields)
    return ApiResponse(ok=True, data=screen.selected.model_dump()).model_dump()


@router.delete("/{basket_no}")
def delete_basket(
    basket_no: str,
    dao: FruitBasketDao = Depends(get_basket_dao),
) -> dict[str, Any]:
    dao.delete_by_key(basket_no)
    return ApiResponse(ok=True, data={"basket_no": basket_no}).model_dump()
