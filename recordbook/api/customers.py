"""Customer API routes — the customer screen's storage actions over HTTP.

Six endpoints:
- List: all customers, and all customers with their purchased baskets
- Lookup by AccountNo (404 when absent)
- Create, update, delete

Update carries the customer as last loaded (``selected``) next to the
edited ``fields``, exactly what the screen holds. The key check runs
before storage is touched. Domain errors are raised and turned into
ApiResponse envelopes by the handlers in recordbook.main.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from recordbook.api.deps import get_customer_dao
from recordbook.data.customers import CustomerDao
from recordbook.schemas import ApiError, ApiResponse, Customer
from recordbook.screens.entities import CustomerScreen
from recordbook.screens.forms import CustomerForm

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class UpdateCustomerRequest(BaseModel):
    """Request body for PUT /customers."""

    selected: Customer | None = None
    fields: CustomerForm


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
def list_customers(dao: CustomerDao = Depends(get_customer_dao)) -> dict[str, Any]:
    customers = dao.get_all()
    return ApiResponse(ok=True, data=[c.model_dump() for c in customers]).model_dump()


@router.get("/with-baskets")
def list_customers_with_baskets(
    dao: CustomerDao = Depends(get_customer_dao),
) -> dict[str, Any]:
    groups = dao.get_all_with_related()
    return ApiResponse(ok=True, data=[g.model_dump() for g in groups]).model_dump()


@router.get("/{account_no}")
def get_customer(
    account_no: str,
    dao: CustomerDao = Depends(get_customer_dao),
) -> dict[str, Any]:
    customer = dao.get_by_key(account_no)
    if customer is None:
        raise HTTPException(
            status_code=404,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="NOT_FOUND",
                    message=f"No customer with AccountNo: {account_no}",
                ),
            ).model_dump(),
        )
    return ApiResponse(ok=True, data=customer.model_dump()).model_dump()


@router.post("", status_code=201)
def create_customer(
    form: CustomerForm,
    dao: CustomerDao = Depends(get_customer_dao),
) -> dict[str, Any]:
    record = form.to_record()
    dao.save(record)
    return ApiResponse(ok=True, data=record.model_dump()).model_dump()


@router.put("")
def update_customer(
    body: UpdateCustomerRequest,
    dao: CustomerDao = Depends(get_customer_dao),
) -> dict[str, Any]:
    screen = CustomerScreen(dao)
    screen.select(body.selected)
    screen.update(body.fields)
    return ApiResponse(ok=True, data=screen.selected.model_dump()).model_dump()


@router.delete("/{account_no}")
def delete_customer(
    account_no: str,
    dao: CustomerDao = Depends(get_customer_dao),
) -> dict[str, Any]:
    dao.delete_by_key(account_no)
    return ApiResponse(ok=True, data={"account_no": account_no}).model_dump()
