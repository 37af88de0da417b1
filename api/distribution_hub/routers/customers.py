# distribution_hub/routers/customers.py
"""
Customers Router - listing with primary address, CRUD, address list.
"""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from distribution_hub.db_models import AccountStatus
from distribution_hub.deps import get_facade
from distribution_hub.models import (
    AddressOut, CustomerFilters, CustomerIn, CustomerListItem, CustomerOut, CustomerPatch,
    MutationResult, Page,
)
from distribution_hub.services.facade import DistributionFacade

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=Page[CustomerListItem])
async def list_customers(
    search: Optional[str] = Query(None),
    account_status: Optional[AccountStatus] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    facade: DistributionFacade = Depends(get_facade),
):
    filters = CustomerFilters(search=search, account_status=account_status, page=page, limit=limit)
    return await facade.list_customers(filters)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(customer_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.get_customer(customer_id)


@router.post("", response_model=MutationResult[CustomerOut], status_code=201)
async def create_customer(payload: CustomerIn, facade: DistributionFacade = Depends(get_facade)):
    return await facade.create_customer(payload)


@router.patch("/{customer_id}", response_model=MutationResult[CustomerOut])
async def update_customer(
    customer_id: str,
    patch: CustomerPatch = Body(...),
    facade: DistributionFacade = Depends(get_facade),
):
    return await facade.update_customer(customer_id, patch)


@router.delete("/{customer_id}", response_model=MutationResult[str])
async def delete_customer(customer_id: str, facade: DistributionFacade = Depends(get_facade)):
    """Hard delete; the customer's addresses go with it."""
    return await facade.delete_customer(customer_id)


@router.get("/{customer_id}/addresses", response_model=List[AddressOut])
async def list_customer_addresses(customer_id: str, facade: DistributionFacade = Depends(get_facade)):
    """Primary address first, then oldest first."""
    return await facade.list_addresses(customer_id)
