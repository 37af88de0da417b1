# distribution_hub/routers/addresses.py
"""
Addresses Router - create/update/delete and primary selection.
"""
from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from distribution_hub.deps import get_facade
from distribution_hub.models import AddressIn, AddressOut, AddressPatch, MutationResult
from distribution_hub.services.facade import DistributionFacade

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.post("", response_model=MutationResult[AddressOut], status_code=201)
async def create_address(payload: AddressIn, facade: DistributionFacade = Depends(get_facade)):
    return await facade.create_address(payload)


@router.patch("/{address_id}", response_model=MutationResult[AddressOut])
async def update_address(
    address_id: str,
    patch: AddressPatch = Body(...),
    facade: DistributionFacade = Depends(get_facade),
):
    return await facade.update_address(address_id, patch)


@router.post("/{address_id}/primary", response_model=MutationResult[AddressOut])
async def set_primary_address(address_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.set_primary_address(address_id)


@router.delete("/{address_id}", response_model=MutationResult[AddressOut])
async def delete_address(address_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.delete_address(address_id)
