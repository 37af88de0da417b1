# distribution_hub/routers/products.py
"""
Products Router - listing, stats, CRUD and the soft-delete lifecycle.

DELETE marks a product obsolete; there is no hard delete.
"""
from __future__ import annotations
from typing import List, Literal, Optional

from fastapi import APIRouter, Body, Depends, Query

from distribution_hub.db_models import ProductStatus, UnitOfMeasure
from distribution_hub.deps import get_facade
from distribution_hub.models import (
    BulkStatusIn, MutationResult, Page, ProductFilters, ProductIn, ProductOut, ProductPatch, ProductStats,
)
from distribution_hub.services.facade import DistributionFacade

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=Page[ProductOut])
async def list_products(
    search: Optional[str] = Query(None),
    status: Optional[ProductStatus] = Query(None),
    unit_of_measure: Optional[UnitOfMeasure] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    show_obsolete: bool = Query(False),
    facade: DistributionFacade = Depends(get_facade),
):
    filters = ProductFilters(
        search=search,
        status=status,
        unit_of_measure=unit_of_measure,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
        show_obsolete=show_obsolete,
    )
    return await facade.list_products(filters)


@router.get("/stats", response_model=ProductStats)
async def product_stats(facade: DistributionFacade = Depends(get_facade)):
    return await facade.get_product_stats()


@router.post("/bulk-status", response_model=MutationResult[List[ProductOut]])
async def bulk_set_status(payload: BulkStatusIn, facade: DistributionFacade = Depends(get_facade)):
    return await facade.bulk_set_status(payload.ids, payload.status)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.get_product(product_id)


@router.post("", response_model=MutationResult[ProductOut], status_code=201)
async def create_product(payload: ProductIn, facade: DistributionFacade = Depends(get_facade)):
    return await facade.create_product(payload)


@router.patch("/{product_id}", response_model=MutationResult[ProductOut])
async def update_product(
    product_id: str,
    patch: ProductPatch = Body(...),
    facade: DistributionFacade = Depends(get_facade),
):
    return await facade.update_product(product_id, patch)


@router.post("/{product_id}/obsolete", response_model=MutationResult[ProductOut])
async def mark_obsolete(product_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.mark_obsolete(product_id)


@router.delete("/{product_id}", response_model=MutationResult[ProductOut])
async def delete_product(product_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.mark_obsolete(product_id)


@router.post("/{product_id}/reactivate", response_model=MutationResult[ProductOut])
async def reactivate_product(product_id: str, facade: DistributionFacade = Depends(get_facade)):
    return await facade.reactivate(product_id)
