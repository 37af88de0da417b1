# distribution_hub/services/listing.py
"""
Listing Service - filtered, sorted, paginated reads.

Customer listings annotate each customer with its primary address. Two
strategies exist:

    joined  one query, customers LEFT JOIN their primary address, sorted and
            paginated once (default)
    split   legacy two-query union: customers with a primary (inner join)
            plus customers excluded from that page, each paginated on its
            own; a page can come back with fewer than `limit` rows
"""
from __future__ import annotations
import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from distribution_hub.database import store_errors
from distribution_hub.db_models import (
    Address, Customer, Product, ProductStatus, UnitOfMeasure, LIVE_PRODUCT_STATUSES,
)
from distribution_hub.errors import ValidationError
from distribution_hub.models import (
    CustomerFilters, CustomerListItem, CustomerOut, Page, PrimaryAddressOut,
    ProductFilters, ProductOut, ProductStats,
)
from distribution_hub.settings import settings

logger = logging.getLogger(__name__)

PRODUCT_SORT_COLUMNS = {
    "name": Product.name,
    "sku": Product.sku,
    "created_at": Product.created_at,
    "capacity_kg": Product.capacity_kg,
}

LIKE_ESCAPE = "\\"


def _page_window(page: int, limit: Optional[int], default_limit: int) -> Tuple[int, int, int]:
    """Return (page, limit, offset); both page and limit must be positive."""
    limit = default_limit if limit is None else limit
    if not isinstance(page, int) or page < 1:
        raise ValidationError("page must be a positive integer")
    if not isinstance(limit, int) or limit < 1:
        raise ValidationError("limit must be a positive integer")
    return page, limit, (page - 1) * limit


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def _as_utc(value: datetime) -> datetime:
    # some drivers hand back naive UTC timestamps
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _search_term(search: Optional[str]) -> Optional[str]:
    term = (search or "").strip()
    if not term:
        return None
    # user text is matched literally; only the surrounding % are wildcards
    for ch in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(ch, LIKE_ESCAPE + ch)
    return f"%{term}%"


class ListingService:
    """Read-side composition for customers and products."""

    def __init__(self, db: AsyncSession, customer_strategy: Optional[str] = None):
        self.db = db
        self.customer_strategy = customer_strategy or settings.CUSTOMER_LISTING_STRATEGY

    # =========================================================================
    # Customers
    # =========================================================================

    @staticmethod
    def _customer_conditions(filters: CustomerFilters) -> List[Any]:
        conditions: List[Any] = []
        term = _search_term(filters.search)
        if term:
            conditions.append(or_(
                Customer.name.ilike(term, escape=LIKE_ESCAPE),
                Customer.email.ilike(term, escape=LIKE_ESCAPE),
                Customer.tax_id.ilike(term, escape=LIKE_ESCAPE),
            ))
        if filters.account_status:
            conditions.append(Customer.account_status == filters.account_status)
        return conditions

    @staticmethod
    def _customer_item(customer: Customer, address: Optional[Address]) -> CustomerListItem:
        base = CustomerOut.model_validate(customer).model_dump()
        primary = PrimaryAddressOut.model_validate(address) if address is not None else None
        return CustomerListItem(**base, primary_address=primary)

    async def list_customers(self, filters: CustomerFilters) -> Page[CustomerListItem]:
        page, limit, offset = _page_window(filters.page, filters.limit, settings.CUSTOMERS_PER_PAGE)
        conditions = self._customer_conditions(filters)

        async with store_errors("list customers"):
            if self.customer_strategy == "split":
                items, total = await self._customers_split(conditions, limit, offset)
            else:
                items, total = await self._customers_joined(conditions, limit, offset)

        logger.debug("Customer listing page %d (limit %d): %d of %d row(s)", page, limit, len(items), total)
        return Page[CustomerListItem](
            items=items,
            total_count=total,
            total_pages=_total_pages(total, limit),
            current_page=page,
        )

    async def _customers_joined(
        self, conditions: Sequence[Any], limit: int, offset: int
    ) -> Tuple[List[CustomerListItem], int]:
        # one primary per customer even if a race left two flagged rows
        primary = (
            select(Address.customer_id, func.min(Address.id).label("address_id"))
            .where(Address.is_primary == True)
            .group_by(Address.customer_id)
            .subquery()
        )
        primary_address = aliased(Address)

        stmt = (
            select(Customer, primary_address)
            .outerjoin(primary, primary.c.customer_id == Customer.id)
            .outerjoin(primary_address, primary_address.id == primary.c.address_id)
            .where(*conditions)
            .order_by(Customer.created_at.desc(), Customer.id)
            .offset(offset)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).all()

        count_stmt = select(func.count()).select_from(Customer).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()

        return [self._customer_item(c, a) for c, a in rows], total

    async def _customers_split(
        self, conditions: Sequence[Any], limit: int, offset: int
    ) -> Tuple[List[CustomerListItem], int]:
        join_primary = and_(Address.customer_id == Customer.id, Address.is_primary == True)

        with_stmt = (
            select(Customer, Address)
            .join(Address, join_primary)
            .where(*conditions)
            .order_by(Customer.created_at.desc(), Customer.id)
            .offset(offset)
            .limit(limit)
        )
        with_rows = (await self.db.execute(with_stmt)).all()
        with_count = (await self.db.execute(
            select(func.count(func.distinct(Customer.id)))
            .select_from(Customer)
            .join(Address, join_primary)
            .where(*conditions)
        )).scalar_one()

        # complement expressed as an exclusion over the first page's ids
        seen_ids = [c.id for c, _ in with_rows]
        without_conditions = list(conditions)
        if seen_ids:
            without_conditions.append(Customer.id.not_in(seen_ids))

        without_rows = (await self.db.execute(
            select(Customer)
            .where(*without_conditions)
            .order_by(Customer.created_at.desc(), Customer.id)
            .offset(offset)
            .limit(limit)
        )).scalars().all()
        without_count = (await self.db.execute(
            select(func.count()).select_from(Customer).where(*without_conditions)
        )).scalar_one()

        items = [self._customer_item(c, a) for c, a in with_rows]
        items += [self._customer_item(c, None) for c in without_rows]
        items.sort(key=lambda item: _as_utc(item.created_at), reverse=True)
        return items, with_count + without_count

    # =========================================================================
    # Products
    # =========================================================================

    @staticmethod
    def _product_conditions(filters: ProductFilters) -> List[Any]:
        conditions: List[Any] = []
        # obsolete rows are hidden unless explicitly requested
        if not filters.show_obsolete:
            conditions.append(Product.status.in_(LIVE_PRODUCT_STATUSES))

        term = _search_term(filters.search)
        if term:
            conditions.append(or_(
                Product.sku.ilike(term, escape=LIKE_ESCAPE),
                Product.name.ilike(term, escape=LIKE_ESCAPE),
                Product.description.ilike(term, escape=LIKE_ESCAPE),
            ))
        if filters.status:
            conditions.append(Product.status == filters.status)
        if filters.unit_of_measure:
            conditions.append(Product.unit_of_measure == filters.unit_of_measure)
        return conditions

    async def list_products(self, filters: ProductFilters) -> Page[ProductOut]:
        page, limit, offset = _page_window(filters.page, filters.limit, settings.PRODUCTS_PER_PAGE)
        sort_column = PRODUCT_SORT_COLUMNS.get(filters.sort_by)
        if sort_column is None:
            raise ValidationError(
                f"Cannot sort products by '{filters.sort_by}'; "
                f"allowed: {', '.join(sorted(PRODUCT_SORT_COLUMNS))}"
            )
        order = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()
        conditions = self._product_conditions(filters)

        async with store_errors("list products"):
            stmt = (
                select(Product)
                .where(*conditions)
                .order_by(order, Product.id)
                .offset(offset)
                .limit(limit)
            )
            products = (await self.db.execute(stmt)).scalars().all()
            total = (await self.db.execute(
                select(func.count()).select_from(Product).where(*conditions)
            )).scalar_one()

        return Page[ProductOut](
            items=[ProductOut.model_validate(p) for p in products],
            total_count=total,
            total_pages=_total_pages(total, limit),
            current_page=page,
        )

    async def product_stats(self) -> ProductStats:
        """Counts from a full scan of status and unit of measure."""
        async with store_errors("product stats"):
            rows = (await self.db.execute(select(Product.status, Product.unit_of_measure))).all()

        stats = ProductStats()
        for status, unit in rows:
            if status == ProductStatus.active:
                stats.active += 1
            elif status == ProductStatus.end_of_sale:
                stats.end_of_sale += 1
            elif status == ProductStatus.obsolete:
                stats.obsolete += 1
                continue
            stats.total += 1
            if unit == UnitOfMeasure.cylinder:
                stats.cylinders += 1
            elif unit == UnitOfMeasure.kg:
                stats.kg_products += 1
        return stats
