# distribution_hub/services/facade.py
"""
Distribution Facade - the operations the UI / API layer calls.

Every write commits, then invalidates the cached views it could have made
stale, and returns a MutationResult carrying a user-facing message. Every
failure keeps its exception type and gains `user_message`.
"""
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Union

from sqlalchemy.ext.asyncio import AsyncSession

from distribution_hub.cache import QueryCache
from distribution_hub.database import store_errors
from distribution_hub.db_models import ProductStatus
from distribution_hub.errors import ServiceError
from distribution_hub.models import (
    AddressIn, AddressOut, AddressPatch,
    CustomerFilters, CustomerIn, CustomerListItem, CustomerOut, CustomerPatch,
    MutationResult, Page,
    ProductFilters, ProductIn, ProductOut, ProductPatch, ProductStats,
)
from distribution_hub.services.addresses import AddressService
from distribution_hub.services.customers import CustomerService
from distribution_hub.services.listing import ListingService
from distribution_hub.services.products import ProductService

logger = logging.getLogger(__name__)

AddressRef = Union[str, AddressOut]


class DistributionFacade:
    """One instance per request: one store session, the shared query cache."""

    def __init__(self, db: AsyncSession, cache: QueryCache):
        self.db = db
        self.cache = cache
        self.customers = CustomerService(db)
        self.addresses = AddressService(db)
        self.products = ProductService(db)
        self.listing = ListingService(db)

    # =========================================================================
    # Error mapping
    # =========================================================================

    @asynccontextmanager
    async def _mutation(self, fallback: str) -> AsyncIterator[None]:
        """Run a write, commit it, or roll back and label the failure."""
        try:
            yield
            async with store_errors("commit"):
                await self.db.commit()
        except ServiceError as e:
            await self.db.rollback()
            e.user_message = e.message or fallback
            logger.warning("%s: %s (%s)", fallback, e.message, e.kind)
            raise

    @asynccontextmanager
    async def _read(self, fallback: str) -> AsyncIterator[None]:
        try:
            yield
        except ServiceError as e:
            e.user_message = e.message or fallback
            raise

    def _invalidate_customer_views(self, customer_id: str = None) -> None:
        self.cache.invalidate("customers")
        if customer_id:
            self.cache.invalidate("customer", customer_id)

    def _invalidate_product_views(self, product_id: str = None) -> None:
        self.cache.invalidate("products")
        self.cache.invalidate("product-stats")
        if product_id:
            self.cache.invalidate("product", product_id)

    # =========================================================================
    # Customers
    # =========================================================================

    async def list_customers(self, filters: CustomerFilters = None) -> Page[CustomerListItem]:
        filters = filters or CustomerFilters()
        async with self._read("Failed to load customers"):
            return await self.cache.get_or_load(
                "customers", filters, lambda: self.listing.list_customers(filters)
            )

    async def get_customer(self, customer_id: str) -> CustomerOut:
        async def load() -> CustomerOut:
            return CustomerOut.model_validate(await self.customers.get(customer_id))

        async with self._read("Failed to load customer"):
            return await self.cache.get_or_load("customer", customer_id, load)

    async def create_customer(self, data: CustomerIn) -> MutationResult[CustomerOut]:
        async with self._mutation("Failed to create customer"):
            customer = await self.customers.create_customer(data)
        self._invalidate_customer_views()
        return MutationResult[CustomerOut](
            data=CustomerOut.model_validate(customer),
            message="Customer created successfully",
        )

    async def update_customer(self, customer_id: str, patch: CustomerPatch) -> MutationResult[CustomerOut]:
        async with self._mutation("Failed to update customer"):
            customer = await self.customers.update_customer(customer_id, patch)
        self._invalidate_customer_views(customer.id)
        return MutationResult[CustomerOut](
            data=CustomerOut.model_validate(customer),
            message="Customer updated successfully",
        )

    async def delete_customer(self, customer_id: str) -> MutationResult[str]:
        async with self._mutation("Failed to delete customer"):
            deleted_id = await self.customers.delete_customer(customer_id)
        self._invalidate_customer_views(deleted_id)
        self.cache.invalidate("addresses", deleted_id)
        return MutationResult[str](data=deleted_id, message="Customer deleted successfully")

    # =========================================================================
    # Addresses
    # =========================================================================

    async def list_addresses(self, customer_id: str) -> List[AddressOut]:
        async def load() -> List[AddressOut]:
            rows = await self.addresses.list_for_customer(customer_id)
            return [AddressOut.model_validate(a) for a in rows]

        async with self._read("Failed to load addresses"):
            return await self.cache.get_or_load("addresses", customer_id, load)

    async def _resolve_address(self, address: AddressRef) -> Any:
        if isinstance(address, AddressOut):
            return address
        return await self.addresses.get(address)

    def _after_address_write(self, customer_id: str) -> None:
        self.cache.invalidate("addresses", customer_id)
        self.cache.invalidate("customers")

    async def create_address(self, data: AddressIn) -> MutationResult[AddressOut]:
        async with self._mutation("Failed to add address"):
            address = await self.addresses.create_address(data)
        self._after_address_write(address.customer_id)
        return MutationResult[AddressOut](
            data=AddressOut.model_validate(address),
            message="Address added successfully",
        )

    async def update_address(self, address_id: str, patch: AddressPatch) -> MutationResult[AddressOut]:
        async with self._mutation("Failed to update address"):
            before = await self.addresses.get(address_id)
            previous_owner = before.customer_id
            address = await self.addresses.update_address(address_id, patch)
        self._after_address_write(address.customer_id)
        if previous_owner != address.customer_id:
            self.cache.invalidate("addresses", previous_owner)
        return MutationResult[AddressOut](
            data=AddressOut.model_validate(address),
            message="Address updated successfully",
        )

    async def set_primary_address(self, address: AddressRef) -> MutationResult[AddressOut]:
        """
        Make an address its customer's primary. Accepts the address as the
        caller last saw it, or its id (then the stored row is used).
        """
        async with self._mutation("Failed to set primary address"):
            target = await self._resolve_address(address)
            result, noop = await self.addresses.set_primary(target)

        if noop:
            return MutationResult[AddressOut](
                data=AddressOut.model_validate(result),
                message="Address is already the primary address",
                level="info",
                noop=True,
            )
        self._after_address_write(result.customer_id)
        return MutationResult[AddressOut](
            data=AddressOut.model_validate(result),
            message="Primary address updated",
        )

    async def delete_address(self, address: AddressRef) -> MutationResult[AddressOut]:
        async with self._mutation("Failed to delete address"):
            target = await self._resolve_address(address)
            snapshot = AddressOut.model_validate(target)
            await self.addresses.delete_address(target)
        self._after_address_write(snapshot.customer_id)
        return MutationResult[AddressOut](data=snapshot, message="Address deleted successfully")

    # =========================================================================
    # Products
    # =========================================================================

    async def list_products(self, filters: ProductFilters = None) -> Page[ProductOut]:
        filters = filters or ProductFilters()
        async with self._read("Failed to load products"):
            return await self.cache.get_or_load(
                "products", filters, lambda: self.listing.list_products(filters)
            )

    async def get_product(self, product_id: str) -> ProductOut:
        async def load() -> ProductOut:
            return ProductOut.model_validate(await self.products.get(product_id))

        async with self._read("Failed to load product"):
            return await self.cache.get_or_load("product", product_id, load)

    async def get_product_stats(self) -> ProductStats:
        async with self._read("Failed to load product statistics"):
            return await self.cache.get_or_load("product-stats", None, self.listing.product_stats)

    async def create_product(self, data: ProductIn) -> MutationResult[ProductOut]:
        async with self._mutation("Failed to create product"):
            product = await self.products.create_product(data)
        self._invalidate_product_views()
        return MutationResult[ProductOut](
            data=ProductOut.model_validate(product),
            message="Product created successfully",
        )

    async def update_product(self, product_id: str, patch: ProductPatch) -> MutationResult[ProductOut]:
        async with self._mutation("Failed to update product"):
            product = await self.products.update_product(product_id, patch)
        self._invalidate_product_views(product.id)
        return MutationResult[ProductOut](
            data=ProductOut.model_validate(product),
            message="Product updated successfully",
        )

    async def mark_obsolete(self, product_id: str) -> MutationResult[ProductOut]:
        async with self._mutation("Failed to mark product as obsolete"):
            product, noop = await self.products.mark_obsolete(product_id)

        if noop:
            return MutationResult[ProductOut](
                data=ProductOut.model_validate(product),
                message="Product is already obsolete",
                level="info",
                noop=True,
            )
        self._invalidate_product_views(product.id)
        return MutationResult[ProductOut](
            data=ProductOut.model_validate(product),
            message="Product marked as obsolete and hidden from active lists",
        )

    async def reactivate(self, product_id: str) -> MutationResult[ProductOut]:
        async with self._mutation("Failed to reactivate product"):
            product = await self.products.reactivate(product_id)
        self._invalidate_product_views(product.id)
        return MutationResult[ProductOut](
            data=ProductOut.model_validate(product),
            message="Product reactivated successfully",
        )

    async def bulk_set_status(
        self, product_ids: Iterable[Any], status: ProductStatus
    ) -> MutationResult[List[ProductOut]]:
        async with self._mutation("Failed to update products"):
            products = await self.products.bulk_set_status(product_ids, status)
        self._invalidate_product_views()
        for product in products:
            self.cache.invalidate("product", product.id)
        return MutationResult[List[ProductOut]](
            data=[ProductOut.model_validate(p) for p in products],
            message=f"{len(products)} products updated successfully",
        )
