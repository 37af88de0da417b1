from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from distribution_hub.db_models import ProductStatus, UnitOfMeasure
from distribution_hub.errors import ConflictError, NoValidTargets, StoreError, ValidationError
from distribution_hub.models import (
    AddressIn, AddressOut, CustomerFilters, CustomerIn, ProductFilters, ProductIn, ProductPatch,
)


class TestFacadeMessages:
    """User-facing results of the write operations."""

    async def test_create_customer(self, facade):
        result = await facade.create_customer(CustomerIn(name="Harbor Cafe"))

        assert result.message == "Customer created successfully"
        assert result.level == "success"
        assert result.data.name == "Harbor Cafe"

    async def test_set_primary_twice_reports_noop(self, facade, make_customer, make_address):
        customer = await make_customer()
        await make_address(customer, is_primary=True)
        second = await make_address(customer, age=1)

        first_result = await facade.set_primary_address(second.id)
        again = await facade.set_primary_address(first_result.data)

        assert first_result.message == "Primary address updated"
        assert first_result.noop is False
        assert again.noop is True
        assert again.level == "info"
        assert again.message == "Address is already the primary address"

    async def test_mark_obsolete_twice_reports_noop(self, facade, make_product):
        product = await make_product("CYL-11")

        first = await facade.mark_obsolete(product.id)
        second = await facade.mark_obsolete(product.id)

        assert first.message == "Product marked as obsolete and hidden from active lists"
        assert second.noop is True
        assert second.message == "Product is already obsolete"
        assert second.data.status == ProductStatus.obsolete

    async def test_bulk_status_message_counts_updated_rows(self, facade, make_product):
        a = await make_product("CYL-1")
        b = await make_product("CYL-2")

        result = await facade.bulk_set_status([a.id, "null", b.id], ProductStatus.end_of_sale)

        assert result.message == "2 products updated successfully"
        assert {p.id for p in result.data} == {a.id, b.id}

    async def test_delete_address_accepts_snapshot(self, facade, make_customer, make_address):
        customer = await make_customer()
        address = await make_address(customer)

        result = await facade.delete_address(AddressOut.model_validate(address))

        assert result.message == "Address deleted successfully"
        assert await facade.list_addresses(customer.id) == []


class TestFacadeErrors:

    async def test_conflict_keeps_type_and_gains_user_message(self, facade, make_product):
        await make_product("CYL-11")
        data = ProductIn(sku="CYL-11", name="Dup", unit_of_measure=UnitOfMeasure.cylinder)

        with pytest.raises(ConflictError) as exc_info:
            await facade.create_product(data)

        assert exc_info.value.user_message == "SKU already exists. Please use a unique SKU."

    async def test_no_valid_targets_is_a_validation_error(self, facade):
        with pytest.raises(ValidationError) as exc_info:
            await facade.bulk_set_status(["null", ""], ProductStatus.obsolete)

        assert isinstance(exc_info.value, NoValidTargets)
        assert exc_info.value.user_message == "No valid product IDs provided"

    async def test_failed_write_is_rolled_back(self, facade, make_product):
        product = await make_product("CYL-11")
        await facade.db.commit()
        await make_product("CYL-12")
        await facade.db.commit()

        with pytest.raises(ConflictError):
            await facade.update_product(product.id, ProductPatch(name="Renamed", sku="CYL-12"))

        reloaded = await facade.get_product(product.id)
        assert reloaded.name == "Product CYL-11"

    async def test_store_failure_surfaces_as_store_error(self, facade, monkeypatch):
        async def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(facade.db, "execute", broken)

        with pytest.raises(StoreError) as exc_info:
            await facade.list_products()

        assert "connection refused" in exc_info.value.user_message


class TestFacadeCache:
    """Cached views are dropped after writes that affect them."""

    async def test_product_list_refreshes_after_obsolete(self, facade, make_product):
        product = await make_product("CYL-11")
        before = await facade.list_products(ProductFilters())
        assert before.total_count == 1

        await facade.mark_obsolete(product.id)

        after = await facade.list_products(ProductFilters())
        assert after.total_count == 0

    async def test_stats_refresh_after_create(self, facade):
        assert (await facade.get_product_stats()).total == 0

        await facade.create_product(ProductIn(
            sku="CYL-11", name="Propane 11kg", unit_of_measure=UnitOfMeasure.cylinder,
            capacity_kg=Decimal("11"),
        ))

        assert (await facade.get_product_stats()).total == 1

    async def test_customer_listing_sees_new_primary(self, facade, make_customer):
        customer = await make_customer()
        before = await facade.list_customers(CustomerFilters())
        assert before.items[0].primary_address is None

        await facade.create_address(AddressIn(
            customer_id=customer.id, line1="9 Wharf Rd", city="Portsmouth", is_primary=True,
        ))

        after = await facade.list_customers(CustomerFilters())
        assert after.items[0].primary_address.city == "Portsmouth"

    async def test_address_list_refreshes_after_set_primary(self, facade, make_customer, make_address):
        customer = await make_customer()
        a1 = await make_address(customer, is_primary=True, age=0)
        a2 = await make_address(customer, age=1)
        assert [a.id for a in await facade.list_addresses(customer.id)] == [a1.id, a2.id]

        await facade.set_primary_address(a2.id)

        assert [a.id for a in await facade.list_addresses(customer.id)] == [a2.id, a1.id]

    async def test_reads_are_served_from_cache(self, facade, make_product, cache):
        await make_product("CYL-11")
        await facade.list_products()
        assert len(cache) == 1

        # written behind the facade's back: the cached page is still served
        await make_product("CYL-12")
        page = await facade.list_products()
        assert page.total_count == 1
