import pytest
from sqlalchemy import select

from distribution_hub.db_models import Address
from distribution_hub.errors import NotFoundError, ValidationError
from distribution_hub.models import CustomerIn, CustomerPatch
from distribution_hub.services.customers import CustomerService


class TestCustomerService:

    async def test_create_applies_defaults(self, db):
        customer = await CustomerService(db).create_customer(CustomerIn(name="Harbor Cafe"))

        assert customer.id
        assert customer.credit_terms_days == 30
        assert customer.account_status.value == "active"

    @pytest.mark.parametrize("payload,message", [
        ({"name": "  "}, "Business name is required"),
        ({"name": "X", "email": "not-an-email"}, "Invalid email address"),
        ({"name": "X", "credit_terms_days": -1}, "Credit terms must be 0 or more days"),
    ])
    async def test_create_validation(self, db, payload, message):
        with pytest.raises(ValidationError, match=message):
            await CustomerService(db).create_customer(CustomerIn(**payload))

    async def test_update_changes_only_given_fields(self, db, make_customer):
        customer = await make_customer("Harbor Cafe", phone="555-0100")

        updated = await CustomerService(db).update_customer(customer.id, CustomerPatch(email="hi@harbor.example"))

        assert updated.email == "hi@harbor.example"
        assert updated.phone == "555-0100"

    async def test_update_missing_customer(self, db):
        with pytest.raises(NotFoundError):
            await CustomerService(db).update_customer("missing", CustomerPatch(name="X"))

    async def test_delete_removes_addresses(self, db, make_customer, make_address):
        customer = await make_customer()
        await make_address(customer, is_primary=True)
        await make_address(customer, age=1)

        deleted = await CustomerService(db).delete_customer(customer.id)

        assert deleted == customer.id
        remaining = (await db.execute(select(Address).where(Address.customer_id == customer.id))).scalars().all()
        assert remaining == []

    async def test_delete_missing_customer(self, db):
        with pytest.raises(NotFoundError):
            await CustomerService(db).delete_customer("missing")

    async def test_malformed_reference(self, db):
        with pytest.raises(ValidationError, match="Invalid customer ID"):
            await CustomerService(db).get("undefined")

    async def test_null_account_status_is_a_validation_error(self, db, make_customer):
        customer = await make_customer()

        with pytest.raises(ValidationError, match="account_status cannot be empty"):
            await CustomerService(db).update_customer(customer.id, CustomerPatch(account_status=None))
