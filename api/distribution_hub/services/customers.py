# distribution_hub/services/customers.py
"""
Customer Service - plain CRUD, hard delete (addresses go with the customer).
"""
from __future__ import annotations
import logging
from typing import Any, Dict

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from distribution_hub.database import store_errors
from distribution_hub.db_models import Address, Customer
from distribution_hub.errors import NotFoundError, ValidationError
from distribution_hub.models import CustomerIn, CustomerPatch
from distribution_hub.utils import EMAIL_PATTERN, reject_nulls, require_ref

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _validate_fields(values: Dict[str, Any]) -> None:
        if "name" in values and not (values["name"] or "").strip():
            raise ValidationError("Business name is required")
        email = values.get("email")
        if email and not EMAIL_PATTERN.match(email.strip()):
            raise ValidationError("Invalid email address")
        terms = values.get("credit_terms_days")
        if "credit_terms_days" in values and (terms is None or terms < 0):
            raise ValidationError("Credit terms must be 0 or more days")

    async def get(self, customer_id: str) -> Customer:
        customer_id = require_ref(customer_id, "customer")
        async with store_errors("get customer"):
            customer = await self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return customer

    async def create_customer(self, data: CustomerIn) -> Customer:
        values = data.model_dump()
        self._validate_fields(values)

        async with store_errors("create customer"):
            customer = Customer(**values)
            self.db.add(customer)
            await self.db.flush()

        logger.info("Created customer %s (%s)", customer.id, customer.name)
        return customer

    async def update_customer(self, customer_id: str, patch: CustomerPatch) -> Customer:
        customer_id = require_ref(customer_id, "customer")
        values = patch.model_dump(exclude_unset=True)
        reject_nulls(values, ("account_status",))
        self._validate_fields(values)

        customer = await self.get(customer_id)
        async with store_errors("update customer"):
            for key, value in values.items():
                setattr(customer, key, value)
            await self.db.flush()

        logger.info("Updated customer %s (%s)", customer_id, ", ".join(sorted(values)) or "no fields")
        return customer

    async def delete_customer(self, customer_id: str) -> str:
        customer_id = require_ref(customer_id, "customer")

        async with store_errors("delete customer"):
            await self.db.execute(delete(Address).where(Address.customer_id == customer_id))
            result = await self.db.execute(delete(Customer).where(Customer.id == customer_id))
            if result.rowcount == 0:
                raise NotFoundError(f"Customer not found: {customer_id}")
            await self.db.flush()

        logger.info("Deleted customer %s", customer_id)
        return customer_id
