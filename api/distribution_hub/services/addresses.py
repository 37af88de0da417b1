# distribution_hub/services/addresses.py
"""
Address Service - one primary address per customer.

Handles:
- Address create/update/delete with primary flag maintenance
- Setting the primary address
- Ordered address listing (primary first, then oldest first)

Primary maintenance is clear-then-write: every step is a separate awaited
statement on the same customer_id, with no lock spanning them.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from distribution_hub.database import store_errors
from distribution_hub.db_models import Address
from distribution_hub.errors import NotFoundError, ValidationError
from distribution_hub.models import AddressIn, AddressPatch
from distribution_hub.utils import is_valid_ref, reject_nulls, require_ref, is_valid_delivery_window

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("line1", "city")
NON_NULLABLE_FIELDS = ("is_primary", "country")


class AddressService:
    """Service for managing customer addresses and the primary flag."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_fields(values: Dict[str, Any]) -> None:
        for field in REQUIRED_TEXT_FIELDS:
            if field in values and not (values[field] or "").strip():
                raise ValidationError(f"{field} is required")

        lat = values.get("latitude")
        if lat is not None and not -90 <= lat <= 90:
            raise ValidationError("latitude must be between -90 and 90")
        lng = values.get("longitude")
        if lng is not None and not -180 <= lng <= 180:
            raise ValidationError("longitude must be between -180 and 180")

        if not is_valid_delivery_window(values.get("delivery_window_start"), values.get("delivery_window_end")):
            raise ValidationError("Delivery window end time must be after start time")

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, address_id: str) -> Address:
        address_id = require_ref(address_id, "address")
        async with store_errors("get address"):
            address = await self.db.get(Address, address_id)
        if address is None:
            raise NotFoundError(f"Address not found: {address_id}")
        return address

    async def list_for_customer(self, customer_id: str) -> List[Address]:
        """Addresses of a customer, primary first, then by creation time."""
        if not is_valid_ref(customer_id):
            return []

        stmt = (
            select(Address)
            .where(Address.customer_id == customer_id.strip())
            .order_by(Address.is_primary.desc(), Address.created_at.asc(), Address.id)
        )
        async with store_errors("list addresses"):
            result = await self.db.execute(stmt)
        return list(result.scalars())

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_address(self, data: AddressIn) -> Address:
        """
        Insert an address.

        If data.is_primary is set, the customer's existing primaries are
        cleared first.
        """
        customer_id = require_ref(data.customer_id, "customer")
        values = data.model_dump()
        values["customer_id"] = customer_id
        self._validate_fields(values)

        async with store_errors("create address"):
            if data.is_primary:
                await self._clear_customer_primary(customer_id)

            address = Address(**values)
            self.db.add(address)
            await self.db.flush()

        logger.info("Created address %s for customer %s (primary=%s)", address.id, customer_id, address.is_primary)
        return address

    async def update_address(self, address_id: str, patch: AddressPatch) -> Address:
        """
        Apply a partial update.

        The owning customer's other addresses lose their primary flag before
        the patch is written when patch.is_primary is true, or when a primary
        address moves to another customer.
        """
        address_id = require_ref(address_id, "address")
        values = patch.model_dump(exclude_unset=True)
        reject_nulls(values, NON_NULLABLE_FIELDS)
        if "customer_id" in values:
            values["customer_id"] = require_ref(values["customer_id"], "customer")

        address = await self.get(address_id)
        merged = {
            "delivery_window_start": address.delivery_window_start,
            "delivery_window_end": address.delivery_window_end,
            **values,
        }
        self._validate_fields(merged)

        owner_id = values.get("customer_id") or address.customer_id
        will_be_primary = values.get("is_primary", address.is_primary)
        moves_owner = owner_id != address.customer_id
        async with store_errors("update address"):
            if values.get("is_primary") or (will_be_primary and moves_owner):
                await self._clear_customer_primary(owner_id, exclude_id=address_id)

            for key, value in values.items():
                setattr(address, key, value)
            await self.db.flush()

        logger.info("Updated address %s (%s)", address_id, ", ".join(sorted(values)) or "no fields")
        return address

    async def set_primary(self, address: Any) -> Tuple[Any, bool]:
        """
        Make `address` its customer's primary address.

        Returns (address, noop). When the address already carries the
        primary flag nothing is written and the same object comes back.
        """
        address_id = require_ref(getattr(address, "id", None), "address")
        customer_id = require_ref(getattr(address, "customer_id", None), "customer")

        if getattr(address, "is_primary", False):
            return address, True

        async with store_errors("set primary address"):
            await self._clear_customer_primary(customer_id)
            stmt = (
                update(Address)
                .where(Address.id == address_id)
                .values(is_primary=True)
                .execution_options(synchronize_session="fetch")
            )
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError(f"Address not found: {address_id}")
            await self.db.flush()
            refreshed = await self.db.get(Address, address_id, populate_existing=True)

        logger.info("Primary address for customer %s is now %s", customer_id, address_id)
        return refreshed, False

    async def delete_address(self, address: Any) -> Any:
        """Remove the row; a deleted primary is not replaced."""
        address_id = require_ref(getattr(address, "id", None), "address")

        async with store_errors("delete address"):
            await self.db.execute(delete(Address).where(Address.id == address_id))
            await self.db.flush()

        logger.info("Deleted address %s (was primary=%s)", address_id, getattr(address, "is_primary", None))
        return address

    # =========================================================================
    # Primary flag maintenance
    # =========================================================================

    async def _clear_customer_primary(self, customer_id: str, exclude_id: Optional[str] = None) -> int:
        """Clear the primary flag on the customer's addresses, optionally sparing one."""
        stmt = (
            update(Address)
            .where(
                Address.customer_id == customer_id,
                Address.is_primary == True,
            )
            .values(is_primary=False)
            .execution_options(synchronize_session="fetch")
        )
        if exclude_id is not None:
            stmt = stmt.where(Address.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.rowcount or 0
