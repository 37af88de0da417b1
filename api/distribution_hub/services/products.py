# distribution_hub/services/products.py
"""
Product Lifecycle Service - soft delete via status.

Handles:
- SKU / barcode uniqueness among non-obsolete products
- Normalizing cylinder-only fields away for weight (kg) products
- markObsolete / reactivate / bulk status changes (no hard delete)
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from distribution_hub.database import store_errors
from distribution_hub.db_models import Product, ProductStatus, UnitOfMeasure
from distribution_hub.errors import ConflictError, NoValidTargets, NotFoundError, ValidationError
from distribution_hub.models import ProductIn, ProductPatch
from distribution_hub.settings import settings
from distribution_hub.utils import SKU_PATTERN, reject_nulls, require_ref, valid_refs

logger = logging.getLogger(__name__)

CYLINDER_ONLY_FIELDS = ("capacity_kg", "tare_weight_kg", "valve_type")
MAX_WEIGHT_KG = Decimal("500")
NON_NULLABLE_FIELDS = ("unit_of_measure", "status")
OBSOLETE_EXIT_MESSAGE = "Obsolete products can only be reactivated"


class ProductService:
    """Service for the product lifecycle: create, update, obsolete, reactivate."""

    def __init__(self, db: AsyncSession, check_on_reactivate: Optional[bool] = None):
        self.db = db
        if check_on_reactivate is None:
            check_on_reactivate = settings.REACTIVATE_CHECKS_UNIQUENESS
        self.check_on_reactivate = check_on_reactivate

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_fields(values: Dict[str, Any]) -> None:
        if "sku" in values:
            sku = values["sku"]
            if not sku:
                raise ValidationError("SKU is required")
            if not SKU_PATTERN.match(sku):
                raise ValidationError("SKU must contain only uppercase letters, numbers, and hyphens")

        if "name" in values and not (values["name"] or "").strip():
            raise ValidationError("Product name is required")

        for field, label in (("capacity_kg", "Capacity"), ("tare_weight_kg", "Tare weight")):
            weight = values.get(field)
            if weight is None:
                continue
            if weight <= 0:
                raise ValidationError(f"{label} must be greater than 0")
            if weight > MAX_WEIGHT_KG:
                raise ValidationError(f"{label} must be 500 kg or less")

    @staticmethod
    def _normalize_unit_fields(values: Dict[str, Any], unit: UnitOfMeasure) -> Dict[str, Any]:
        """Weight products carry no capacity, tare or valve type."""
        if unit == UnitOfMeasure.kg:
            for field in CYLINDER_ONLY_FIELDS:
                values[field] = None
        return values

    @staticmethod
    def _clean_text(values: Dict[str, Any]) -> Dict[str, Any]:
        for key in ("sku", "barcode_uid"):
            if isinstance(values.get(key), str):
                values[key] = values[key].strip() or None
        return values

    # =========================================================================
    # Uniqueness (obsolete rows never collide)
    # =========================================================================

    async def _find_live(self, column, value: str, exclude_id: Optional[str] = None) -> Optional[Product]:
        stmt = select(Product).where(column == value, Product.status != ProductStatus.obsolete)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def _ensure_unique(
        self,
        sku: Optional[str],
        barcode_uid: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> None:
        if sku and await self._find_live(Product.sku, sku, exclude_id):
            raise ConflictError("SKU already exists. Please use a unique SKU.")
        if barcode_uid and await self._find_live(Product.barcode_uid, barcode_uid, exclude_id):
            raise ConflictError("Barcode UID already exists. Please use a unique barcode.")

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, product_id: str) -> Product:
        product_id = require_ref(product_id, "product")
        async with store_errors("get product"):
            product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        return product

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_product(self, data: ProductIn) -> Product:
        values = self._clean_text(data.model_dump())
        values = self._normalize_unit_fields(values, data.unit_of_measure)
        self._validate_fields(values)

        async with store_errors("create product"):
            await self._ensure_unique(values["sku"], values.get("barcode_uid"))
            product = Product(**values)
            self.db.add(product)
            await self.db.flush()

        logger.info("Created product %s (%s)", product.id, product.sku)
        return product

    async def update_product(self, product_id: str, patch: ProductPatch) -> Product:
        """
        Apply a partial update.

        Uniqueness is re-checked only for the SKU / barcode fields present in
        the patch, ignoring the product itself. An obsolete product can only
        leave that status for active, under the reactivate rule.
        """
        product_id = require_ref(product_id, "product")
        values = self._clean_text(patch.model_dump(exclude_unset=True))
        reject_nulls(values, NON_NULLABLE_FIELDS)

        product = await self.get(product_id)
        unit = values.get("unit_of_measure") or product.unit_of_measure
        values = self._normalize_unit_fields(values, unit)
        self._validate_fields(values)

        new_status = values.get("status", product.status)
        reviving = product.status == ProductStatus.obsolete and new_status != ProductStatus.obsolete
        if reviving and new_status != ProductStatus.active:
            raise ValidationError(OBSOLETE_EXIT_MESSAGE)

        async with store_errors("update product"):
            await self._ensure_unique(values.get("sku"), values.get("barcode_uid"), exclude_id=product_id)
            if reviving and self.check_on_reactivate:
                await self._ensure_unique(
                    values.get("sku", product.sku),
                    values.get("barcode_uid", product.barcode_uid),
                    exclude_id=product_id,
                )
            for key, value in values.items():
                setattr(product, key, value)
            await self.db.flush()

        logger.info("Updated product %s (%s)", product_id, ", ".join(sorted(values)) or "no fields")
        return product

    async def mark_obsolete(self, product_id: str) -> Tuple[Product, bool]:
        """
        Soft-delete a product. Returns (product, noop); noop is True when the
        product was already obsolete.
        """
        product = await self.get(product_id)
        if product.status == ProductStatus.obsolete:
            return product, True

        async with store_errors("mark product obsolete"):
            product.status = ProductStatus.obsolete
            await self.db.flush()

        logger.info("Product %s (%s) marked obsolete", product.id, product.sku)
        return product, False

    async def reactivate(self, product_id: str) -> Product:
        product = await self.get(product_id)

        async with store_errors("reactivate product"):
            if self.check_on_reactivate and product.status == ProductStatus.obsolete:
                await self._ensure_unique(product.sku, product.barcode_uid, exclude_id=product.id)
            product.status = ProductStatus.active
            await self.db.flush()

        logger.info("Product %s (%s) reactivated", product.id, product.sku)
        return product

    async def bulk_set_status(self, product_ids: Iterable[Any], status: ProductStatus) -> List[Product]:
        """
        Apply one status to many products in a single UPDATE.

        Obsolete products in the set may only move to active, and then under
        the same rule as reactivate.
        """
        ids = valid_refs(product_ids)
        if not ids:
            raise NoValidTargets("No valid product IDs provided")
        try:
            status = ProductStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid product status: {status}")

        async with store_errors("bulk update product status"):
            if status != ProductStatus.obsolete:
                obsolete = (await self.db.execute(
                    select(Product).where(Product.id.in_(ids), Product.status == ProductStatus.obsolete)
                )).scalars().all()
                if obsolete and status != ProductStatus.active:
                    raise ValidationError(OBSOLETE_EXIT_MESSAGE)
                if self.check_on_reactivate:
                    for product in obsolete:
                        await self._ensure_unique(product.sku, product.barcode_uid, exclude_id=product.id)

            await self.db.execute(
                update(Product)
                .where(Product.id.in_(ids))
                .values(status=status)
                .execution_options(synchronize_session="fetch")
            )
            result = await self.db.execute(
                select(Product)
                .where(Product.id.in_(ids))
                .execution_options(populate_existing=True)
            )
            products = list(result.scalars())

        logger.info("Bulk status %s applied to %d of %d product(s)", status.value, len(products), len(ids))
        return products
