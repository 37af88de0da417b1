from __future__ import annotations
from datetime import datetime, time
from decimal import Decimal
from typing import Generic, List, Literal, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field, computed_field

from distribution_hub.db_models import AccountStatus, ProductStatus, UnitOfMeasure
from distribution_hub.utils import format_address, format_delivery_window

T = TypeVar("T")

# ---------------------------------------------------------
# Customers
# ---------------------------------------------------------
class CustomerIn(BaseModel):
    name: str
    external_id: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    account_status: AccountStatus = AccountStatus.active
    credit_terms_days: int = 30

class CustomerPatch(BaseModel):
    name: Optional[str] = None
    external_id: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    account_status: Optional[AccountStatus] = None
    credit_terms_days: Optional[int] = None

class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    external_id: Optional[str] = None
    name: str
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    account_status: AccountStatus
    credit_terms_days: int
    created_at: datetime
    updated_at: datetime

class PrimaryAddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    line1: str
    line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str

class CustomerListItem(CustomerOut):
    primary_address: Optional[PrimaryAddressOut] = None

class CustomerFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    account_status: Optional[AccountStatus] = None
    page: int = 1
    limit: Optional[int] = None

# ---------------------------------------------------------
# Addresses
# ---------------------------------------------------------
class AddressIn(BaseModel):
    customer_id: str
    label: Optional[str] = None
    line1: str
    line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "US"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_window_start: Optional[time] = None
    delivery_window_end: Optional[time] = None
    is_primary: bool = False
    instructions: Optional[str] = None

class AddressPatch(BaseModel):
    customer_id: Optional[str] = None
    label: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_window_start: Optional[time] = None
    delivery_window_end: Optional[time] = None
    is_primary: Optional[bool] = None
    instructions: Optional[str] = None

class AddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    label: Optional[str] = None
    line1: str
    line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_window_start: Optional[time] = None
    delivery_window_end: Optional[time] = None
    is_primary: bool
    instructions: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def formatted(self) -> str:
        return format_address(self)

    @computed_field
    @property
    def delivery_window(self) -> str:
        return format_delivery_window(self.delivery_window_start, self.delivery_window_end)

# ---------------------------------------------------------
# Products
# ---------------------------------------------------------
class ProductIn(BaseModel):
    sku: str
    name: str
    description: Optional[str] = None
    unit_of_measure: UnitOfMeasure
    status: ProductStatus = ProductStatus.active
    capacity_kg: Optional[Decimal] = None
    tare_weight_kg: Optional[Decimal] = None
    valve_type: Optional[str] = None
    barcode_uid: Optional[str] = None

class ProductPatch(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    unit_of_measure: Optional[UnitOfMeasure] = None
    status: Optional[ProductStatus] = None
    capacity_kg: Optional[Decimal] = None
    tare_weight_kg: Optional[Decimal] = None
    valve_type: Optional[str] = None
    barcode_uid: Optional[str] = None

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sku: str
    name: str
    description: Optional[str] = None
    unit_of_measure: UnitOfMeasure
    status: ProductStatus
    capacity_kg: Optional[Decimal] = None
    tare_weight_kg: Optional[Decimal] = None
    valve_type: Optional[str] = None
    barcode_uid: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class ProductFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    status: Optional[ProductStatus] = None
    unit_of_measure: Optional[UnitOfMeasure] = None
    sort_by: str = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = 1
    limit: Optional[int] = None
    show_obsolete: bool = False

class ProductStats(BaseModel):
    total: int = 0
    active: int = 0
    end_of_sale: int = 0
    obsolete: int = 0
    cylinders: int = 0
    kg_products: int = 0

class BulkStatusIn(BaseModel):
    ids: List[Optional[str]] = Field(default_factory=list)
    status: ProductStatus

# ---------------------------------------------------------
# Envelopes
# ---------------------------------------------------------
class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    total_pages: int
    current_page: int

class MutationResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    message: str
    level: Literal["success", "info"] = "success"
    noop: bool = False
