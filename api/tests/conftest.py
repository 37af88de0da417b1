import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

# keep the rotating log file out of the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="distribution-hub-logs-"))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from distribution_hub.cache import QueryCache
from distribution_hub.database import create_schema
from distribution_hub.db_models import Address, Customer, Product, ProductStatus, UnitOfMeasure
from distribution_hub.services.facade import DistributionFacade

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite database shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(default_ttl=30.0)


@pytest.fixture
def facade(db, cache) -> DistributionFacade:
    return DistributionFacade(db, cache)


@pytest.fixture
def make_customer(db):
    """Insert a customer; `age` orders rows by created_at (higher = newer)."""
    async def _make(name: str = "Acme Gas", age: int = 0, **fields) -> Customer:
        stamp = BASE_TIME + timedelta(minutes=age)
        customer = Customer(name=name, created_at=stamp, updated_at=stamp, **fields)
        db.add(customer)
        await db.flush()
        return customer
    return _make


@pytest.fixture
def make_address(db):
    async def _make(customer: Customer, is_primary: bool = False, age: int = 0, **fields) -> Address:
        values = {"line1": "1 Depot Road", "city": "Springfield", **fields}
        address = Address(
            customer_id=customer.id,
            is_primary=is_primary,
            created_at=BASE_TIME + timedelta(minutes=age),
            **values,
        )
        db.add(address)
        await db.flush()
        return address
    return _make


@pytest.fixture
def make_product(db):
    async def _make(
        sku: str,
        status: ProductStatus = ProductStatus.active,
        unit: UnitOfMeasure = UnitOfMeasure.cylinder,
        age: int = 0,
        **fields,
    ) -> Product:
        stamp = BASE_TIME + timedelta(minutes=age)
        values = {"name": f"Product {sku}", **fields}
        product = Product(
            sku=sku,
            status=status,
            unit_of_measure=unit,
            created_at=stamp,
            updated_at=stamp,
            **values,
        )
        db.add(product)
        await db.flush()
        return product
    return _make
