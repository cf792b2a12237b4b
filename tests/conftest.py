import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolfees.auth.security import create_access_token
from schoolfees.core.config import settings
from schoolfees.core.models import Category, Payment, Student
from schoolfees.db.session import Base, enable_sqlite_foreign_keys, get_db
from schoolfees.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test. StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, no credentials."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> dict:
    token = create_access_token(subject={"sub": settings.admin_email, "email": settings.admin_email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def auth_client(client: AsyncClient, auth_headers: dict) -> AsyncClient:
    client.headers.update(auth_headers)
    return client


# --- Seed helpers (direct ORM inserts) ---
async def add_category(
    db: AsyncSession,
    name: str,
    amount: str = "5000",
    is_active: bool = True,
) -> Category:
    obj = Category(name=name, amount=Decimal(amount), is_active=is_active, is_deleted=False)
    db.add(obj)
    await db.commit()
    return obj


async def add_student(
    db: AsyncSession,
    external_id: str,
    first_name: str = "Ada",
    last_name: str = "Obi",
    class_name: str = "JSS1",
    categories: Iterable[Category] = (),
) -> Student:
    obj = Student(
        first_name=first_name,
        last_name=last_name,
        student_id=external_id,
        class_name=class_name,
        is_deleted=False,
        categories=list(categories),
    )
    db.add(obj)
    await db.commit()
    return obj


async def add_payment(
    db: AsyncSession,
    student: Student,
    category: Category,
    amount: str,
    paid_on: date,
    method: str = "cash",
    reference: Optional[str] = None,
) -> Payment:
    obj = Payment(
        student_id=student.id,
        category_id=category.id,
        amount=Decimal(amount),
        payment_date=paid_on,
        payment_method=method,
        reference=reference,
    )
    db.add(obj)
    await db.commit()
    return obj
