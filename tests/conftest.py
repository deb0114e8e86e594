"""Pytest configuration and fixtures"""
import os
from datetime import datetime, timezone

import pytest

# Set test environment variables before bookheaven.config is imported
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "bookheaven_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SQLALCHEMY_URL", "sqlite://")
os.environ.setdefault("ENV", "test")

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from bookheaven.main import create_app
from bookheaven.models import Book
from bookheaven.services.cart_ledger import CartLedger
from bookheaven.services.order_service import OrderService
from bookheaven.utils.token import create_access_token


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def books(engine):
    """Three catalog books with fixed ids, prices in cents"""
    seed = [
        Book(
            id=1,
            title="Linear Algebra and Its Applications",
            slug="linear-algebra-and-its-applications",
            author="David C. Lay",
            publisher="Pearson",
            price=500,
            category="Education",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ),
        Book(
            id=2,
            title="JavaScript: The Complete Guide",
            slug="javascript-the-complete-guide",
            author="David Flanagan",
            publisher="O'Reilly Media",
            price=800,
            category="Technology",
            is_featured=True,
            created_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
            updated_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
        ),
        Book(
            id=10,
            title="Data Analysis using SQL and Excel",
            slug="data-analysis-using-sql-and-excel",
            author="Gordon S. Linoff",
            publisher="Wiley Publishing",
            price=300,
            image_url="/books/data1.jpg",
            category="Technology",
            is_featured=True,
            created_at=datetime(2026, 1, 3, tzinfo=timezone.utc),
            updated_at=datetime(2026, 1, 3, tzinfo=timezone.utc),
        ),
    ]
    prices = {book.id: book.price for book in seed}
    with Session(engine) as session:
        for book in seed:
            session.add(book)
        session.commit()
    return prices


@pytest.fixture
def set_price(engine):
    """Change a catalog price behind the ledger's back"""
    def _set_price(book_id: int, cents: int):
        with Session(engine) as session:
            book = session.get(Book, book_id)
            book.price = cents
            session.add(book)
            session.commit()
    return _set_price


@pytest.fixture
def ledger(engine, books):
    return CartLedger(engine, max_attempts=3)


@pytest.fixture
def order_service(engine, books):
    return OrderService(engine)


@pytest.fixture
def client(engine, books):
    """Test client bound to the in-memory database"""
    app = create_app(engine=engine)
    return TestClient(app)


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "1", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers():
    token = create_access_token({"sub": "2", "role": "customer"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr("bookheaven.services.transaction.time.sleep", lambda seconds: None)
