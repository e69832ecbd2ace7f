"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finhealth_gateway.api.main import create_app
from finhealth_gateway.domain.currency import CurrencyConverter, RateTable
from finhealth_gateway.domain.models import ExchangeRate
from finhealth_gateway.infrastructure.database.models import Base
from finhealth_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_1"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rate_table() -> RateTable:
    """Fixed snapshot: 1 USD = 90 RUB, 1 EUR = 99 RUB, 100 JPY = 60 RUB"""
    table = RateTable()
    table.replace(
        [
            ExchangeRate("USD", 90.0, 1),
            ExchangeRate("EUR", 99.0, 1),
            ExchangeRate("JPY", 60.0, 100),
        ]
    )
    return table


@pytest.fixture
def converter(rate_table: RateTable) -> CurrencyConverter:
    return CurrencyConverter(rate_table, "RUB")


@pytest.fixture
def client(db: Session, rate_table: RateTable) -> TestClient:
    """Create FastAPI test client with test database and fixed rates"""
    app = create_app(rate_table=rate_table)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"X-User-ID": USER_ID}


@pytest.fixture
def add_row(db: Session) -> Callable:
    """
    Insert one record row and commit.

    Example:
        add_row(IncomeRow, amount=100, currency="USD", days_ago=3)
    """

    def _add(
        model,
        amount: float = 100.0,
        currency: str = "RUB",
        days_ago: int = 1,
        planned: bool = False,
        user_id: str = USER_ID,
        **extra,
    ):
        row = model(
            user_id=user_id,
            amount=amount,
            currency_code=currency,
            date=date.today() - timedelta(days=days_ago),
            planned=planned,
            connected_account="acc_1",
            **extra,
        )
        db.add(row)
        db.commit()
        return row

    return _add
