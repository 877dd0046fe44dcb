"""
Pytest configuration and shared fixtures.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from datetime import date
from decimal import Decimal
from typing import List

from configs.environments.testing import TestingConfig
from configs.settings import get_settings
from domain.entities import (
    Transaction, TransactionType, Security, PricePoint, ExchangeRate, Scope,
)
from domain.value_objects import SHARES_SCALE, PRICE_SCALE, AMOUNT_SCALE
from infrastructure.providers import InMemoryLedgerProvider
from performance.currency_converter import CurrencyConverter


PORTFOLIO_ID = 1


def shares(quantity) -> int:
    """Whole or fractional shares to the 10^8 scale."""
    return int(Decimal(str(quantity)) * SHARES_SCALE)


def close(price) -> int:
    """Quote to the 10^8 scale."""
    return int(Decimal(str(price)) * PRICE_SCALE)


def cents(amount) -> int:
    """Major units to minor units."""
    return int(Decimal(str(amount)) * AMOUNT_SCALE)


def deposit(on: date, amount, currency: str = "EUR", portfolio_id: int = PORTFOLIO_ID) -> Transaction:
    return Transaction(on, TransactionType.DEPOSIT, cents(amount), currency, portfolio_id=portfolio_id)


def removal(on: date, amount, currency: str = "EUR", portfolio_id: int = PORTFOLIO_ID) -> Transaction:
    return Transaction(on, TransactionType.REMOVAL, cents(amount), currency, portfolio_id=portfolio_id)


def buy(on: date, security_id: int, quantity, amount, currency: str = "EUR",
        portfolio_id: int = PORTFOLIO_ID) -> Transaction:
    return Transaction(
        on, TransactionType.BUY, cents(amount), currency,
        security_id=security_id, shares=shares(quantity), portfolio_id=portfolio_id,
    )


def sell(on: date, security_id: int, quantity, amount, currency: str = "EUR",
         portfolio_id: int = PORTFOLIO_ID) -> Transaction:
    return Transaction(
        on, TransactionType.SELL, cents(amount), currency,
        security_id=security_id, shares=shares(quantity), portfolio_id=portfolio_id,
    )


def price(security_id: int, on: date, value) -> PricePoint:
    return PricePoint(security_id, on, close(value))


@pytest.fixture(scope="session")
def test_settings():
    """Test settings configuration."""
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def settings() -> TestingConfig:
    """Fresh testing settings, independent of the cached instance."""
    return TestingConfig()


@pytest.fixture
def portfolio_scope() -> Scope:
    return Scope.portfolio(PORTFOLIO_ID)


@pytest.fixture
def sample_rates() -> List[ExchangeRate]:
    """EUR based rates with a change of EUR/USD mid-year."""
    return [
        ExchangeRate("EUR", "USD", date(2023, 1, 1), Decimal("1.10")),
        ExchangeRate("EUR", "USD", date(2023, 6, 1), Decimal("1.20")),
        ExchangeRate("EUR", "GBP", date(2023, 1, 1), Decimal("0.85")),
    ]


@pytest.fixture
def converter(sample_rates) -> CurrencyConverter:
    return CurrencyConverter(sample_rates, anchor_currency="EUR")


@pytest.fixture
def e2e_provider() -> InMemoryLedgerProvider:
    """
    1000 EUR invested on 2023-01-01, 500 EUR deposited on 2023-07-01,
    1800 EUR total value on 2024-01-01.
    """
    start, mid, end = date(2023, 1, 1), date(2023, 7, 1), date(2024, 1, 1)
    return InMemoryLedgerProvider(
        transactions=[
            deposit(start, 1000),
            buy(start, 1, 10, 1000),
            deposit(mid, 500),
        ],
        securities=[Security(1, "EUR", "World Index Fund")],
        prices=[
            price(1, start, 100),
            price(1, date(2023, 4, 1), 110),
            price(1, mid, 120),
            price(1, date(2023, 10, 1), 115),
            price(1, end, 130),
        ],
    )
