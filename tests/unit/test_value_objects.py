"""
Unit tests for domain value objects and entities.
"""

import pytest
from datetime import date
from decimal import Decimal

from domain.value_objects import Currency, Money, Shares, Price, normalize_currency
from domain.entities import (
    Transaction, TransactionType, ExchangeRate, PricePoint, Scope, Security,
)


class TestCurrency:
    """Test Currency value object."""
    
    def test_currency_normalization(self):
        """Test codes are upper-cased."""
        assert Currency("eur").code == "EUR"
        assert normalize_currency(" usd ") == "USD"
    
    def test_currency_validation(self):
        """Test invalid codes are rejected."""
        with pytest.raises(ValueError, match="Invalid currency code"):
            Currency("EURO")
        with pytest.raises(ValueError):
            Currency("")
    
    def test_pence_quote_currency(self):
        """Test GBX and GBp settle in GBP with a divisor of 100."""
        for code in ("GBX", "GBp"):
            currency = Currency(code)
            assert currency.is_subunit
            assert currency.settlement.code == "GBP"
            assert currency.subunit_divisor == Decimal("100")
        
        assert not Currency("GBP").is_subunit
        assert Currency("GBP").subunit_divisor == Decimal("1")


class TestMoney:
    """Test Money value object."""
    
    def test_money_creation(self):
        """Test basic money creation."""
        money = Money(150050, "USD")
        assert money.amount == 150050
        assert money.currency == "USD"
        assert str(money) == "1500.50 USD"
    
    def test_money_default_currency(self):
        """Test default currency."""
        assert Money(100).currency == "EUR"
    
    def test_money_requires_minor_units(self):
        """Test float amounts are rejected."""
        with pytest.raises(TypeError):
            Money(10.5, "EUR")
    
    def test_money_from_decimal_rounds_half_even(self):
        """Test conversion from major units."""
        assert Money.from_decimal(Decimal("10.005"), "EUR").amount == 1000
        assert Money.from_decimal(Decimal("10.015"), "EUR").amount == 1002
        assert Money.from_decimal("1800", "EUR").to_decimal() == Decimal("1800")
    
    def test_money_arithmetic_same_currency(self):
        """Test arithmetic with same currency."""
        a = Money(10000, "EUR")
        b = Money(2550, "EUR")
        assert (a + b).amount == 12550
        assert (a - b).amount == 7450
        assert (-a).amount == -10000
    
    def test_money_arithmetic_different_currency(self):
        """Test arithmetic with different currencies fails."""
        with pytest.raises(ValueError, match="Cannot add EUR and USD"):
            Money(100, "EUR") + Money(100, "USD")
        with pytest.raises(ValueError):
            Money(100, "EUR") < Money(100, "USD")
    
    def test_money_properties(self):
        """Test sign properties."""
        assert Money(1).is_positive
        assert Money(-1).is_negative
        assert Money.zero("USD").is_zero


class TestShares:
    """Test Shares value object."""
    
    def test_shares_scale(self):
        """Test fractional shares keep their scale."""
        quantity = Shares.from_decimal("1.5")
        assert quantity.value == 150_000_000
        assert quantity.to_decimal() == Decimal("1.5")
    
    def test_shares_cannot_be_negative(self):
        """Test the non-negative invariant."""
        with pytest.raises(ValueError, match="cannot be negative"):
            Shares(-1)
        with pytest.raises(ValueError):
            Shares.net([100], [200])
        with pytest.raises(ValueError):
            Shares(100) - Shares(200)
    
    def test_shares_net(self):
        """Test netting inbound and outbound legs."""
        assert Shares.net([500, 300], [200]).value == 600


class TestPrice:
    """Test Price value object."""
    
    def test_price_scale(self):
        """Test price conversion."""
        p = Price.from_decimal("123.45")
        assert p.value == 12_345_000_000
        assert p.to_decimal() == Decimal("123.45")
        assert p.to_float() == pytest.approx(123.45)
    
    def test_price_validation(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            Price(-1)


class TestTransaction:
    """Test Transaction entity."""
    
    def test_type_parsing_from_string(self):
        """Test ledger type strings and aliases."""
        txn = Transaction(date(2023, 1, 1), "dividend", 500, "eur")
        assert txn.type is TransactionType.DIVIDEND
        assert txn.currency == "EUR"
        assert TransactionType.parse("FEE") is TransactionType.FEES
    
    def test_share_delta(self):
        """Test purchase and sale classes move shares in opposite directions."""
        inbound = Transaction(date(2023, 1, 1), TransactionType.DELIVERY_INBOUND, 0, "EUR",
                              security_id=1, shares=300)
        outbound = Transaction(date(2023, 1, 2), TransactionType.TRANSFER_OUT, 0, "EUR",
                               security_id=1, shares=100)
        dividend = Transaction(date(2023, 1, 3), TransactionType.DIVIDEND, 100, "EUR",
                               security_id=1)
        assert inbound.share_delta == 300
        assert outbound.share_delta == -100
        assert dividend.share_delta == 0
    
    def test_cash_delta(self):
        """Test cash account effects."""
        assert Transaction(date(2023, 1, 1), TransactionType.DEPOSIT, 1000, "EUR").cash_delta == 1000
        assert Transaction(date(2023, 1, 1), TransactionType.BUY, 1000, "EUR").cash_delta == -1000
        assert Transaction(date(2023, 1, 1), TransactionType.FEES, 50, "EUR").cash_delta == -50
        assert Transaction(date(2023, 1, 1), TransactionType.TRANSFER_IN, 50, "EUR").cash_delta == 0


class TestMarketData:
    """Test market data entities."""
    
    def test_exchange_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            ExchangeRate("EUR", "USD", date(2023, 1, 1), Decimal("0"))
    
    def test_exchange_rate_coerces_decimal(self):
        rate = ExchangeRate("eur", "usd", date(2023, 1, 1), 1.1)
        assert rate.rate == Decimal("1.1")
        assert (rate.base, rate.target) == ("EUR", "USD")
    
    def test_price_point_rejects_negative_close(self):
        with pytest.raises(ValueError):
            PricePoint(1, date(2023, 1, 1), -5)
    
    def test_security_quote_currency(self):
        assert Security(7, "GBX").quote_currency.settlement.code == "GBP"


class TestScope:
    """Test calculation scope."""
    
    def test_scope_matching(self):
        txn = Transaction(date(2023, 1, 1), TransactionType.DEPOSIT, 100, "EUR", portfolio_id=2)
        assert Scope.all().matches(txn)
        assert Scope.portfolio(2).matches(txn)
        assert not Scope.portfolio(3).matches(txn)
        assert str(Scope.all()) == "all"
        assert str(Scope.portfolio(2)) == "portfolio:2"
