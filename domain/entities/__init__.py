"""
Domain entities - Core business objects with identity.
"""

from .transaction import (
    Transaction, TransactionType,
    PURCHASE_TYPES, SALE_TYPES, EXTERNAL_CAPITAL_TYPES,
    TRADE_FLOW_INBOUND, TRADE_FLOW_OUTBOUND,
)
from .market_data import Security, PricePoint, ExchangeRate
from .cash_flow import CashFlow, Period, PeriodReturnData
from .scope import Scope

__all__ = [
    "Transaction", "TransactionType",
    "PURCHASE_TYPES", "SALE_TYPES", "EXTERNAL_CAPITAL_TYPES",
    "TRADE_FLOW_INBOUND", "TRADE_FLOW_OUTBOUND",
    "Security", "PricePoint", "ExchangeRate",
    "CashFlow", "Period", "PeriodReturnData",
    "Scope",
]
