"""
Cash flow and sub-period records produced by the performance calculators.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict


@dataclass(frozen=True)
class CashFlow:
    """External capital flow in the reporting currency.
    
    Portfolio perspective: positive amounts enter the portfolio,
    negative amounts leave it.
    """
    
    date: date
    amount: Decimal
    
    @property
    def is_inflow(self) -> bool:
        return self.amount > 0


@dataclass(frozen=True)
class Period:
    """TTWROR sub-period between two breakpoints."""
    
    start_date: date
    end_date: date
    start_value: float
    end_value: float
    cash_flow: float
    return_rate: float
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'start_value': self.start_value,
            'end_value': self.end_value,
            'cash_flow': self.cash_flow,
            'return_rate': self.return_rate,
        }


# Name used by report consumers for the per-period chart rows
PeriodReturnData = Period
