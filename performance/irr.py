"""
Money-weighted return (IRR) from dated cash flows.

Newton-Raphson with a central finite-difference derivative, falling back to
bisection over a wide bracket. The solver never raises: degenerate input is
reported as ``converged=False`` with a best-effort estimate.
"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from domain.entities import CashFlow
from domain.value_objects import Money
from utils.logging import get_enhanced_logger, LogCategory

logger = get_enhanced_logger(__name__, LogCategory.PERFORMANCE)

DAYS_PER_YEAR = 365.0
DERIVATIVE_STEP = 1e-6

DatedAmount = Tuple[date, float]


@dataclass(frozen=True)
class IRRResult:
    """Annual IRR as a decimal fraction."""
    irr: float
    converged: bool
    iterations: int = 0
    method: str = "none"


def npv(rate: float, flows: Sequence[DatedAmount]) -> float:
    """Net present value with actual/365 discounting from the earliest flow."""
    if not flows:
        return 0.0
    epoch = min(d for d, _ in flows)
    base = 1.0 + rate
    return sum(amount / base ** ((d - epoch).days / DAYS_PER_YEAR) for d, amount in flows)


def _has_sign_change(flows: Sequence[DatedAmount]) -> bool:
    return any(a > 0 for _, a in flows) and any(a < 0 for _, a in flows)


class IRRSolver:
    """Bounded root finder for the IRR equation."""

    def __init__(
        self,
        initial_guess: float = 0.1,
        max_iterations: int = 100,
        tolerance: float = 1e-7,
        lower_bound: float = -0.99,
        upper_bound: float = 10.0
    ):
        self.initial_guess = initial_guess
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound

    @classmethod
    def from_settings(cls, settings) -> 'IRRSolver':
        return cls(**settings.get_solver_config())

    def irr(
        self,
        cash_flows: Iterable[CashFlow],
        terminal_value: Union[Money, Decimal, float],
        terminal_date: date
    ) -> IRRResult:
        """
        Solve for the rate at which invested capital grows into ``terminal_value``.

        ``cash_flows`` use the portfolio sign (money put in is positive). They
        are negated into the investor's view before solving, so money in is a
        payment and the terminal value a receipt.
        """
        if isinstance(terminal_value, Money):
            terminal = terminal_value.to_float()
        else:
            terminal = float(terminal_value)

        flows: List[DatedAmount] = [(cf.date, -float(cf.amount)) for cf in cash_flows]
        flows.append((terminal_date, terminal))
        return self.xirr(flows)

    def xirr(self, flows: Iterable[DatedAmount]) -> IRRResult:
        """IRR of investor-sign ``(date, amount)`` pairs."""
        flows = [(d, float(a)) for d, a in flows if a]
        if not flows or not _has_sign_change(flows):
            logger.debug("IRR undefined: no sign change in cash flows")
            return IRRResult(irr=0.0, converged=False)

        result = self._newton(flows)
        if result.converged:
            return result

        fallback = self._bisection(flows, result)
        if not fallback.converged:
            logger.debug(
                f"IRR did not converge after {fallback.iterations} iterations",
                analytics_context={'estimate': fallback.irr, 'flow_count': len(flows)},
            )
        return fallback

    def _newton(self, flows: Sequence[DatedAmount]) -> IRRResult:
        rate = self.initial_guess
        best_rate, best_residual = rate, math.inf
        iterations = 0

        for iteration in range(1, self.max_iterations + 1):
            iterations = iteration
            try:
                value = npv(rate, flows)
                slope = (
                    npv(rate + DERIVATIVE_STEP, flows) - npv(rate - DERIVATIVE_STEP, flows)
                ) / (2 * DERIVATIVE_STEP)
            except (OverflowError, ZeroDivisionError):
                break

            if abs(value) < best_residual:
                best_rate, best_residual = rate, abs(value)
            if abs(value) < self.tolerance:
                return IRRResult(irr=rate, converged=True, iterations=iteration, method="newton")
            if not math.isfinite(slope) or abs(slope) < 1e-12:
                break

            next_rate = rate - value / slope
            if not math.isfinite(next_rate) or not self.lower_bound <= next_rate <= self.upper_bound:
                break
            rate = next_rate

        return IRRResult(irr=best_rate, converged=False, iterations=iterations, method="newton")

    def _bisection(self, flows: Sequence[DatedAmount], previous: IRRResult) -> IRRResult:
        lo, hi = self.lower_bound, self.upper_bound
        f_lo, f_hi = npv(lo, flows), npv(hi, flows)

        if f_lo * f_hi > 0:
            return IRRResult(irr=previous.irr, converged=False, iterations=0, method="bisection")

        mid = (lo + hi) / 2
        for iteration in range(1, 2 * self.max_iterations + 1):
            mid = (lo + hi) / 2
            f_mid = npv(mid, flows)
            if abs(f_mid) < self.tolerance or (hi - lo) / 2 < 1e-12:
                return IRRResult(irr=mid, converged=True, iterations=iteration, method="bisection")
            if f_lo * f_mid <= 0:
                hi, f_hi = mid, f_mid
            else:
                lo, f_lo = mid, f_mid

        return IRRResult(irr=mid, converged=False, iterations=2 * self.max_iterations, method="bisection")


def solve_irr(
    cash_flows: Iterable[CashFlow],
    terminal_value: Union[Money, Decimal, float],
    terminal_date: date,
    solver: Optional[IRRSolver] = None
) -> IRRResult:
    """Convenience wrapper using default solver parameters."""
    return (solver or IRRSolver()).irr(cash_flows, terminal_value, terminal_date)
