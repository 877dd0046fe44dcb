"""
Test suite for the Perfolio analytics engine.

This module contains:
- Unit tests for value objects, conversion and valuation
- Calculator tests for TTWROR, IRR, risk and benchmark figures
- End-to-end report tests over an in-memory ledger
"""

__version__ = "1.0.0"
