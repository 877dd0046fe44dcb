"""
Shared utilities for the perfolio analytics engine.

- Structured logging
"""

__version__ = "1.0.0"
