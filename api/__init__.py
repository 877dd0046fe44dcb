"""
Serialization models for performance reports.

Reports leave the engine as camelCase JSON-ready pydantic models:
- Headline results and sub-periods
- Risk metrics and benchmark comparison
- Tagged error payloads
"""

__version__ = "1.0.0"
