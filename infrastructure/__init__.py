"""Infrastructure: ledger storage interfaces and providers."""
