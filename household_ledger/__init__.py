"""Multi-currency household ledger."""

__version__ = "0.1.0"
