"""
Ledger services.

Each subpackage owns one concern; ``LedgerEngine`` exposes them as
operations returning structured results.
"""

from happyinvest.services.ledger_engine import LedgerEngine

__all__ = [
    "LedgerEngine",
]
