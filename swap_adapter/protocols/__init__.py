"""
Aggregator protocol integrations
"""

from .jupiter import JupiterAPI, QuoteClient, TransactionBuilder

__all__ = [
    "JupiterAPI",
    "QuoteClient",
    "TransactionBuilder",
]
