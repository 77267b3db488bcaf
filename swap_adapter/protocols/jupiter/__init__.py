"""
Jupiter aggregator integration
"""

from .api import JupiterAPI
from .quotes import QuoteClient
from .builder import TransactionBuilder, replace_blockhash

__all__ = [
    "JupiterAPI",
    "QuoteClient",
    "TransactionBuilder",
    "replace_blockhash",
]
