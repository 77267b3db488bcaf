"""
Error definitions for Swap Adapter
"""

from .exceptions import (
    ErrorKind,
    SwapAdapterError,
    TokenError,
    AmountError,
    InsufficientFunds,
    RpcError,
    QuoteError,
    BuildError,
    SignerError,
    TransactionError,
    ConfigurationError,
)

__all__ = [
    "ErrorKind",
    "SwapAdapterError",
    "TokenError",
    "AmountError",
    "InsufficientFunds",
    "RpcError",
    "QuoteError",
    "BuildError",
    "SignerError",
    "TransactionError",
    "ConfigurationError",
]
