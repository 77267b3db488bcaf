"""
Swap Adapter - Token swaps on Solana through the Jupiter aggregator

Provides one operation, resolve -> quote -> build -> sign -> broadcast ->
confirm, with two signing paths:
- Server signs: the wallet is the custodial wallet
- Client signs: an unsigned transaction is returned for the caller's wallet
"""

from .client import SwapClient
from .types import (
    Address,
    TokenDescriptor,
    SwapMode,
    SwapRequest,
    Quote,
    SwapResult,
    SwapStatus,
)
from .errors import (
    SwapAdapterError,
    ErrorKind,
    TokenError,
    AmountError,
    InsufficientFunds,
    QuoteError,
    BuildError,
    SignerError,
    TransactionError,
    RpcError,
    ConfigurationError,
)
from .config import setup_logging, enable_file_logging

__version__ = "1.0.0"

__all__ = [
    # Client
    "SwapClient",
    # Types
    "Address",
    "TokenDescriptor",
    "SwapMode",
    "SwapRequest",
    "Quote",
    "SwapResult",
    "SwapStatus",
    # Errors
    "SwapAdapterError",
    "ErrorKind",
    "TokenError",
    "AmountError",
    "InsufficientFunds",
    "QuoteError",
    "BuildError",
    "SignerError",
    "TransactionError",
    "RpcError",
    "ConfigurationError",
    # Logging
    "setup_logging",
    "enable_file_logging",
]
