"""
Type definitions for Swap Adapter
"""

from .common import Address, TokenDescriptor, SwapMode
from .request import SwapRequest
from .result import (
    Quote,
    PreparedTransaction,
    SignedTransaction,
    UnsignedTransactionPayload,
    BroadcastReceipt,
    Confirmation,
    ConfirmationStatus,
    SwapResult,
    SwapStatus,
)

# Built-in token table
from .solana_tokens import (
    KNOWN_TOKENS,
    NATIVE_SOL_MINT,
    WRAPPED_SOL_MINT,
    get_known_token,
    get_known_token_by_mint,
)

__all__ = [
    # Common types
    "Address",
    "TokenDescriptor",
    "SwapMode",
    "SwapRequest",
    # Results
    "Quote",
    "PreparedTransaction",
    "SignedTransaction",
    "UnsignedTransactionPayload",
    "BroadcastReceipt",
    "Confirmation",
    "ConfirmationStatus",
    "SwapResult",
    "SwapStatus",
    # Token table
    "KNOWN_TOKENS",
    "NATIVE_SOL_MINT",
    "WRAPPED_SOL_MINT",
    "get_known_token",
    "get_known_token_by_mint",
]
