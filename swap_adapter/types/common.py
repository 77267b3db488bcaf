"""
Common type definitions
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import base58
from solders.pubkey import Pubkey

from ..errors import TokenError, ConfigurationError


# Base58 alphabet (no 0, O, I, l)
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


@dataclass(frozen=True)
class Address:
    """
    Validated Solana address (base58 encoded 32-byte public key)

    Construct through Address.parse(); Address.trusted() is reserved for
    built-in table entries that are known to be correct.
    """
    value: str

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Address({self.value[:8]}...)"

    @classmethod
    def parse(cls, value: str, require_on_curve: bool = False) -> "Address":
        """
        Parse and validate an address

        Args:
            value: Base58 string
            require_on_curve: Reject program-derived (off-curve) addresses.
                Wallets must be on-curve; mints may be PDAs.

        Raises:
            TokenError: INVALID_ADDRESS if the string is not a 32-byte key
        """
        value = (value or "").strip()
        if not value:
            raise TokenError.invalid_address(value, "empty address")
        if any(ch not in BASE58_ALPHABET for ch in value):
            raise TokenError.invalid_address(value, "not a base58 string")

        decoded = base58.b58decode(value)
        if len(decoded) != 32:
            raise TokenError.invalid_address(value, f"decodes to {len(decoded)} bytes (expected 32)")

        if require_on_curve and not Pubkey.from_bytes(decoded).is_on_curve():
            raise TokenError.invalid_address(value, "address not on ed25519 curve")

        return cls(value)

    @classmethod
    def trusted(cls, value: str) -> "Address":
        """Wrap an address without validation (built-in registry entries)"""
        return cls(value)


class SwapMode(Enum):
    """Which side of the swap the requested amount denominates"""
    EXACT_IN = "ExactIn"
    EXACT_OUT = "ExactOut"

    @classmethod
    def from_string(cls, value: str) -> "SwapMode":
        """Convert string to SwapMode (case-insensitive, accepts ExactIn/exact_in/in)"""
        normalized = value.strip().lower().replace("_", "").replace("-", "")
        if normalized in ("exactin", "in"):
            return cls.EXACT_IN
        if normalized in ("exactout", "out"):
            return cls.EXACT_OUT
        raise ConfigurationError.invalid("mode", f"Unknown swap mode: {value}. Supported: ExactIn, ExactOut")


@dataclass(frozen=True)
class TokenDescriptor:
    """
    Token information

    Attributes:
        mint: Token mint address
        decimals: Number of decimal places (fixed per mint)
        symbol: Token symbol (e.g., "SOL", "USDC") if known
        name: Full token name (optional)
    """
    mint: Address
    decimals: int
    symbol: Optional[str] = None
    name: str = ""

    def __str__(self) -> str:
        return self.symbol or self.mint.value

    def __repr__(self) -> str:
        return f"TokenDescriptor({self.symbol or '?'}, {self.mint.value[:8]}..., decimals={self.decimals})"

    @property
    def is_native(self) -> bool:
        """Native (unwrapped) SOL"""
        # Import here to avoid circular import
        from .solana_tokens import NATIVE_SOL_MINT
        return self.mint.value == NATIVE_SOL_MINT
