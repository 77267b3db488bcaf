"""
Swap request definition
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from .common import SwapMode


@dataclass(frozen=True)
class SwapRequest:
    """
    Structured swap request produced by an external caller

    Attributes:
        from_token: Input token (symbol, mint address or marketplace link)
        to_token: Output token (symbol, mint address or marketplace link)
        amount: Human amount; denominates the input token for EXACT_IN and
            the output token for EXACT_OUT
        wallet_address: Wallet that pays and receives
        mode: Which side the amount applies to
    """
    from_token: str
    to_token: str
    amount: Union[Decimal, int, float, str]
    wallet_address: str
    mode: SwapMode = SwapMode.EXACT_IN

    def __str__(self) -> str:
        side = "in" if self.mode == SwapMode.EXACT_IN else "out"
        return f"SwapRequest({self.amount} {self.from_token} -> {self.to_token}, exact {side})"
