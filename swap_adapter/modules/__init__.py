"""
Functional modules for SwapClient

Provides:
- TokenRegistry: Symbol/mint resolution and decimals
- Amount conversion helpers
- SigningPolicy: Server-signs vs client-signs decision
- SwapModule: Swap orchestration, relay and status checks
"""

from .tokens import TokenRegistry
from .amounts import to_smallest_units, from_smallest_units, scale_amount, parse_amount
from .signing import SigningPolicy, SigningMode
from .swap import SwapModule

__all__ = [
    "TokenRegistry",
    "to_smallest_units",
    "from_smallest_units",
    "scale_amount",
    "parse_amount",
    "SigningPolicy",
    "SigningMode",
    "SwapModule",
]
