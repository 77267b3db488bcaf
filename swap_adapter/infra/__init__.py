"""
Infrastructure layer: RPC transport, signing, broadcast and retry helpers
"""

from .rpc import RpcClient, RpcClientConfig
from .solana_signer import Signer, LocalSigner, create_signer, decode_keypair
from .broadcaster import Broadcaster, BroadcasterConfig
from .retry import (
    retry_call,
    is_recoverable,
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
)

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "Signer",
    "LocalSigner",
    "create_signer",
    "decode_keypair",
    "Broadcaster",
    "BroadcasterConfig",
    "retry_call",
    "is_recoverable",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
]
