"""
SwapClient - Unified entry point for token swaps

Wires the RPC client, token registry, aggregator clients, signing policy
and broadcaster into one object.
"""

from __future__ import annotations

from typing import List, Optional, Union

from .config import config as global_config
from .errors import ConfigurationError
from .infra import Broadcaster, BroadcasterConfig, RpcClient, RpcClientConfig
from .modules.amounts import AmountLike
from .modules.signing import SigningPolicy
from .modules.swap import SwapModule
from .modules.tokens import TokenRegistry
from .protocols.jupiter import JupiterAPI, QuoteClient, TransactionBuilder
from .types import Quote, SwapMode, SwapRequest, SwapResult, TokenDescriptor


class SwapClient:
    """
    Unified swap client

    Usage:
        with SwapClient(rpc_url="https://api.mainnet-beta.solana.com") as client:
            result = client.swap(SwapRequest("SOL", "USDC", Decimal("0.001"), wallet))

            if result.needs_signature:
                # Caller's wallet signs, then:
                relayed = client.relay(signed_base64)
            elif result.is_ambiguous:
                # Confirmation timed out; check again later, never resubmit
                later = client.status(result.signature)
    """

    def __init__(
        self,
        rpc_url: Union[str, List[str], None] = None,
        server_public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        keypair_path: Optional[str] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        broadcaster_config: Optional[BroadcasterConfig] = None,
        registry: Optional[TokenRegistry] = None,
    ):
        """
        Initialize SwapClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs for fallback (default SOLANA_RPC_URL)
            server_public_key: Custodial public key (default SOLANA_PUBLIC_KEY)
            private_key: Custodial key material (default SOLANA_PRIVATE_KEY)
            keypair_path: Custodial keypair file (default SOLANA_KEYPAIR_PATH)
            rpc_config: Optional RPC configuration
            broadcaster_config: Optional broadcast/confirmation configuration
            registry: Shared TokenRegistry (one is created if omitted)

        Raises:
            ConfigurationError: If no RPC endpoint is configured
        """
        endpoints = rpc_url if rpc_url is not None else global_config.rpc.urls
        if not endpoints:
            raise ConfigurationError.missing("SOLANA_RPC_URL")

        self._rpc = RpcClient(endpoints, config=rpc_config)
        self._api = JupiterAPI()
        self._registry = registry or TokenRegistry(api=self._api, rpc=self._rpc)
        self._quotes = QuoteClient(self._api)
        self._builder = TransactionBuilder(self._api, self._rpc)
        self._signing = SigningPolicy(
            server_public_key=server_public_key,
            private_key=private_key,
            keypair_path=keypair_path,
        )
        self._broadcaster = Broadcaster(self._rpc, config=broadcaster_config)
        self._swaps = SwapModule(
            self._registry,
            self._quotes,
            self._builder,
            self._signing,
            self._broadcaster,
            self._rpc,
        )

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def registry(self) -> TokenRegistry:
        """Access to token registry"""
        return self._registry

    @property
    def signing(self) -> SigningPolicy:
        """Access to signing policy"""
        return self._signing

    def resolve(self, token: str) -> TokenDescriptor:
        """Resolve a symbol, mint or link with confirmed decimals"""
        return self._registry.confirm_decimals(self._registry.resolve(token))

    def quote(
        self,
        from_token: str,
        to_token: str,
        amount: AmountLike,
        mode: Union[SwapMode, str] = SwapMode.EXACT_IN,
    ) -> Quote:
        """
        Get a quote without building a transaction

        Raises:
            SwapAdapterError: Resolution, amount or quote errors
        """
        return self._swaps.quote(from_token, to_token, amount, mode)

    def swap(self, request: SwapRequest) -> SwapResult:
        """Execute a swap request; never raises for swap outcomes"""
        return self._swaps.execute(request)

    def relay(self, transaction_base64: str, wait_confirmation: bool = True) -> SwapResult:
        """Broadcast a client-signed transaction once"""
        return self._swaps.relay(transaction_base64, wait_confirmation=wait_confirmation)

    def status(self, signature: str) -> SwapResult:
        """Re-check a broadcast transaction without resubmitting"""
        return self._swaps.status(signature)

    def close(self):
        """Close client connections and release resources"""
        self._api.close()
        self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"SwapClient(rpc={self._rpc.endpoint}, server_wallet={self._signing.server_public_key or None})"
