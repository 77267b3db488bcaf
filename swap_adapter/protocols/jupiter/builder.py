"""
Transaction builder

Turns a quote into a signable versioned transaction using the aggregator's
transaction-assembly endpoint, then refreshes the blockhash right before
handing it on.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Union

from solders.hash import Hash
from solders.message import Message, MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .api import JupiterAPI
from ...config import config as global_config
from ...errors import BuildError
from ...infra.retry import retry_call
from ...infra.rpc import RpcClient
from ...types import Address, PreparedTransaction, Quote

logger = logging.getLogger(__name__)


def replace_blockhash(tx: VersionedTransaction, blockhash: str) -> VersionedTransaction:
    """
    Rebuild a transaction with a new recent blockhash

    Signatures are reset to placeholders; any existing ones would be invalid
    for the new message.
    """
    message = tx.message
    new_hash = Hash.from_string(blockhash)

    if isinstance(message, MessageV0):
        new_message = MessageV0(
            message.header,
            list(message.account_keys),
            new_hash,
            list(message.instructions),
            list(message.address_table_lookups),
        )
    else:
        header = message.header
        new_message = Message.new_with_compiled_instructions(
            header.num_required_signatures,
            header.num_readonly_signed_accounts,
            header.num_readonly_unsigned_accounts,
            list(message.account_keys),
            new_hash,
            list(message.instructions),
        )

    placeholders = [Signature.default()] * new_message.header.num_required_signatures
    return VersionedTransaction.populate(new_message, placeholders)


class TransactionBuilder:
    """
    Transaction builder

    The assembly request asks the aggregator not to wrap or unwrap SOL, enables
    the dynamic compute-unit limit and caps dynamic slippage on top of the
    quote's own slippage.

    Usage:
        builder = TransactionBuilder(JupiterAPI(), rpc)
        prepared = builder.build(quote, wallet)
    """

    def __init__(
        self,
        api: JupiterAPI,
        rpc: RpcClient,
        attempts: int = None,
        timeout: float = None,
        retry_delay: float = None,
        max_dynamic_slippage_bps: int = None,
        blockhash_commitment: str = None,
    ):
        self._api = api
        self._rpc = rpc
        self._attempts = attempts if attempts is not None else global_config.jupiter.build_attempts
        self._timeout = timeout if timeout is not None else global_config.jupiter.timeout
        self._retry_delay = retry_delay if retry_delay is not None else global_config.jupiter.retry_delay
        self._max_dynamic_slippage_bps = (
            max_dynamic_slippage_bps if max_dynamic_slippage_bps is not None
            else global_config.trading.max_dynamic_slippage_bps
        )
        self._blockhash_commitment = (
            blockhash_commitment if blockhash_commitment is not None else global_config.tx.blockhash_commitment
        )

    def build_request(self, quote: Quote, wallet_address: Union[Address, str]) -> Dict[str, Any]:
        """Body for the transaction-assembly endpoint"""
        return {
            "quoteResponse": quote.raw_response,
            "userPublicKey": str(wallet_address),
            "wrapUnwrapSOL": False,
            "dynamicComputeUnitLimit": True,
            "dynamicSlippage": {"maxBps": self._max_dynamic_slippage_bps},
        }

    def _fetch(self, body: Dict[str, Any], timeout: float) -> bytes:
        data = self._api.post_swap(body, timeout=timeout)

        if data.get("error"):
            raise BuildError.aggregator_error(data["error"])

        swap_transaction = data.get("swapTransaction")
        if not swap_transaction:
            raise BuildError.missing_transaction()

        try:
            return base64.b64decode(swap_transaction, validate=True)
        except (binascii.Error, ValueError) as e:
            raise BuildError.undecodable(e)

    def build(self, quote: Quote, wallet_address: Union[Address, str]) -> PreparedTransaction:
        """
        Build the unsigned swap transaction

        Args:
            quote: Quote from the QuoteClient (raw response is forwarded verbatim)
            wallet_address: Wallet that pays and signs

        Returns:
            PreparedTransaction with a freshly fetched blockhash

        Raises:
            BuildError: BUILD_FAILED
            RpcError: If the blockhash cannot be fetched
        """
        body = self.build_request(quote, wallet_address)

        try:
            raw = retry_call(
                lambda t: self._fetch(body, t),
                "build_transaction",
                max_attempts=self._attempts,
                timeout=self._timeout,
                delay=self._retry_delay,
            )
        except BuildError as e:
            if e.recoverable:
                raise BuildError.exhausted(self._attempts, e)
            raise

        try:
            tx = VersionedTransaction.from_bytes(raw)
        except Exception as e:
            raise BuildError.undecodable(e)

        latest = self._rpc.get_latest_blockhash(commitment=self._blockhash_commitment)
        blockhash = latest.get("blockhash")
        if not blockhash:
            raise BuildError("RPC returned no blockhash")

        refreshed = replace_blockhash(tx, blockhash)
        logger.debug(f"Swap transaction built for {wallet_address}, blockhash {blockhash}")

        return PreparedTransaction(
            raw_bytes=bytes(refreshed),
            recent_blockhash=blockhash,
            last_valid_block_height=latest.get("lastValidBlockHeight"),
        )
