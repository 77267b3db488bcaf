"""
Swap Module

Orchestrates resolve -> convert -> quote -> build -> sign -> broadcast ->
confirm and normalizes every outcome into a SwapResult.
"""

import logging
from typing import Any, Dict, Tuple, Union

import base58

from .amounts import AmountLike, from_smallest_units, parse_amount, to_smallest_units
from .signing import SigningMode, SigningPolicy
from .tokens import TokenRegistry
from ..config import config as global_config
from ..errors import InsufficientFunds, RpcError, SwapAdapterError, TransactionError
from ..infra.broadcaster import Broadcaster
from ..infra.retry import CorrelationContext
from ..infra.rpc import RpcClient
from ..protocols.jupiter.builder import TransactionBuilder
from ..protocols.jupiter.quotes import QuoteClient
from ..types import (
    Address,
    BroadcastReceipt,
    Confirmation,
    ConfirmationStatus,
    Quote,
    SignedTransaction,
    SwapMode,
    SwapRequest,
    SwapResult,
    TokenDescriptor,
)

logger = logging.getLogger(__name__)


class SwapModule:
    """
    Swap orchestrator

    Every step runs sequentially; each network call carries its own timeout.
    Adapter errors become SwapResult failures. Anything else propagates.

    Usage:
        swaps = SwapModule(registry, quotes, builder, signing, broadcaster, rpc)
        result = swaps.execute(SwapRequest("SOL", "USDC", Decimal("0.001"), wallet))
        if result.needs_signature:
            send_to_wallet(result.transaction_base64)
    """

    def __init__(
        self,
        registry: TokenRegistry,
        quotes: QuoteClient,
        builder: TransactionBuilder,
        signing: SigningPolicy,
        broadcaster: Broadcaster,
        rpc: RpcClient,
        fee_buffer_lamports: int = None,
    ):
        self._registry = registry
        self._quotes = quotes
        self._builder = builder
        self._signing = signing
        self._broadcaster = broadcaster
        self._rpc = rpc
        self._fee_buffer_lamports = (
            fee_buffer_lamports if fee_buffer_lamports is not None
            else global_config.solana.fee_buffer_lamports
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _resolve_pair(self, from_token: str, to_token: str) -> Tuple[TokenDescriptor, TokenDescriptor]:
        input_token = self._registry.confirm_decimals(self._registry.resolve(from_token))
        output_token = self._registry.confirm_decimals(self._registry.resolve(to_token))
        return input_token, output_token

    def _check_native_balance(self, wallet: Address, lamports: int):
        """Native balance must cover the swap amount plus the fee buffer"""
        available = self._rpc.get_balance(wallet.value)
        required = lamports + self._fee_buffer_lamports
        if available < required:
            raise InsufficientFunds.sol_for_swap(required, available, self._fee_buffer_lamports)
        logger.debug(f"Balance check passed: {available} >= {required} lamports")

    @staticmethod
    def _summary(quote: Quote, input_token: TokenDescriptor, output_token: TokenDescriptor) -> Dict[str, Any]:
        amount_in = from_smallest_units(quote.in_amount_raw, input_token.decimals)
        amount_out = from_smallest_units(quote.out_amount_raw, output_token.decimals)
        rate = amount_out / amount_in if amount_in > 0 else None
        return {
            "amount_in": amount_in,
            "amount_out": amount_out,
            "rate": rate,
            "input_mint": input_token.mint.value,
            "output_mint": output_token.mint.value,
            "price_impact_pct": quote.price_impact_pct,
        }

    def _broadcast_once(self, signed: SignedTransaction) -> BroadcastReceipt:
        try:
            return self._broadcaster.broadcast(signed)
        except RpcError as e:
            # The node may have received it; the signature is the handle to check
            raise RpcError(
                f"{e.message}. Transaction {signed.signature} may have been received; "
                "check its status before retrying",
                original_error=e,
                endpoint=e.endpoint,
                recoverable=False,
            )

    def _finish(self, confirmation: Confirmation, context: Dict[str, Any]) -> SwapResult:
        signature = confirmation.signature
        if confirmation.status == ConfirmationStatus.CONFIRMED:
            return SwapResult.confirmed(signature, **context)
        if confirmation.status == ConfirmationStatus.FAILED:
            raise TransactionError.on_chain_failure(signature, confirmation.error)
        # Still in flight or unknown: report as submitted, never resubmit
        return SwapResult.submitted(signature, **context)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def quote(
        self,
        from_token: str,
        to_token: str,
        amount: AmountLike,
        mode: Union[SwapMode, str] = SwapMode.EXACT_IN,
    ) -> Quote:
        """
        Quote without building or signing

        Raises:
            SwapAdapterError: Any resolution, amount or quote error
        """
        mode = mode if isinstance(mode, SwapMode) else SwapMode.from_string(mode)
        value = parse_amount(amount)
        input_token, output_token = self._resolve_pair(from_token, to_token)
        amount_raw = to_smallest_units(value, mode, input_token.decimals, output_token.decimals)
        return self._quotes.get_quote(input_token, output_token, amount_raw, mode)

    def execute(self, request: SwapRequest) -> SwapResult:
        """
        Execute a swap request

        Returns:
            SwapResult: CONFIRMED (server signed), PENDING_SIGNATURE (client
            signs), SUBMITTED (confirmation timed out) or FAILED
        """
        with CorrelationContext("swap") as cid:
            logger.info(f"[{cid}] {request} for wallet {request.wallet_address}")
            context: Dict[str, Any] = {}
            try:
                result = self._execute(request, context)
            except SwapAdapterError as e:
                logger.warning(f"[{cid}] Swap failed: {e}")
                return SwapResult.from_error(e, **context)

            logger.info(f"[{cid}] {result}")
            return result

    def _execute(self, request: SwapRequest, context: Dict[str, Any]) -> SwapResult:
        mode = request.mode if isinstance(request.mode, SwapMode) else SwapMode.from_string(request.mode)

        # Validation first: no network call for a bad amount or wallet
        amount = parse_amount(request.amount)
        wallet = Address.parse(request.wallet_address, require_on_curve=True)

        input_token, output_token = self._resolve_pair(request.from_token, request.to_token)
        context.update(input_mint=input_token.mint.value, output_mint=output_token.mint.value)

        amount_raw = to_smallest_units(amount, mode, input_token.decimals, output_token.decimals)

        if input_token.is_native and mode == SwapMode.EXACT_IN:
            self._check_native_balance(wallet, amount_raw)

        quote = self._quotes.get_quote(input_token, output_token, amount_raw, mode)
        logger.info(f"{quote} route={quote.route}")

        if input_token.is_native and mode == SwapMode.EXACT_OUT:
            # Input size is only known once quoted
            self._check_native_balance(wallet, quote.in_amount_raw)

        context.update(self._summary(quote, input_token, output_token))

        prepared = self._builder.build(quote, wallet)

        if self._signing.select_mode(wallet.value) == SigningMode.CLIENT:
            payload = self._signing.prepare_for_client(prepared)
            return SwapResult.pending_signature(payload.transaction_base64, **context)

        signed = self._signing.sign(prepared, wallet.value)
        context["signature"] = signed.signature

        receipt = self._broadcast_once(signed)
        context["signature"] = receipt.signature
        confirmation = self._broadcaster.await_confirmation(receipt.signature)
        context.pop("signature")
        return self._finish(confirmation, context)

    def relay(self, transaction_base64: str, wait_confirmation: bool = True) -> SwapResult:
        """
        Broadcast a transaction signed by the caller's wallet

        Sent once with preflight enabled. With wait_confirmation=False the
        result is SUBMITTED with kind CONFIRMATION_TIMEOUT, the same shape as
        a poll that ran out; use status() to follow it.

        Returns:
            SwapResult: CONFIRMED, SUBMITTED or FAILED
        """
        with CorrelationContext("relay") as cid:
            context: Dict[str, Any] = {}
            try:
                signed = self._broadcaster.decode_payload(transaction_base64)
                context["signature"] = signed.signature
                receipt = self._broadcast_once(signed)
                logger.info(f"[{cid}] Relayed {receipt.signature}")

                if not wait_confirmation:
                    return SwapResult.submitted(receipt.signature)

                context.pop("signature")
                return self._finish(self._broadcaster.await_confirmation(receipt.signature), {})

            except SwapAdapterError as e:
                logger.warning(f"[{cid}] Relay failed: {e}")
                return SwapResult.from_error(e, **context)

    def status(self, signature: str) -> SwapResult:
        """
        One status lookup for a previously broadcast transaction

        Returns:
            SwapResult: CONFIRMED, SUBMITTED (not yet confirmed) or FAILED
        """
        try:
            valid = len(base58.b58decode(signature)) == 64
        except (ValueError, TypeError):
            valid = False
        if not valid:
            return SwapResult.from_error(TransactionError.invalid_payload(f"invalid signature: {signature!r}"))

        try:
            return self._finish(self._broadcaster.check_status(signature), {})
        except SwapAdapterError as e:
            return SwapResult.from_error(e, signature=signature)
