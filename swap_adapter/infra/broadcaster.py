"""
Transaction broadcast and confirmation polling

Submits signed transactions with preflight simulation and polls signature
status until a terminal outcome or the polling window closes. A broadcast
transaction is never resubmitted here.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Optional

from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from ..types import (
    BroadcastReceipt,
    Confirmation,
    ConfirmationStatus,
    SignedTransaction,
)
from ..errors import RpcError, TransactionError
from ..config import config as global_config

logger = logging.getLogger(__name__)


@dataclass
class BroadcasterConfig:
    """
    Broadcaster runtime configuration

    Pulls defaults from the global config (swap_adapter.config.TxConfig).

    Usage:
        broadcaster = Broadcaster(rpc, config=BroadcasterConfig(confirmation_attempts=60))
    """
    skip_preflight: bool = None
    preflight_commitment: str = None
    confirmation_attempts: int = None
    confirmation_interval: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.confirmation_attempts is None:
            self.confirmation_attempts = global_config.tx.confirmation_attempts
        if self.confirmation_interval is None:
            self.confirmation_interval = global_config.tx.confirmation_interval


class Broadcaster:
    """
    Broadcaster and confirmation poller

    Usage:
        broadcaster = Broadcaster(rpc)
        receipt = broadcaster.broadcast(signed)
        confirmation = broadcaster.await_confirmation(receipt.signature)
        if confirmation.is_timeout:
            # Ambiguous: check again later, do not resubmit
            ...
    """

    def __init__(self, rpc: RpcClient, config: Optional[BroadcasterConfig] = None):
        self._rpc = rpc
        self._config = config or BroadcasterConfig()

    def broadcast(self, signed: SignedTransaction) -> BroadcastReceipt:
        """
        Submit a signed transaction once

        Args:
            signed: Signed transaction

        Returns:
            BroadcastReceipt with the signature reported by the node

        Raises:
            TransactionError: BROADCAST_REJECTED if preflight simulation fails
            RpcError: If no endpoint could be reached
        """
        try:
            signature = self._rpc.send_transaction(
                signed.raw_bytes,
                skip_preflight=self._config.skip_preflight,
                preflight_commitment=self._config.preflight_commitment,
            )
        except RpcError as e:
            if e.recoverable:
                raise
            data = e.details.get("rpc_error_data")
            logs = data.get("logs") if isinstance(data, dict) else None
            if logs:
                logger.warning(f"Preflight logs for {signed.signature}: {logs[-5:]}")
            raise TransactionError.broadcast_rejected(e.message, logs=logs, original_error=e)

        if signed.signature and signature != signed.signature:
            logger.warning(f"Node returned signature {signature}, expected {signed.signature}")

        logger.info(f"Transaction sent: {signature}")
        return BroadcastReceipt(signature=signature, endpoint=self._rpc.endpoint)

    def check_status(self, signature: str) -> Confirmation:
        """
        Single signature status lookup

        Returns:
            Confirmation with CONFIRMED, FAILED or PENDING (unknown or below
            confirmed commitment)
        """
        statuses = self._rpc.get_signature_statuses([signature])
        status = statuses[0] if statuses else None

        if not status:
            return Confirmation(ConfirmationStatus.PENDING, signature, attempts=1)

        commitment = status.get("confirmationStatus")
        slot = status.get("slot")

        if status.get("err"):
            return Confirmation(
                ConfirmationStatus.FAILED,
                signature,
                commitment=commitment,
                error=status.get("err"),
                slot=slot,
                attempts=1,
            )

        if commitment in ("confirmed", "finalized"):
            return Confirmation(
                ConfirmationStatus.CONFIRMED,
                signature,
                commitment=commitment,
                slot=slot,
                attempts=1,
            )

        return Confirmation(ConfirmationStatus.PENDING, signature, commitment=commitment, slot=slot, attempts=1)

    def await_confirmation(self, signature: str) -> Confirmation:
        """
        Poll signature status until terminal or the window closes

        Polls every confirmation_interval seconds for up to
        confirmation_attempts lookups. Transport errors during a poll are
        logged and count as an attempt.

        Returns:
            Confirmation; TIMEOUT means the status is unknown, not failed
        """
        attempts = self._config.confirmation_attempts
        last_commitment: Optional[str] = None
        last_slot: Optional[int] = None

        for attempt in range(1, attempts + 1):
            try:
                current = self.check_status(signature)
            except RpcError as e:
                logger.debug(f"Error checking transaction status (attempt {attempt}): {e}")
                current = None

            if current is not None:
                if current.is_terminal:
                    current.attempts = attempt
                    if current.is_failed:
                        logger.warning(f"Transaction {signature} failed on-chain: {current.error}")
                    else:
                        logger.info(f"Transaction {signature} {current.commitment} after {attempt} polls")
                    return current
                last_commitment = current.commitment or last_commitment
                last_slot = current.slot or last_slot

            if attempt < attempts:
                time.sleep(self._config.confirmation_interval)

        if last_commitment is None:
            logger.warning(f"Transaction {signature} not seen on chain after {attempts} polls")
        else:
            logger.warning(f"Transaction {signature} timeout. Last status: {last_commitment}")

        return Confirmation(
            ConfirmationStatus.TIMEOUT,
            signature,
            commitment=last_commitment,
            slot=last_slot,
            attempts=attempts,
        )

    @staticmethod
    def decode_payload(transaction_base64: str) -> SignedTransaction:
        """
        Validate a client-signed transaction payload

        Raises:
            TransactionError: If the payload is not base64, not a transaction,
                or carries no fee-payer signature
        """
        payload = (transaction_base64 or "").strip()
        if not payload:
            raise TransactionError.invalid_payload("empty transaction")

        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise TransactionError.invalid_payload("not valid base64")

        try:
            tx = VersionedTransaction.from_bytes(raw)
        except Exception as e:
            raise TransactionError.invalid_payload(f"cannot deserialize transaction: {e}")

        if not tx.signatures or tx.signatures[0] == Signature.default():
            raise TransactionError.invalid_payload("transaction is not signed by its fee payer")

        return SignedTransaction(raw_bytes=raw, signature=str(tx.signatures[0]))
