"""
Signing Policy

Chooses between server-side signing with the custodial key and handing an
unsigned transaction back to the caller's wallet.
"""

import base64
import logging
import threading
from enum import Enum
from typing import Optional

from ..config import config as global_config
from ..errors import SignerError
from ..infra.solana_signer import Signer, create_signer
from ..types import PreparedTransaction, SignedTransaction, UnsignedTransactionPayload

logger = logging.getLogger(__name__)


class SigningMode(Enum):
    """Who signs the swap transaction"""
    SERVER = "server"
    CLIENT = "client"


class SigningPolicy:
    """
    Signing Policy

    The server signs only when the requested wallet is the custodial wallet
    and key material is configured. Every other wallet gets an unsigned
    transaction; the custodial key is not decoded on that path.

    Usage:
        policy = SigningPolicy(server_public_key="Server...", private_key="base58...")
        if policy.select_mode(wallet) == SigningMode.SERVER:
            signed = policy.sign(prepared, wallet)
        else:
            payload = policy.prepare_for_client(prepared)
    """

    def __init__(
        self,
        server_public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        keypair_path: Optional[str] = None,
        signer: Optional[Signer] = None,
    ):
        """
        Args:
            server_public_key: Custodial public key (default SOLANA_PUBLIC_KEY)
            private_key: Custodial key material (default SOLANA_PRIVATE_KEY)
            keypair_path: Custodial keypair file (default SOLANA_KEYPAIR_PATH)
            signer: Preloaded signer; takes precedence over key material
        """
        self._server_public_key = (
            server_public_key if server_public_key is not None else global_config.signer.public_key
        ) or ""
        if not self._server_public_key and signer is not None:
            self._server_public_key = signer.pubkey
        self._private_key = private_key if private_key is not None else global_config.signer.private_key
        self._keypair_path = keypair_path if keypair_path is not None else global_config.signer.keypair_path
        self._signer = signer
        self._signer_lock = threading.Lock()

    @property
    def server_public_key(self) -> str:
        return self._server_public_key

    @property
    def has_custodial_key(self) -> bool:
        """Key material is configured (not decoded)"""
        return bool(self._signer is not None or self._private_key or self._keypair_path)

    def select_mode(self, wallet_address: str) -> SigningMode:
        """Server signs iff the wallet is the custodial wallet and a key is configured"""
        if (
            self._server_public_key
            and str(wallet_address) == self._server_public_key
            and self.has_custodial_key
        ):
            return SigningMode.SERVER
        return SigningMode.CLIENT

    def _load_signer(self) -> Signer:
        if self._signer is None:
            with self._signer_lock:
                if self._signer is None:
                    signer = create_signer(private_key=self._private_key, keypair_path=self._keypair_path)
                    if self._server_public_key and signer.pubkey != self._server_public_key:
                        raise SignerError.mismatch(self._server_public_key, signer.pubkey)
                    self._signer = signer
        return self._signer

    def sign(self, prepared: PreparedTransaction, wallet_address: str) -> SignedTransaction:
        """
        Sign with the custodial key

        Raises:
            SignerError: INVALID_KEY_FORMAT, SIGNER_MISMATCH or CONFIG_MISSING
        """
        if self.select_mode(wallet_address) != SigningMode.SERVER:
            raise SignerError.mismatch(str(wallet_address), self._server_public_key or "<none>")

        signer = self._load_signer()
        if signer.pubkey != str(wallet_address):
            raise SignerError.mismatch(str(wallet_address), signer.pubkey)

        raw, signature = signer.sign_transaction(prepared.raw_bytes)
        logger.info(f"Signed swap transaction {signature} with custodial key")
        return SignedTransaction(raw_bytes=raw, signature=signature)

    @staticmethod
    def prepare_for_client(prepared: PreparedTransaction) -> UnsignedTransactionPayload:
        """Encode the unsigned transaction for the caller's wallet"""
        return UnsignedTransactionPayload(
            transaction_base64=base64.b64encode(prepared.raw_bytes).decode("ascii"),
            recent_blockhash=prepared.recent_blockhash,
        )
