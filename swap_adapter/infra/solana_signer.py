"""
Custodial keypair loading and local transaction signing

Secret key material never appears in log lines or error messages.
"""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import SignerError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)

KEYPAIR_LENGTH = 64
_V0_PREFIX = b"\x80"


@runtime_checkable
class Signer(Protocol):
    """Anything that can add its signature to a serialized VersionedTransaction"""

    @property
    def pubkey(self) -> str:
        ...

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """Return ``(signed_tx_bytes, signature_base58)``"""
        ...


def decode_keypair(secret: str) -> Keypair:
    """
    Turn SOLANA_PRIVATE_KEY style material into a Keypair.

    Two encodings are understood: base58 of the 64-byte secret key, and the
    JSON byte array written by ``solana-keygen``.

    Raises:
        SignerError: INVALID_KEY_FORMAT, with a message that never echoes the key
    """
    material = (secret or "").strip()
    if not material:
        raise SignerError.invalid_key("empty key material")

    try:
        raw = bytes(json.loads(material)) if material.startswith("[") else base58.b58decode(material)
    except (ValueError, TypeError) as e:
        raise SignerError.invalid_key(f"not base58 or a JSON byte array ({type(e).__name__})")

    if len(raw) != KEYPAIR_LENGTH:
        raise SignerError.invalid_key(f"expected {KEYPAIR_LENGTH} bytes, got {len(raw)}")
    try:
        return Keypair.from_bytes(raw)
    except ValueError:
        raise SignerError.invalid_key("secret and public halves do not match")


def _signing_payload(message) -> bytes:
    # v0 messages sign over their version byte as well
    body = bytes(message)
    return _V0_PREFIX + body if isinstance(message, MessageV0) else body


class LocalSigner:
    """
    Signs with an in-process solders Keypair

        signer = LocalSigner.from_base58(secret)
        signed, signature = signer.sign_transaction(unsigned)
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @property
    def pubkey(self) -> str:
        return str(self._keypair.pubkey())

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Fill this key's signature slot in a legacy or v0 transaction.

        Signatures already present for other signers are kept.

        Raises:
            SignerError: SIGNER_MISMATCH when the key is not among the required signers
        """
        tx = VersionedTransaction.from_bytes(unsigned_tx)
        message = tx.message
        required = message.header.num_required_signatures
        signers: List = list(message.account_keys)[:required]

        own = self._keypair.pubkey()
        if own not in signers:
            raise SignerError.not_a_signer(str(own), [str(key) for key in signers])
        slot = signers.index(own)

        signature = self._keypair.sign_message(_signing_payload(message))

        slots = list(tx.signatures)[:required]
        slots.extend(Signature.default() for _ in range(required - len(slots)))
        slots[slot] = signature
        logger.debug(f"Signed transaction {signature} as {own}")

        return bytes(VersionedTransaction.populate(message, slots)), str(signature)

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        try:
            return cls(Keypair.from_bytes(secret_key))
        except ValueError:
            raise SignerError.invalid_key(f"expected a valid {KEYPAIR_LENGTH}-byte keypair, got {len(secret_key)} bytes")

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Accepts base58 or a JSON byte array, see decode_keypair"""
        return cls(decode_keypair(secret_key))

    @classmethod
    def from_file(cls, path: str) -> "LocalSigner":
        """Load a ``solana-keygen`` JSON file or a raw 64-byte key file"""
        with open(path, "rb") as f:
            content = f.read()

        try:
            parsed = json.loads(content.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            parsed = None

        if isinstance(parsed, list):
            try:
                raw = bytes(parsed)
            except (ValueError, TypeError):
                raise ConfigurationError.invalid("keypair_path", f"Keypair file has out-of-range bytes: {path}")
            return cls.from_bytes(raw)

        if len(content) == KEYPAIR_LENGTH:
            return cls.from_bytes(content)

        raise ConfigurationError.invalid("keypair_path", f"Cannot parse keypair file: {path}")


def create_signer(
    private_key: Optional[str] = None,
    keypair_path: Optional[str] = None,
) -> LocalSigner:
    """
    Build the custodial signer from the first source that is set:
    ``private_key``, ``keypair_path``, SOLANA_PRIVATE_KEY, SOLANA_KEYPAIR_PATH.

    Raises:
        SignerError: INVALID_KEY_FORMAT for unreadable material,
            CONFIG_MISSING when no source is set
    """
    if private_key:
        return LocalSigner.from_base58(private_key)
    if keypair_path:
        return LocalSigner.from_file(keypair_path)

    configured = global_config.signer
    if configured.private_key:
        return LocalSigner.from_base58(configured.private_key)
    if configured.keypair_path and os.path.isfile(configured.keypair_path):
        return LocalSigner.from_file(configured.keypair_path)

    raise SignerError.not_configured()
