"""
Test Signer

Tests for key decoding and local signing of versioned transactions.
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import base58
import pytest
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from swap_adapter.infra import solana_signer
from swap_adapter.infra.solana_signer import LocalSigner, Signer, create_signer, decode_keypair
from swap_adapter.errors import ConfigurationError, ErrorKind, SignerError
from conftest import build_unsigned_tx


def test_decode_base58_keypair():
    keypair = Keypair()
    decoded = decode_keypair(str(keypair))
    assert decoded.pubkey() == keypair.pubkey()


def test_decode_json_array_keypair():
    keypair = Keypair()
    decoded = decode_keypair(json.dumps(list(bytes(keypair))))
    assert decoded.pubkey() == keypair.pubkey()


@pytest.mark.parametrize("secret", [
    "",
    "   ",
    "not-base58-0OIl",
    "[1, 2, 3",
    "[999]",
    base58.b58encode(b"\x01" * 32).decode(),
    json.dumps([1] * 63),
])
def test_decode_invalid_keypair(secret):
    with pytest.raises(SignerError) as exc_info:
        decode_keypair(secret)
    assert exc_info.value.kind == ErrorKind.INVALID_KEY_FORMAT


def test_invalid_key_message_hides_material():
    secret = base58.b58encode(b"\x07" * 40).decode()
    with pytest.raises(SignerError) as exc_info:
        decode_keypair(secret)
    assert secret not in str(exc_info.value)


def test_local_signer_is_signer():
    signer = LocalSigner(Keypair())
    assert isinstance(signer, Signer)


@pytest.mark.parametrize("legacy", [False, True])
def test_sign_transaction(legacy):
    keypair = Keypair()
    signer = LocalSigner(keypair)
    unsigned = build_unsigned_tx(keypair.pubkey(), legacy=legacy)

    signed_bytes, signature = signer.sign_transaction(bytes(unsigned))

    signed = VersionedTransaction.from_bytes(signed_bytes)
    assert str(signed.signatures[0]) == signature
    assert signed.signatures[0] != Signature.default()

    message_bytes = bytes(signed.message)
    if isinstance(signed.message, MessageV0):
        message_bytes = bytes([0x80]) + message_bytes
    assert signed.signatures[0].verify(keypair.pubkey(), message_bytes)


def test_sign_transaction_not_a_signer():
    payer = Keypair()
    signer = LocalSigner(Keypair())
    unsigned = build_unsigned_tx(payer.pubkey())

    with pytest.raises(SignerError) as exc_info:
        signer.sign_transaction(bytes(unsigned))
    assert exc_info.value.kind == ErrorKind.SIGNER_MISMATCH


def test_from_bytes_invalid():
    with pytest.raises(SignerError):
        LocalSigner.from_bytes(b"\x00" * 10)


def test_from_file_json(tmp_path):
    keypair = Keypair()
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))))

    signer = LocalSigner.from_file(str(path))
    assert signer.pubkey == str(keypair.pubkey())


def test_from_file_raw_bytes(tmp_path):
    keypair = Keypair()
    path = tmp_path / "id.bin"
    path.write_bytes(bytes(keypair))

    assert LocalSigner.from_file(str(path)).pubkey == str(keypair.pubkey())


def test_from_file_unparseable(tmp_path):
    path = tmp_path / "id.txt"
    path.write_text("hello")

    with pytest.raises(ConfigurationError):
        LocalSigner.from_file(str(path))


def test_create_signer_explicit_key():
    keypair = Keypair()
    assert create_signer(private_key=str(keypair)).pubkey == str(keypair.pubkey())


def test_create_signer_from_config():
    keypair = Keypair()
    with patch.object(solana_signer.global_config.signer, "private_key", str(keypair)):
        assert create_signer().pubkey == str(keypair.pubkey())


def test_create_signer_not_configured():
    signer_config = solana_signer.global_config.signer
    with patch.object(signer_config, "private_key", ""), patch.object(signer_config, "keypair_path", ""):
        with pytest.raises(SignerError) as exc_info:
            create_signer()
    assert exc_info.value.kind == ErrorKind.CONFIG_MISSING
