"""
Shared fixtures for unit tests

Builds real (unsigned) versioned transactions with solders so signing,
blockhash refresh and relay code run against genuine wire bytes.
"""

import base64
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

MEMO_PROGRAM = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")


def build_unsigned_tx(payer: Pubkey, legacy: bool = False, blockhash: Hash = None) -> VersionedTransaction:
    """One memo instruction paid by payer, signatures left as placeholders"""
    blockhash = blockhash or Hash.new_unique()
    ix = Instruction(MEMO_PROGRAM, b"swap", [AccountMeta(payer, True, True)])
    if legacy:
        message = Message.new_with_blockhash([ix], payer, blockhash)
    else:
        message = MessageV0.try_compile(payer, [ix], [], blockhash)
    return VersionedTransaction.populate(message, [Signature.default()] * message.header.num_required_signatures)


@pytest.fixture
def unsigned_tx_factory():
    return build_unsigned_tx


@pytest.fixture
def server_keypair():
    return Keypair()


@pytest.fixture
def external_wallet():
    return str(Keypair().pubkey())


@pytest.fixture
def sol_usdc_quote_response():
    """Aggregator response for 0.001 SOL -> USDC"""
    return {
        "inputMint": "So11111111111111111111111111111111111111112",
        "inAmount": "1000000",
        "outputMint": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "outAmount": "128476",
        "otherAmountThreshold": "127834",
        "swapMode": "ExactIn",
        "slippageBps": 50,
        "priceImpactPct": "0.0001",
        "routePlan": [
            {"swapInfo": {"label": "Whirlpool", "ammKey": "Czfq3xZZDmsdGdUyrNLtRhGc47cXcZtLG4crryfu44zE"}, "percent": 100},
        ],
    }


@pytest.fixture
def mock_rpc():
    """RPC double with a funded wallet and a fresh blockhash"""
    rpc = MagicMock()
    rpc.endpoint = "http://localhost:8899"
    rpc.get_balance.return_value = 2_000_000_000
    rpc.get_latest_blockhash.return_value = {
        "blockhash": str(Hash.new_unique()),
        "lastValidBlockHeight": 250_000_000,
    }
    rpc.get_signature_statuses.return_value = [None]
    return rpc


def swap_response_for(payer: Pubkey, legacy: bool = False) -> dict:
    """Transaction-assembly response carrying an unsigned transaction"""
    tx = build_unsigned_tx(payer, legacy=legacy)
    return {
        "swapTransaction": base64.b64encode(bytes(tx)).decode("ascii"),
        "lastValidBlockHeight": 250_000_000,
    }


@pytest.fixture
def swap_response_factory():
    return swap_response_for
