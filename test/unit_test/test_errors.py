"""
Test Error Classes

Tests for the error taxonomy and named constructors.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from swap_adapter.errors import (
    ErrorKind,
    SwapAdapterError,
    TokenError,
    AmountError,
    InsufficientFunds,
    RpcError,
    QuoteError,
    BuildError,
    SignerError,
    TransactionError,
    ConfigurationError,
)


def test_error_kind_codes_are_unique():
    """Each kind has its own numeric code"""
    codes = [kind.value for kind in ErrorKind]
    assert len(codes) == len(set(codes))
    assert all(code.isdigit() and len(code) == 4 for code in codes)


def test_str_includes_code():
    error = SwapAdapterError("Something failed", ErrorKind.BUILD_FAILED)
    assert str(error) == "[3002] Something failed"
    assert error.should_retry is False


def test_token_errors():
    not_found = TokenError.not_found("NOPE")
    assert not_found.kind == ErrorKind.TOKEN_NOT_FOUND
    assert not_found.details["token"] == "NOPE"
    assert not_found.recoverable is False

    short = TokenError.invalid_length("link", "7GCihgDB8fe6KNjn2MYtkz")
    assert short.kind == ErrorKind.INVALID_ADDRESS_LENGTH
    assert "22 characters" in short.message

    bad = TokenError.invalid_address("xyz", "not a base58 string")
    assert bad.kind == ErrorKind.INVALID_ADDRESS


def test_amount_errors():
    assert AmountError.not_positive(0).kind == ErrorKind.INVALID_AMOUNT
    too_small = AmountError.too_small(Decimal("0.0000001"), 6)
    assert too_small.details["amount"] == "1E-7"
    assert AmountError.too_large(Decimal("1e30"), 9).kind == ErrorKind.INVALID_AMOUNT


def test_insufficient_funds_for_swap():
    error = InsufficientFunds.sol_for_swap(
        required_lamports=1_010_000_000,
        available_lamports=500_000_000,
        buffer_lamports=10_000_000,
    )
    assert error.kind == ErrorKind.INSUFFICIENT_BALANCE
    assert error.required == Decimal("1.01")
    assert error.available == Decimal("0.5")
    assert "0.0100 SOL fee buffer" in error.message


def test_rpc_error_classification():
    assert RpcError.timeout("http://rpc", 10).recoverable is True
    assert RpcError.rate_limited("http://rpc").recoverable is True
    assert RpcError.connection_failed("http://rpc").kind == ErrorKind.RPC_UNAVAILABLE

    node_error = RpcError.from_response(
        "http://rpc",
        {"code": -32002, "message": "Transaction simulation failed", "data": {"logs": ["x"]}},
    )
    assert node_error.recoverable is False
    assert node_error.rpc_code == -32002
    assert node_error.details["rpc_error_data"] == {"logs": ["x"]}


def test_quote_error_classification():
    """404 is retried, 400 is not"""
    not_found = QuoteError.route_not_found("A", "B")
    assert not_found.status_code == 404
    assert not_found.recoverable is True

    malformed = QuoteError.malformed("bad amount")
    assert malformed.status_code == 400
    assert malformed.recoverable is False

    assert QuoteError.transient(503, "unavailable").recoverable is True

    exhausted = QuoteError.unavailable(5, not_found)
    assert exhausted.kind == ErrorKind.QUOTE_UNAVAILABLE
    assert exhausted.recoverable is False
    assert exhausted.original_error is not_found
    assert "after 5 attempts" in exhausted.message


@pytest.mark.parametrize("status,recoverable", [(429, True), (500, True), (503, True), (400, False), (422, False)])
def test_build_error_http_classification(status, recoverable):
    assert BuildError.http_failed(status, "body").recoverable is recoverable


def test_signer_error_kinds():
    assert SignerError.invalid_key("bad").kind == ErrorKind.INVALID_KEY_FORMAT
    assert SignerError.mismatch("A", "B").kind == ErrorKind.SIGNER_MISMATCH
    assert SignerError.not_a_signer("A", ["B"]).kind == ErrorKind.SIGNER_MISMATCH
    assert SignerError.not_configured().kind == ErrorKind.CONFIG_MISSING


def test_transaction_errors():
    rejected = TransactionError.broadcast_rejected("simulation failed", logs=["log1"])
    assert rejected.kind == ErrorKind.BROADCAST_REJECTED
    assert rejected.logs == ["log1"]

    failed = TransactionError.on_chain_failure("5igSig", {"InstructionError": [2, {"Custom": 6001}]})
    assert failed.kind == ErrorKind.ON_CHAIN_FAILURE
    assert failed.details["signature"] == "5igSig"


def test_configuration_errors():
    assert ConfigurationError.missing("SOLANA_RPC_URL").kind == ErrorKind.CONFIG_MISSING
    assert ConfigurationError.invalid("mode", "bad").kind == ErrorKind.CONFIG_INVALID


def test_error_inheritance():
    """All errors can be caught by the base class"""
    errors = [
        TokenError.not_found("X"),
        AmountError.not_positive(0),
        InsufficientFunds.sol_for_swap(2, 1, 1),
        RpcError.timeout("http://rpc", 1),
        QuoteError.malformed(""),
        BuildError.missing_transaction(),
        SignerError.invalid_key(""),
        TransactionError.invalid_payload(""),
        ConfigurationError.missing("x"),
    ]
    for error in errors:
        assert isinstance(error, SwapAdapterError)
        with pytest.raises(SwapAdapterError):
            raise error
