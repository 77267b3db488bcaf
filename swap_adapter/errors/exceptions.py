"""
Exception definitions for Swap Adapter
"""

from enum import Enum
from typing import Optional
from decimal import Decimal


class ErrorKind(Enum):
    """
    Machine-readable error kinds for swap operations

    1xxx - Token resolution errors
    2xxx - Amount/balance errors
    3xxx - Aggregator errors
    4xxx - Signing errors
    5xxx - Chain errors
    9xxx - Configuration errors
    """
    # Token resolution
    TOKEN_NOT_FOUND = "1001"
    INVALID_ADDRESS_LENGTH = "1002"
    INVALID_ADDRESS = "1003"

    # Amount/balance
    INVALID_AMOUNT = "2001"
    INSUFFICIENT_BALANCE = "2002"

    # Aggregator
    QUOTE_UNAVAILABLE = "3001"
    BUILD_FAILED = "3002"

    # Signing
    INVALID_KEY_FORMAT = "4001"
    SIGNER_MISMATCH = "4002"

    # Chain
    BROADCAST_REJECTED = "5001"
    ON_CHAIN_FAILURE = "5002"
    CONFIRMATION_TIMEOUT = "5003"
    RPC_UNAVAILABLE = "5004"

    # Configuration
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class SwapAdapterError(Exception):
    """
    Base exception for all swap adapter errors

    Attributes:
        message: Human-readable error message
        kind: Error kind for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.name}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class TokenError(SwapAdapterError):
    """
    Token resolution errors - not recoverable

    Raised when:
    - Symbol is neither in the built-in table nor the remote token list
    - Input looks like an address but has the wrong length
    - Address does not decode to a 32-byte public key
    """

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        kind: ErrorKind = ErrorKind.TOKEN_NOT_FOUND,
    ):
        super().__init__(
            message,
            kind,
            recoverable=False,
            details={"token": token},
        )
        self.token = token

    @classmethod
    def not_found(cls, token: str) -> "TokenError":
        return cls(
            f"Token not found: {token} is not a known symbol and has no match in the token list",
            token=token,
        )

    @classmethod
    def invalid_length(cls, token: str, address: str) -> "TokenError":
        return cls(
            f"Invalid token address: {address} is {len(address)} characters (expected 43-44)",
            token=token,
            kind=ErrorKind.INVALID_ADDRESS_LENGTH,
        )

    @classmethod
    def invalid_address(cls, value: str, reason: str) -> "TokenError":
        return cls(
            f"Invalid address {value}: {reason}",
            token=value,
            kind=ErrorKind.INVALID_ADDRESS,
        )


class AmountError(SwapAdapterError):
    """
    Amount validation errors - not recoverable

    Raised when:
    - Amount is zero, negative or not a number
    - Amount truncates to zero smallest units
    - Amount does not fit in an unsigned 64-bit integer
    """

    def __init__(self, message: str, amount: Optional[Decimal] = None):
        super().__init__(
            message,
            ErrorKind.INVALID_AMOUNT,
            recoverable=False,
            details={"amount": str(amount) if amount is not None else None},
        )
        self.amount = amount

    @classmethod
    def not_positive(cls, amount) -> "AmountError":
        return cls(f"Amount must be greater than 0, got {amount}", amount=amount)

    @classmethod
    def not_a_number(cls, amount) -> "AmountError":
        return cls(f"Amount is not a valid number: {amount!r}")

    @classmethod
    def too_small(cls, amount: Decimal, decimals: int) -> "AmountError":
        return cls(
            f"Amount too small: {amount} truncates to 0 smallest units at {decimals} decimals",
            amount=amount,
        )

    @classmethod
    def too_large(cls, amount: Decimal, decimals: int) -> "AmountError":
        return cls(
            f"Amount too large: {amount} at {decimals} decimals exceeds the u64 range",
            amount=amount,
        )


class InsufficientFunds(SwapAdapterError):
    """
    Insufficient balance - not recoverable without deposit

    Raised when:
    - Native SOL balance does not cover the swap amount plus the fee buffer
    """

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        required: Optional[Decimal] = None,
        available: Optional[Decimal] = None,
    ):
        super().__init__(
            message,
            ErrorKind.INSUFFICIENT_BALANCE,
            recoverable=False,
            details={
                "token": token,
                "required": str(required) if required is not None else None,
                "available": str(available) if available is not None else None,
            },
        )
        self.token = token
        self.required = required
        self.available = available

    @classmethod
    def sol_for_swap(cls, required_lamports: int, available_lamports: int, buffer_lamports: int) -> "InsufficientFunds":
        return cls(
            f"Insufficient SOL balance: need {required_lamports/1e9:.6f} SOL "
            f"(including {buffer_lamports/1e9:.4f} SOL fee buffer), have {available_lamports/1e9:.6f} SOL",
            token="SOL",
            required=Decimal(required_lamports) / Decimal(10 ** 9),
            available=Decimal(available_lamports) / Decimal(10 ** 9),
        )


class RpcError(SwapAdapterError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - Node returns a JSON-RPC error object
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
        recoverable: bool = True,
    ):
        super().__init__(
            message,
            ErrorKind.RPC_UNAVAILABLE,
            recoverable=recoverable,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @property
    def rpc_code(self) -> Optional[int]:
        """JSON-RPC error code returned by the node, if any"""
        return self.details.get("rpc_error_code")

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls("RPC rate limit exceeded", endpoint=endpoint)

    @classmethod
    def from_response(cls, endpoint: str, error: dict) -> "RpcError":
        """Node answered with an error object; the request itself is not retried"""
        rpc_error = cls(
            f"RPC error: {error.get('message', error)}",
            endpoint=endpoint,
            recoverable=False,
        )
        rpc_error.details["rpc_error_code"] = error.get("code")
        rpc_error.details["rpc_error_data"] = error.get("data")
        return rpc_error


class QuoteError(SwapAdapterError):
    """
    Aggregator quote errors

    Raised when:
    - The aggregator has no route for the pair (404, retried)
    - The request is malformed (400, not retried)
    - The aggregator is temporarily unavailable (other statuses, retried)
    - All attempts including the wrapped-mint fallback are exhausted
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorKind.QUOTE_UNAVAILABLE,
            recoverable=recoverable,
            original_error=original_error,
            details={"status_code": status_code},
        )
        self.status_code = status_code

    @classmethod
    def route_not_found(cls, input_mint: str, output_mint: str) -> "QuoteError":
        return cls(
            f"Token or route not found (404) for {input_mint} -> {output_mint}: "
            "token may not exist, have no liquidity, or be on another network",
            status_code=404,
            recoverable=True,
        )

    @classmethod
    def malformed(cls, body: str) -> "QuoteError":
        return cls(f"Malformed quote request (400): {body[:100]}", status_code=400)

    @classmethod
    def transient(cls, status_code: Optional[int], reason: str, error: Exception = None) -> "QuoteError":
        prefix = f"Aggregator error {status_code}" if status_code else "Aggregator request failed"
        return cls(
            f"{prefix}: {reason[:150]}",
            status_code=status_code,
            recoverable=True,
            original_error=error,
        )

    @classmethod
    def unavailable(cls, attempts: int, last_error: Optional[Exception] = None) -> "QuoteError":
        message = f"Quote unavailable after {attempts} attempts"
        if last_error is not None:
            message += f". Last error: {getattr(last_error, 'message', last_error)}"
        return cls(message, original_error=last_error)


class BuildError(SwapAdapterError):
    """
    Transaction assembly errors

    Raised when:
    - The aggregator's transaction endpoint fails or reports an error
    - The response has no serialized transaction
    - The serialized transaction cannot be decoded
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorKind.BUILD_FAILED,
            recoverable=recoverable,
            original_error=original_error,
            details={"status_code": status_code},
        )
        self.status_code = status_code

    @classmethod
    def http_failed(cls, status_code: int, body: str) -> "BuildError":
        # 4xx other than 429 will not improve on retry
        recoverable = status_code == 429 or status_code >= 500
        return cls(
            f"Transaction endpoint returned {status_code}: {body[:150]}",
            status_code=status_code,
            recoverable=recoverable,
        )

    @classmethod
    def request_failed(cls, error: Exception) -> "BuildError":
        return cls(f"Transaction endpoint request failed: {error}", recoverable=True, original_error=error)

    @classmethod
    def aggregator_error(cls, error) -> "BuildError":
        return cls(f"Aggregator reported an error: {error}", recoverable=True)

    @classmethod
    def missing_transaction(cls) -> "BuildError":
        return cls("No swap transaction in response from aggregator")

    @classmethod
    def undecodable(cls, error: Exception) -> "BuildError":
        return cls(f"Failed to deserialize swap transaction: {error}", original_error=error)

    @classmethod
    def exhausted(cls, attempts: int, last_error: Optional[Exception] = None) -> "BuildError":
        message = f"Swap setup failed after {attempts} attempts"
        if last_error is not None:
            message += f". Last error: {getattr(last_error, 'message', last_error)}"
        return cls(message, original_error=last_error)


class SignerError(SwapAdapterError):
    """
    Signing-related errors

    Raised when:
    - Custodial key material cannot be decoded
    - Decoded key does not belong to the requested wallet
    - Wallet is not among the transaction's required signers
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.INVALID_KEY_FORMAT,
    ):
        super().__init__(message, kind, recoverable=False)

    @classmethod
    def invalid_key(cls, reason: str) -> "SignerError":
        return cls(f"Invalid private key format: {reason}")

    @classmethod
    def mismatch(cls, expected: str, actual: str) -> "SignerError":
        return cls(
            f"Signer mismatch: key belongs to {actual}, wallet is {expected}",
            ErrorKind.SIGNER_MISMATCH,
        )

    @classmethod
    def not_a_signer(cls, pubkey: str, signers: list) -> "SignerError":
        return cls(
            f"Wallet {pubkey} is not in the required signers list: {signers}",
            ErrorKind.SIGNER_MISMATCH,
        )

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No custodial key configured. Set SOLANA_PRIVATE_KEY or SOLANA_KEYPAIR_PATH.",
            ErrorKind.CONFIG_MISSING,
        )


class TransactionError(SwapAdapterError):
    """
    Transaction broadcast and execution errors

    Raised when:
    - Preflight simulation rejects the transaction
    - The transaction lands with an execution error
    - A relayed payload is not a valid transaction
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.BROADCAST_REJECTED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            kind,
            recoverable=False,
            original_error=original_error,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def broadcast_rejected(cls, error: str, logs: list = None, original_error: Exception = None) -> "TransactionError":
        return cls(
            f"Transaction rejected by preflight: {error}",
            logs=logs,
            original_error=original_error,
        )

    @classmethod
    def invalid_payload(cls, reason: str) -> "TransactionError":
        return cls(f"Invalid transaction payload: {reason}")

    @classmethod
    def on_chain_failure(cls, signature: str, err) -> "TransactionError":
        return cls(
            f"Swap failed on-chain: {err}",
            ErrorKind.ON_CHAIN_FAILURE,
            signature=signature,
        )


class ConfigurationError(SwapAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.CONFIG_INVALID,
    ):
        super().__init__(message, kind, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorKind.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorKind.CONFIG_INVALID)
