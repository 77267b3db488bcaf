"""
Result type definitions for quotes, transactions and swaps
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from .common import SwapMode
from ..errors import ErrorKind, QuoteError, SwapAdapterError


@dataclass(frozen=True)
class Quote:
    """
    Aggregator quote

    Immutable once received. Quotes go stale quickly; build and sign promptly
    or request a new one.

    Attributes:
        input_mint: Mint sent to the aggregator as input
        output_mint: Mint sent to the aggregator as output
        in_amount_raw: Input amount (smallest units)
        out_amount_raw: Output amount (smallest units)
        slippage_bps: Applied slippage in basis points
        price_impact_pct: Price impact as reported (0.01 = 1%)
        route_plan: Opaque route description
        swap_mode: ExactIn or ExactOut
        wrap_and_unwrap_sol: Native SOL was substituted by its wrapped mint
        raw_response: Full aggregator response (required for transaction assembly)
    """
    input_mint: str
    output_mint: str
    in_amount_raw: int
    out_amount_raw: int
    slippage_bps: int = 50
    price_impact_pct: Decimal = Decimal(0)
    route_plan: List[Any] = field(default_factory=list)
    swap_mode: SwapMode = SwapMode.EXACT_IN
    wrap_and_unwrap_sol: bool = False
    raw_response: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(
        cls,
        data: Any,
        requested_amount: int,
        swap_mode: SwapMode = SwapMode.EXACT_IN,
        wrap_and_unwrap_sol: bool = False,
    ) -> "Quote":
        """
        Parse an aggregator quote response

        Raises:
            QuoteError: Response carries an error or lacks amounts (retryable)
        """
        if not isinstance(data, dict):
            raise QuoteError.transient(None, f"unexpected quote response: {str(data)[:100]}")
        if data.get("error"):
            raise QuoteError.transient(None, f"aggregator error: {data['error']}")
        if "outAmount" not in data:
            raise QuoteError.transient(None, "quote response has no outAmount")

        try:
            in_amount = int(data.get("inAmount", requested_amount))
            out_amount = int(data["outAmount"])
            price_impact = Decimal(str(data.get("priceImpactPct") or 0))
        except (TypeError, ValueError, InvalidOperation) as e:
            raise QuoteError.transient(None, f"unparseable quote amounts: {e}", e)

        return cls(
            input_mint=data.get("inputMint", ""),
            output_mint=data.get("outputMint", ""),
            in_amount_raw=in_amount,
            out_amount_raw=out_amount,
            slippage_bps=int(data.get("slippageBps", 50)),
            price_impact_pct=price_impact,
            route_plan=list(data.get("routePlan") or []),
            swap_mode=swap_mode,
            wrap_and_unwrap_sol=wrap_and_unwrap_sol,
            raw_response=data,
        )

    @property
    def route(self) -> List[str]:
        """Venue labels along the route"""
        return [step.get("swapInfo", {}).get("label", "") for step in self.route_plan if isinstance(step, dict)]

    def __str__(self) -> str:
        return f"Quote({self.in_amount_raw} -> {self.out_amount_raw}, impact={self.price_impact_pct}%)"


@dataclass(frozen=True)
class PreparedTransaction:
    """
    Unsigned versioned transaction with a freshly refreshed blockhash

    Attributes:
        raw_bytes: Serialized unsigned transaction
        recent_blockhash: Blockhash written into the message (base58)
        last_valid_block_height: Height after which the blockhash expires
    """
    raw_bytes: bytes
    recent_blockhash: str
    last_valid_block_height: Optional[int] = None


@dataclass(frozen=True)
class SignedTransaction:
    """Signed transaction ready to broadcast"""
    raw_bytes: bytes
    signature: str


@dataclass(frozen=True)
class UnsignedTransactionPayload:
    """Transport-safe unsigned transaction handed to the caller's wallet"""
    transaction_base64: str
    recent_blockhash: str
    status: str = "pending_signature"


@dataclass(frozen=True)
class BroadcastReceipt:
    """Accepted broadcast"""
    signature: str
    endpoint: Optional[str] = None


class ConfirmationStatus(Enum):
    """Outcome of a confirmation poll or a single status lookup"""
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMEOUT = "timeout"  # Polling exhausted, status unknown
    PENDING = "pending"  # Single lookup only: not yet confirmed


@dataclass
class Confirmation:
    """
    Confirmation polling result

    Attributes:
        status: CONFIRMED, FAILED (on-chain error) or TIMEOUT (status unknown)
        signature: Transaction signature
        commitment: Last observed commitment level
        error: On-chain error object if FAILED
        slot: Slot of the last observed status
        attempts: Number of status polls made
    """
    status: ConfirmationStatus
    signature: str
    commitment: Optional[str] = None
    error: Optional[Any] = None
    slot: Optional[int] = None
    attempts: int = 0

    @property
    def is_confirmed(self) -> bool:
        return self.status == ConfirmationStatus.CONFIRMED

    @property
    def is_failed(self) -> bool:
        return self.status == ConfirmationStatus.FAILED

    @property
    def is_timeout(self) -> bool:
        return self.status == ConfirmationStatus.TIMEOUT

    @property
    def is_terminal(self) -> bool:
        return self.status in (ConfirmationStatus.CONFIRMED, ConfirmationStatus.FAILED)


class SwapStatus(Enum):
    """Swap outcome"""
    CONFIRMED = "confirmed"
    PENDING_SIGNATURE = "pending_signature"
    SUBMITTED = "submitted"  # Broadcast, final status unknown
    FAILED = "failed"


@dataclass
class SwapResult:
    """
    Uniform swap outcome

    Exactly one of three shapes:
    - success (CONFIRMED or PENDING_SIGNATURE) with amounts and rate
    - SUBMITTED with kind=CONFIRMATION_TIMEOUT: broadcast, status unknown.
      Not a failure; re-check the signature later and never resubmit.
    - FAILED with kind and detail

    Attributes:
        status: Outcome status
        signature: Transaction signature once broadcast
        amount_in: Input amount (human units)
        amount_out: Output amount (human units)
        rate: Output per one input
        input_mint: Resolved input mint
        output_mint: Resolved output mint
        price_impact_pct: Quote price impact
        transaction_base64: Unsigned transaction for the caller's wallet
        kind: Error kind for FAILED/SUBMITTED
        detail: Human-readable detail
    """
    status: SwapStatus
    signature: Optional[str] = None
    amount_in: Optional[Decimal] = None
    amount_out: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    input_mint: Optional[str] = None
    output_mint: Optional[str] = None
    price_impact_pct: Optional[Decimal] = None
    transaction_base64: Optional[str] = None
    kind: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in (SwapStatus.CONFIRMED, SwapStatus.PENDING_SIGNATURE)

    @property
    def is_failure(self) -> bool:
        return self.status == SwapStatus.FAILED

    @property
    def is_ambiguous(self) -> bool:
        """Broadcast but not confirmed within the polling window"""
        return self.status == SwapStatus.SUBMITTED

    @property
    def needs_signature(self) -> bool:
        return self.status == SwapStatus.PENDING_SIGNATURE

    @classmethod
    def confirmed(cls, signature: str, **kwargs) -> "SwapResult":
        """Server-signed swap confirmed on chain"""
        return cls(status=SwapStatus.CONFIRMED, signature=signature, **kwargs)

    @classmethod
    def pending_signature(cls, transaction_base64: str, **kwargs) -> "SwapResult":
        """Unsigned transaction returned for client-side signing"""
        return cls(
            status=SwapStatus.PENDING_SIGNATURE,
            transaction_base64=transaction_base64,
            **kwargs
        )

    @classmethod
    def submitted(cls, signature: str, **kwargs) -> "SwapResult":
        """Broadcast but confirmation timed out (status unknown)"""
        return cls(
            status=SwapStatus.SUBMITTED,
            signature=signature,
            kind=ErrorKind.CONFIRMATION_TIMEOUT,
            detail=f"Transaction {signature} submitted, confirmation status unknown. "
                   "Check the signature again later; do not resubmit.",
            **kwargs
        )

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str, signature: str = None, **kwargs) -> "SwapResult":
        """Create failed result"""
        return cls(
            status=SwapStatus.FAILED,
            signature=signature,
            kind=kind,
            detail=detail,
            **kwargs
        )

    @classmethod
    def from_error(cls, error: SwapAdapterError, **kwargs) -> "SwapResult":
        """Normalize a raised adapter error"""
        signature = kwargs.pop("signature", None) or error.details.get("signature")
        return cls.failure(error.kind, error.message, signature=signature, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for callers that render results"""
        return {
            "status": self.status.value,
            "signature": self.signature,
            "amount_in": str(self.amount_in) if self.amount_in is not None else None,
            "amount_out": str(self.amount_out) if self.amount_out is not None else None,
            "rate": str(self.rate) if self.rate is not None else None,
            "input_mint": self.input_mint,
            "output_mint": self.output_mint,
            "price_impact_pct": str(self.price_impact_pct) if self.price_impact_pct is not None else None,
            "transaction_base64": self.transaction_base64,
            "kind": self.kind.name if self.kind else None,
            "code": self.kind.value if self.kind else None,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        if self.is_success:
            sig_display = f"{self.signature[:16]}..." if self.signature else "unsigned"
            return f"SwapResult({self.status.value}, {sig_display}, out={self.amount_out})"
        return f"SwapResult({self.status.value}, kind={self.kind.name if self.kind else None}, detail={self.detail})"
