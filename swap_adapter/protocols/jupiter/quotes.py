"""
Quote client

Wraps the Jupiter quote endpoint with the retry policy and the
wrapped-SOL substitution for native SOL.
"""

import logging
from typing import Dict

from .api import JupiterAPI
from ...config import config as global_config
from ...errors import QuoteError
from ...infra.retry import retry_call
from ...types import Quote, SwapMode, TokenDescriptor, WRAPPED_SOL_MINT

logger = logging.getLogger(__name__)


class QuoteClient:
    """
    Quote client

    Native SOL is not swappable through the aggregator. When either side is
    native the wrapped mint is substituted and wrapAndUnwrapSol is set. If
    that exhausts its attempts, a shorter fallback round sends the wrapped
    mint literally with no wrap flag.

    Usage:
        quotes = QuoteClient(JupiterAPI())
        quote = quotes.get_quote(sol, usdc, 1_000_000)
    """

    def __init__(
        self,
        api: JupiterAPI,
        attempts: int = None,
        fallback_attempts: int = None,
        timeout: float = None,
        retry_delay: float = None,
        slippage_bps: int = None,
        only_direct_routes: bool = None,
    ):
        self._api = api
        self._attempts = attempts if attempts is not None else global_config.jupiter.quote_attempts
        self._fallback_attempts = (
            fallback_attempts if fallback_attempts is not None else global_config.jupiter.fallback_attempts
        )
        self._timeout = timeout if timeout is not None else global_config.jupiter.timeout
        self._retry_delay = retry_delay if retry_delay is not None else global_config.jupiter.retry_delay
        self._slippage_bps = slippage_bps if slippage_bps is not None else global_config.trading.default_slippage_bps
        self._only_direct_routes = (
            only_direct_routes if only_direct_routes is not None else global_config.trading.only_direct_routes
        )

    def build_params(
        self,
        input_mint: str,
        output_mint: str,
        amount_raw: int,
        mode: SwapMode = SwapMode.EXACT_IN,
        wrap_and_unwrap_sol: bool = False,
    ) -> Dict[str, str]:
        """Query parameters for one quote request"""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount_raw),
            "slippageBps": str(self._slippage_bps),
            "onlyDirectRoutes": str(self._only_direct_routes).lower(),
        }
        if mode == SwapMode.EXACT_OUT:
            params["swapMode"] = SwapMode.EXACT_OUT.value
        if wrap_and_unwrap_sol:
            params["wrapAndUnwrapSol"] = "true"
        return params

    def _request(
        self,
        params: Dict[str, str],
        amount_raw: int,
        mode: SwapMode,
        wrap_and_unwrap_sol: bool,
        timeout: float,
    ) -> Quote:
        data = self._api.get_quote(params, timeout=timeout)
        return Quote.from_response(data, amount_raw, swap_mode=mode, wrap_and_unwrap_sol=wrap_and_unwrap_sol)

    def _run(self, params: Dict[str, str], amount_raw: int, mode: SwapMode, wrap: bool, attempts: int, name: str) -> Quote:
        return retry_call(
            lambda t: self._request(params, amount_raw, mode, wrap, t),
            name,
            max_attempts=attempts,
            timeout=self._timeout,
            delay=self._retry_delay,
        )

    def get_quote(
        self,
        input_token: TokenDescriptor,
        output_token: TokenDescriptor,
        amount_raw: int,
        mode: SwapMode = SwapMode.EXACT_IN,
    ) -> Quote:
        """
        Get a quote

        Args:
            input_token: Resolved input token
            output_token: Resolved output token
            amount_raw: Amount in smallest units of the side selected by mode
            mode: ExactIn or ExactOut

        Returns:
            Quote

        Raises:
            QuoteError: QUOTE_UNAVAILABLE once all attempts (and the fallback) fail
        """
        native = input_token.is_native or output_token.is_native
        input_mint = WRAPPED_SOL_MINT if input_token.is_native else input_token.mint.value
        output_mint = WRAPPED_SOL_MINT if output_token.is_native else output_token.mint.value

        if input_mint == output_mint:
            raise QuoteError(f"Input and output are the same asset ({input_mint})")

        label = f"quote({input_token}->{output_token})"
        params = self.build_params(input_mint, output_mint, amount_raw, mode, wrap_and_unwrap_sol=native)

        try:
            return self._run(params, amount_raw, mode, native, self._attempts, label)
        except QuoteError as e:
            if not native:
                raise QuoteError.unavailable(self._attempts, e)
            primary_error = e

        logger.warning(
            f"{label} failed with native SOL substitution ({primary_error.message}), "
            f"falling back to literal wrapped SOL mint"
        )
        fallback_params = self.build_params(input_mint, output_mint, amount_raw, mode, wrap_and_unwrap_sol=False)

        try:
            return self._run(fallback_params, amount_raw, mode, False, self._fallback_attempts, f"{label}:wsol")
        except QuoteError as e:
            raise QuoteError.unavailable(self._attempts + self._fallback_attempts, e)
