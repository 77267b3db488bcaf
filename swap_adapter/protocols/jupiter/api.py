"""
Jupiter API Client

REST API client for the Jupiter swap aggregator and the token list.
Each method performs exactly one HTTP request and classifies failures into
typed errors; retry policy lives with the callers.
"""

import logging
from typing import Optional, Dict, Any, List

import httpx

from ...config import config as global_config
from ...errors import QuoteError, BuildError

logger = logging.getLogger(__name__)


class JupiterAPI:
    """
    Jupiter REST API client

    Provides:
    - Swap quotes
    - Swap transaction assembly
    - Token list (registry fallback)

    Usage:
        api = JupiterAPI()
        data = api.get_quote({"inputMint": ..., "outputMint": ..., "amount": "1000000"})
        response = api.post_swap({"quoteResponse": data, "userPublicKey": wallet})
    """

    def __init__(
        self,
        timeout: float = None,
        quote_url: str = None,
        swap_url: str = None,
        token_list_url: str = None,
        token_list_timeout: float = None,
        api_key: str = None,
        user_agent: str = None,
    ):
        """
        Initialize Jupiter API client

        Args:
            timeout: Request timeout in seconds (default from config)
            quote_url: Quote API URL (default from config)
            swap_url: Swap API URL (default from config)
            token_list_url: Token list URL (default from config)
            token_list_timeout: Token list request timeout (default from config)
            api_key: Sent as x-api-key when set (default from config)
            user_agent: User-Agent header (default from config)
        """
        self._timeout = timeout if timeout is not None else global_config.jupiter.timeout
        self._quote_url = quote_url if quote_url is not None else global_config.jupiter.quote_url
        self._swap_url = swap_url if swap_url is not None else global_config.jupiter.swap_url
        self._token_list_url = token_list_url if token_list_url is not None else global_config.token_list.url
        self._token_list_timeout = (
            token_list_timeout if token_list_timeout is not None else global_config.token_list.timeout
        )
        self._api_key = api_key if api_key is not None else global_config.jupiter.api_key
        self._user_agent = user_agent if user_agent is not None else global_config.jupiter.user_agent
        self._client: Optional[httpx.Client] = None

    @property
    def timeout(self) -> float:
        return self._timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        if self._api_key:
            headers["x-api-key"] = self._api_key
        return headers

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, headers=self._headers())
        return self._client

    def get_quote(self, params: Dict[str, str], timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Request one quote

        Args:
            params: Query parameters (inputMint, outputMint, amount, ...)
            timeout: Request timeout override

        Returns:
            Raw quote response

        Raises:
            QuoteError: 404 route_not_found, 400 malformed, otherwise transient
        """
        client = self._get_client()

        try:
            response = client.get(self._quote_url, params=params, timeout=timeout or self._timeout)
        except httpx.TimeoutException as e:
            raise QuoteError.transient(None, f"timed out after {timeout or self._timeout}s", e)
        except httpx.RequestError as e:
            raise QuoteError.transient(None, str(e), e)

        if response.status_code == 404:
            raise QuoteError.route_not_found(params.get("inputMint", "?"), params.get("outputMint", "?"))
        if response.status_code == 400:
            raise QuoteError.malformed(response.text)
        if response.status_code >= 400:
            raise QuoteError.transient(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise QuoteError.transient(response.status_code, f"invalid JSON: {e}", e)

    def post_swap(self, body: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Request the prebuilt swap transaction

        Args:
            body: Request body (quoteResponse, userPublicKey, ...)
            timeout: Request timeout override

        Returns:
            Raw response (contains base64 swapTransaction)

        Raises:
            BuildError: HTTP or transport failure
        """
        client = self._get_client()

        try:
            response = client.post(self._swap_url, json=body, timeout=timeout or self._timeout)
        except httpx.RequestError as e:
            raise BuildError.request_failed(e)

        if response.status_code >= 400:
            raise BuildError.http_failed(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise BuildError.request_failed(e)

        if not isinstance(data, dict):
            raise BuildError.aggregator_error(f"unexpected response: {str(data)[:100]}")
        return data

    def get_token_list(self) -> List[Dict[str, Any]]:
        """
        Get list of tradable tokens

        Returns an empty list when the list cannot be fetched; the registry
        treats that as a miss.
        """
        client = self._get_client()

        try:
            response = client.get(self._token_list_url, timeout=self._token_list_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to get token list: {e}")
            return []

        if isinstance(data, dict):
            # Some list endpoints wrap entries
            data = data.get("tokens", [])
        return data if isinstance(data, list) else []

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
