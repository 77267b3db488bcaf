"""
Solana JSON-RPC access

The swap pipeline talks to the chain for five things only: balances,
mint accounts, recent blockhashes, transaction submission and signature
status. Everything goes through RpcClient.call, which retries on the
active endpoint and rotates through the configured list when that
endpoint keeps failing.
"""

from __future__ import annotations

import base64
import logging
import threading
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import httpx

from ..errors import RpcError, ConfigurationError
from ..config import config as global_config
from .retry import retry_call

logger = logging.getLogger(__name__)

_JSONRPC_VERSION = "2.0"


@dataclass
class RpcClientConfig:
    """
    Per-client RPC settings

    Any field left as None is taken from swap_adapter.config.RpcConfig
    (i.e. from the RPC_* environment variables).

        rpc = RpcClient(url, config=RpcClientConfig(max_retries=1))
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        defaults = global_config.rpc
        for name in ("timeout_seconds", "max_retries", "retry_delay_seconds", "commitment"):
            if getattr(self, name) is None:
                setattr(self, name, getattr(defaults, name))


class RpcClient:
    """
    Blocking Solana RPC client over httpx

    A failed request is classified before anything else happens:

    - timeouts, refused connections, HTTP 429 and 5xx are recoverable;
      they are retried on the active endpoint up to max_retries times,
      after which the next endpoint in the list takes over
    - an ``error`` member in the JSON-RPC reply is the node's answer and
      is raised to the caller as is

        rpc = RpcClient(["https://rpc-a.example.com", "https://rpc-b.example.com"])
        lamports = rpc.get_balance(wallet)
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        urls = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        self._endpoints = [url for url in urls if url]
        if not self._endpoints:
            raise ConfigurationError.missing("SOLANA_RPC_URL")

        self._config = config or RpcClientConfig()
        self._active = 0
        self._http: Optional[httpx.Client] = None
        self._http_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        """URL requests are currently sent to"""
        return self._endpoints[self._active]

    @property
    def endpoints(self) -> List[str]:
        return list(self._endpoints)

    @property
    def commitment(self) -> str:
        return self._config.commitment

    def _http_client(self) -> httpx.Client:
        if self._http is None:
            with self._http_lock:
                if self._http is None:
                    self._http = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._http

    def _next_endpoint(self):
        if len(self._endpoints) < 2:
            return
        self._active = (self._active + 1) % len(self._endpoints)
        logger.info(f"Switched RPC endpoint to {self.endpoint}")

    def _send(self, payload: Dict[str, Any], timeout: float) -> Any:
        """POST one JSON-RPC request to the active endpoint and unwrap ``result``"""
        url = self.endpoint
        try:
            response = self._http_client().post(url, json=payload, timeout=timeout)
            if response.status_code == 429:
                raise RpcError.rate_limited(url)
            response.raise_for_status()
            reply = response.json()
        except httpx.TimeoutException:
            raise RpcError.timeout(url, timeout)
        except httpx.HTTPStatusError as e:
            raise RpcError(
                f"{payload['method']} returned HTTP {e.response.status_code}",
                endpoint=url,
                original_error=e,
            )
        except httpx.RequestError as e:
            raise RpcError.connection_failed(url, e)
        except ValueError as e:
            raise RpcError(f"Response body is not JSON: {e}", endpoint=url, original_error=e)

        if not isinstance(reply, dict):
            raise RpcError(f"Malformed JSON-RPC reply: {str(reply)[:100]}", endpoint=url)
        if "error" in reply:
            raise RpcError.from_response(url, reply["error"])
        return reply.get("result")

    def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        fallback: bool = True,
    ) -> Any:
        """
        Invoke a JSON-RPC method and return its ``result``

        Args:
            method: RPC method name, e.g. "getSlot"
            params: Positional parameters
            timeout: Per-request timeout in seconds
            max_attempts: Tries per endpoint; defaults to max_retries
            fallback: Move on to the remaining endpoints when the active one
                fails. Without it a failed call still leaves the next endpoint
                active for later calls.

        Raises:
            RpcError: The node answered with an error, or every endpoint failed
        """
        payload = {"jsonrpc": _JSONRPC_VERSION, "id": 1, "method": method, "params": params}
        per_request = timeout or self._config.timeout_seconds
        tries = self._config.max_retries if max_attempts is None else max_attempts

        failure: Optional[RpcError] = None
        for _ in range(len(self._endpoints) if fallback else 1):
            try:
                return retry_call(
                    lambda t: self._send(payload, t),
                    f"rpc:{method}",
                    max_attempts=tries,
                    timeout=per_request,
                    delay=self._config.retry_delay_seconds,
                )
            except RpcError as e:
                if not e.recoverable:
                    raise
                failure = e
                logger.warning(f"{method} gave up on {self.endpoint}: {e.message}")
            self._next_endpoint()

        raise failure or RpcError(f"{method} failed on every RPC endpoint")

    def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Account record for ``address``, or None when the account does not exist"""
        options = {"encoding": encoding, "commitment": commitment or self.commitment}
        result = self.call("getAccountInfo", [address, options])
        return result.get("value") if result else None

    def get_latest_blockhash(self, commitment: Optional[str] = None) -> Dict[str, Any]:
        """``{"blockhash": ..., "lastValidBlockHeight": ...}``"""
        result = self.call("getLatestBlockhash", [{"commitment": commitment or self.commitment}])
        return result.get("value", {}) if result else {}

    def get_balance(self, address: str, commitment: Optional[str] = None) -> int:
        """Native balance in lamports"""
        result = self.call("getBalance", [address, {"commitment": commitment or self.commitment}])
        return result.get("value", 0) if result else 0

    def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
    ) -> str:
        """
        Submit signed transaction bytes, returning the signature

        Sent exactly once, to the active endpoint only. A preflight
        rejection or a transport failure is raised to the caller; the bytes
        are never handed to another endpoint since the first node may
        already have forwarded them.
        """
        options = {
            "skipPreflight": skip_preflight,
            "preflightCommitment": preflight_commitment or self.commitment,
            "encoding": "base64",
        }
        encoded = base64.b64encode(transaction).decode("ascii")
        return self.call("sendTransaction", [encoded, options], max_attempts=1, fallback=False)

    def get_signature_statuses(
        self,
        signatures: List[str],
        search_transaction_history: bool = True,
    ) -> List[Optional[Dict[str, Any]]]:
        """Status per signature, None where the node has never seen it"""
        options = {"searchTransactionHistory": search_transaction_history}
        result = self.call("getSignatureStatuses", [signatures, options])
        return result.get("value", []) if result else []

    def close(self):
        if self._http:
            self._http.close()
            self._http = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
