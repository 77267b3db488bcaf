"""
Token Registry

Resolves user-supplied token references (symbols, mint addresses,
marketplace links) into TokenDescriptors.
"""

import logging
import re
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

import base58

from ..config import config as global_config
from ..errors import TokenError
from ..infra.rpc import RpcClient
from ..protocols.jupiter.api import JupiterAPI
from ..types import Address, TokenDescriptor, get_known_token, get_known_token_by_mint
from ..types.common import BASE58_ALPHABET

logger = logging.getLogger(__name__)

# Shortest base58 encoding of a 32-byte key; shorter strings are treated as names
MIN_ADDRESS_CHARS = 32

_BASE58_RE = re.compile(f"^[{BASE58_ALPHABET}]+$")
_ADDRESS_RE = re.compile(f"^[{BASE58_ALPHABET}]{{43,44}}$")


def strip_url(token: str) -> str:
    """
    Reduce a marketplace link to its last path segment

    "https://pump.fun/coin/<mint>?ref=x" -> "<mint>"
    """
    cleaned = token.strip()
    lowered = cleaned.lower()
    if not (lowered.startswith(("http://", "https://")) or "pump.fun/" in lowered):
        return cleaned

    cleaned = re.sub(r"^https?://", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.split("?", 1)[0].split("#", 1)[0].rstrip("/")
    return cleaned.rsplit("/", 1)[-1].strip()


def address_windows(text: str) -> List[str]:
    """
    43-44 character slices of base58 ``text`` that decode to 32 bytes

    Scans from the left and returns the readings found at the first offset
    that has any, 44 characters before 43.
    """
    for start in range(len(text) - 42):
        found = []
        for width in (44, 43):
            window = text[start:start + width]
            if len(window) == width and len(base58.b58decode(window)) == 32:
                found.append(window)
        if found:
            return found
    return []


class TokenRegistry:
    """
    Token Registry

    Resolution order:
    1. Built-in table by symbol (case-insensitive) or mint; trusted entries
    2. Mint address (links are reduced to their last path segment first)
    3. Address-like string of the wrong length: extract a 43-44 char
       base58 substring, otherwise INVALID_ADDRESS_LENGTH
    4. Remote token list by exact symbol, then by name containing the term

    Decimals of mints outside the built-in table start at the token list value
    or the default (6) and are confirmed on chain with confirm_decimals().

    Caches are process-wide, written once per key and never invalidated.

    Usage:
        registry = TokenRegistry(api, rpc)
        usdc = registry.resolve("usdc")
        token = registry.confirm_decimals(registry.resolve("https://pump.fun/<mint>"))
    """

    def __init__(
        self,
        api: Optional[JupiterAPI] = None,
        rpc: Optional[RpcClient] = None,
        default_decimals: int = None,
    ):
        self._api = api
        self._rpc = rpc
        self._default_decimals = (
            default_decimals if default_decimals is not None else global_config.solana.default_token_decimals
        )
        self._token_list: Optional[List[Dict[str, Any]]] = None
        self._remote_cache: Dict[str, TokenDescriptor] = {}
        self._decimals_cache: Dict[str, int] = {}
        self._list_lock = threading.Lock()

    def resolve(self, token: str) -> TokenDescriptor:
        """
        Resolve a token reference

        Raises:
            TokenError: TOKEN_NOT_FOUND, INVALID_ADDRESS_LENGTH or INVALID_ADDRESS
        """
        original = (token or "").strip()
        if not original:
            raise TokenError.not_found(token)

        known = get_known_token(original)
        if known is not None:
            return known

        candidate = strip_url(original)

        if _ADDRESS_RE.match(candidate):
            return self._from_address(candidate)

        if len(candidate) >= MIN_ADDRESS_CHARS and _BASE58_RE.match(candidate):
            # Handles vanity suffixes such as "<mint>pump"
            windows = address_windows(candidate)
            if not windows:
                raise TokenError.invalid_length(original, candidate)
            address = self._pick_window(windows)
            logger.info(f"Extracted address {address} from {candidate}")
            return self._from_address(address)

        return self._search_remote(original)

    def _pick_window(self, windows: List[str]) -> str:
        """
        Choose between a 44 and a 43 character reading of the same text

        A 43 character mint followed by a suffix often also reads as a
        valid 44 character key. A built-in mint wins, then an account that
        exists on chain; with neither, the longer reading is kept.
        """
        if len(windows) == 1:
            return windows[0]
        for window in windows:
            if get_known_token_by_mint(window) is not None:
                return window
        if self._rpc is not None:
            for window in windows:
                if self._rpc.get_account_info(window, encoding="jsonParsed"):
                    return window
        return windows[0]

    def _from_address(self, address: str) -> TokenDescriptor:
        known = get_known_token_by_mint(address)
        if known is not None:
            return known

        mint = Address.parse(address)

        decimals = self._decimals_cache.get(mint.value)
        if decimals is not None:
            return TokenDescriptor(mint=mint, decimals=decimals)

        listed = self._find_cached_by_mint(mint.value)
        if listed is not None:
            return listed

        return TokenDescriptor(mint=mint, decimals=self._default_decimals)

    def _find_cached_by_mint(self, mint: str) -> Optional[TokenDescriptor]:
        for descriptor in self._remote_cache.values():
            if descriptor.mint.value == mint:
                return descriptor
        return None

    def _load_token_list(self) -> List[Dict[str, Any]]:
        if self._token_list is not None:
            return self._token_list
        if self._api is None:
            return []

        with self._list_lock:
            if self._token_list is None:
                tokens = self._api.get_token_list()
                # A failed fetch is not cached so the next lookup retries
                if tokens:
                    self._token_list = tokens
                    logger.info(f"Loaded token list with {len(tokens)} entries")
                return tokens
        return self._token_list

    def _search_remote(self, term: str) -> TokenDescriptor:
        key = term.lower()
        cached = self._remote_cache.get(key)
        if cached is not None:
            return cached

        tokens = self._load_token_list()

        entry = next(
            (t for t in tokens if str(t.get("symbol") or "").lower() == key),
            None,
        )
        if entry is None:
            entry = next(
                (t for t in tokens if key in str(t.get("name") or "").lower()),
                None,
            )
        if entry is None or not entry.get("address"):
            raise TokenError.not_found(term)

        known = get_known_token_by_mint(entry["address"])
        if known is not None:
            descriptor = known
        else:
            decimals = entry.get("decimals")
            descriptor = TokenDescriptor(
                mint=Address.parse(entry["address"]),
                decimals=int(decimals) if isinstance(decimals, int) else self._default_decimals,
                symbol=entry.get("symbol"),
                name=entry.get("name") or "",
            )

        logger.info(f"Resolved {term} via token list -> {descriptor.mint.value}")
        self._remote_cache[key] = descriptor
        return descriptor

    def confirm_decimals(self, descriptor: TokenDescriptor) -> TokenDescriptor:
        """
        Confirm a descriptor's decimals against the on-chain mint account

        Built-in entries are returned unchanged. Results are cached per mint.

        Raises:
            TokenError: TOKEN_NOT_FOUND if the mint account does not exist,
                INVALID_ADDRESS if the account is not a token mint
            RpcError: If the mint account cannot be read
        """
        mint = descriptor.mint.value
        if get_known_token_by_mint(mint) is not None:
            return descriptor

        decimals = self._decimals_cache.get(mint)
        if decimals is None:
            if self._rpc is None:
                return descriptor
            decimals = self._read_mint_decimals(mint)
            self._decimals_cache[mint] = decimals

        if decimals == descriptor.decimals:
            return descriptor
        logger.info(f"Mint {mint} has {decimals} decimals (assumed {descriptor.decimals})")
        return replace(descriptor, decimals=decimals)

    def _read_mint_decimals(self, mint: str) -> int:
        account = self._rpc.get_account_info(mint, encoding="jsonParsed")
        if not account:
            raise TokenError.not_found(mint)

        data = account.get("data")
        parsed = data.get("parsed") if isinstance(data, dict) else None
        info = parsed.get("info") if isinstance(parsed, dict) else None
        if not isinstance(info, dict) or parsed.get("type") != "mint" or "decimals" not in info:
            raise TokenError.invalid_address(mint, "account is not a token mint")

        return int(info["decimals"])
