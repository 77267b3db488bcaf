"""
Built-in Token Table

Single source of truth for the symbols the registry resolves without any
network call. Entries are trusted and bypass address validation.
"""

from typing import Dict, Optional

from .common import Address, TokenDescriptor


# Native SOL marker (43 chars). Not swappable through the aggregator directly.
NATIVE_SOL_MINT = "So11111111111111111111111111111111111111111"

# Wrapped SOL mint (token-standard representation of SOL)
WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"


def _token(symbol: str, mint: str, decimals: int, name: str) -> TokenDescriptor:
    return TokenDescriptor(
        mint=Address.trusted(mint),
        decimals=decimals,
        symbol=symbol,
        name=name,
    )


# Keys are uppercase for case-insensitive lookup
KNOWN_TOKENS: Dict[str, TokenDescriptor] = {
    # SOL/WSOL
    "SOL": _token("SOL", NATIVE_SOL_MINT, 9, "Solana"),
    "WSOL": _token("WSOL", WRAPPED_SOL_MINT, 9, "Wrapped SOL"),

    # Stablecoins
    "USDC": _token("USDC", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", 6, "USD Coin"),
    "USDT": _token("USDT", "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", 6, "Tether USD"),

    # Popular tokens
    "BONK": _token("BONK", "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", 5, "Bonk"),
    "JUP": _token("JUP", "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", 6, "Jupiter"),
    "RAY": _token("RAY", "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R", 6, "Raydium"),
    "ORCA": _token("ORCA", "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE", 6, "Orca"),
    "MSOL": _token("MSOL", "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So", 9, "Marinade staked SOL"),
    "JITOSOL": _token("JITOSOL", "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn", 9, "Jito Staked SOL"),
    "PYTH": _token("PYTH", "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3", 6, "Pyth Network"),
    "WIF": _token("WIF", "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm", 6, "dogwifhat"),
}

# Alternate spellings resolving to a canonical KNOWN_TOKENS entry
SYMBOL_ALIASES: Dict[str, str] = {
    "WRAPPED-SOL": "WSOL",
    "WRAPPED SOL": "WSOL",
    "WRAPPEDSOL": "WSOL",
    "MARINADE": "MSOL",
}

# Reverse mapping: mint address -> descriptor
KNOWN_TOKENS_BY_MINT: Dict[str, TokenDescriptor] = {
    token.mint.value: token for token in KNOWN_TOKENS.values()
}


def get_known_token(symbol: str) -> Optional[TokenDescriptor]:
    """
    Get the built-in descriptor for a symbol

    Args:
        symbol: Token symbol or alias (case-insensitive)

    Returns:
        TokenDescriptor if known, None otherwise
    """
    upper = symbol.strip().upper()
    upper = SYMBOL_ALIASES.get(upper, upper)
    return KNOWN_TOKENS.get(upper)


def get_known_token_by_mint(mint: str) -> Optional[TokenDescriptor]:
    """Get the built-in descriptor for a mint address"""
    return KNOWN_TOKENS_BY_MINT.get(mint.strip())
