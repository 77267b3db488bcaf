"""
Settings for Swap Adapter

Every value comes from the process environment, optionally seeded from a
.env file next to the package. Components read the module-level ``config``
unless they are handed explicit overrides.
"""

import os
import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

_ENV_FILE = Path(__file__).parent.parent / ".env"
_TRUTHY = ("true", "1", "yes", "on")


def _load_env_file():
    if _ENV_FILE.exists():
        load_dotenv(_ENV_FILE)


_load_env_file()


def _env(key: str, default: str = "") -> str:
    value = os.getenv(key)
    return default if value is None else value


def _env_parsed(key: str, default: T, parse: Callable[[str], T]) -> T:
    """Parse a numeric variable, keeping ``default`` when it is unset or malformed"""
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        logging.getLogger(__name__).warning(f"Ignoring {key}={raw!r}: not a valid {parse.__name__}, using {default}")
        return default


def _env_int(key: str, default: int) -> int:
    return _env_parsed(key, default, int)


def _env_float(key: str, default: float) -> float:
    return _env_parsed(key, default, float)


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def _env_csv(key: str) -> List[str]:
    return [part.strip() for part in _env(key).split(",") if part.strip()]


@dataclass
class RpcConfig:
    """Solana RPC endpoints and request policy"""
    # SOLANA_RPC_URL may hold several comma-separated URLs, tried in order
    urls: List[str] = field(default_factory=lambda: _env_csv("SOLANA_RPC_URL"))
    timeout_seconds: float = field(default_factory=lambda: _env_float("RPC_TIMEOUT_SECONDS", 10.0))
    max_retries: int = field(default_factory=lambda: _env_int("RPC_MAX_RETRIES", 3))
    retry_delay_seconds: float = field(default_factory=lambda: _env_float("RPC_RETRY_DELAY", 1.0))
    commitment: str = field(default_factory=lambda: _env("RPC_COMMITMENT", "confirmed"))

    @property
    def url(self) -> str:
        return self.urls[0] if self.urls else ""


@dataclass
class SignerConfig:
    """
    Custodial wallet

    Read by the server-signing path only. The key is decoded on first use,
    and only for requests whose wallet is public_key.
    """
    private_key: str = field(default_factory=lambda: _env("SOLANA_PRIVATE_KEY"))
    public_key: str = field(default_factory=lambda: _env("SOLANA_PUBLIC_KEY"))
    keypair_path: str = field(default_factory=lambda: _env("SOLANA_KEYPAIR_PATH"))


@dataclass
class TxConfig:
    skip_preflight: bool = field(default_factory=lambda: _env_bool("TX_SKIP_PREFLIGHT", False))
    preflight_commitment: str = field(default_factory=lambda: _env("TX_PREFLIGHT_COMMITMENT", "confirmed"))
    blockhash_commitment: str = field(default_factory=lambda: _env("TX_BLOCKHASH_COMMITMENT", "confirmed"))
    # 30 polls one second apart
    confirmation_attempts: int = field(default_factory=lambda: _env_int("TX_CONFIRMATION_ATTEMPTS", 30))
    confirmation_interval: float = field(default_factory=lambda: _env_float("TX_CONFIRMATION_INTERVAL", 1.0))


@dataclass
class JupiterConfig:
    """Jupiter swap API (quote and swap endpoints)"""
    quote_url: str = field(default_factory=lambda: _env("JUPITER_QUOTE_URL", "https://api.jup.ag/swap/v1/quote"))
    swap_url: str = field(default_factory=lambda: _env("JUPITER_SWAP_URL", "https://api.jup.ag/swap/v1/swap"))
    api_key: str = field(default_factory=lambda: _env("JUPITER_API_KEY"))
    user_agent: str = field(default_factory=lambda: _env("JUPITER_USER_AGENT", "swap-adapter/1.0"))
    timeout: float = field(default_factory=lambda: _env_float("JUPITER_TIMEOUT", 10.0))
    quote_attempts: int = field(default_factory=lambda: _env_int("JUPITER_QUOTE_ATTEMPTS", 3))
    fallback_attempts: int = field(default_factory=lambda: _env_int("JUPITER_FALLBACK_ATTEMPTS", 2))
    build_attempts: int = field(default_factory=lambda: _env_int("JUPITER_BUILD_ATTEMPTS", 2))
    retry_delay: float = field(default_factory=lambda: _env_float("JUPITER_RETRY_DELAY", 1.0))


@dataclass
class TokenListConfig:
    """Token list consulted when a name is not in the built-in registry"""
    url: str = field(default_factory=lambda: _env("TOKEN_LIST_URL", "https://token.jup.ag/strict"))
    timeout: float = field(default_factory=lambda: _env_float("TOKEN_LIST_TIMEOUT", 5.0))


@dataclass
class SolanaConfig:
    # Lamports kept aside for fees and rent when spending native SOL
    fee_buffer_lamports: int = field(default_factory=lambda: _env_int("SOLANA_FEE_BUFFER_LAMPORTS", 10_000_000))
    # Used for unknown mints until the mint account has been read
    default_token_decimals: int = field(default_factory=lambda: _env_int("DEFAULT_TOKEN_DECIMALS", 6))


@dataclass
class TradingConfig:
    default_slippage_bps: int = field(default_factory=lambda: _env_int("DEFAULT_SLIPPAGE_BPS", 50))
    max_dynamic_slippage_bps: int = field(default_factory=lambda: _env_int("MAX_DYNAMIC_SLIPPAGE_BPS", 50))
    only_direct_routes: bool = field(default_factory=lambda: _env_bool("ONLY_DIRECT_ROUTES", False))


@dataclass
class LoggingConfig:
    """
    Log output settings

    LOG_FILE        file to write (rotated); empty means no file
    LOG_LEVEL       DEBUG, INFO, WARNING, ERROR or CRITICAL
    LOG_FORMAT      logging.Formatter format string
    LOG_CONSOLE     also log to stderr
    LOG_MAX_BYTES   rotation size, 10 MiB by default
    LOG_BACKUP_COUNT  rotated files to keep
    """
    log_file: str = field(default_factory=lambda: _env("LOG_FILE"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _env(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))
    backup_count: int = field(default_factory=lambda: _env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    All settings, grouped by concern

        from swap_adapter.config import config
        config.rpc.url, config.jupiter.quote_url
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    jupiter: JupiterConfig = field(default_factory=JupiterConfig)
    token_list: TokenListConfig = field(default_factory=TokenListConfig)
    trading: TradingConfig = field(default_factory=TradingConfig)
    solana: SolanaConfig = field(default_factory=SolanaConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


config = Config()


def reload_config() -> Config:
    """
    Re-read .env and the environment into the global ``config``

    Sections are replaced on the existing instance, so modules holding a
    reference to it see the new values. Components already constructed keep
    the settings they were built with.
    """
    _load_env_file()
    fresh = Config()
    for section in fields(Config):
        setattr(config, section.name, getattr(fresh, section.name))
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "swap_adapter",
) -> logging.Logger:
    """
    Attach file and/or console handlers to the package logger.

    Calling it again replaces the handlers installed by the previous call.
    The directory of ``log_file`` is created when missing.

    Args:
        log_config: Settings to apply, the global ``config.logging`` by default
        logger_name: Root of the logger tree to configure

    Returns:
        The configured logger
    """
    log_config = log_config or config.logging
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    for old in logger.handlers[:]:
        old.close()
        logger.removeHandler(old)

    handlers: List[logging.Handler] = []
    if log_config.log_file:
        Path(log_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        ))
    if log_config.console_output:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(log_config.log_format)
    for handler in handlers:
        handler.setLevel(log_config.level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for package in ("infra", "modules", "protocols"):
        logging.getLogger(f"{logger_name}.{package}").setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging to {log_config.log_file} at {log_config.log_level}")
    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """Log to ``log_file``, or to a timestamped file under swap_adapter/log/"""
    if not log_file:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        log_file = config.logging.log_file or str(Path(__file__).parent / "log" / f"swap_adapter_{stamp}.log")
    return setup_logging(LoggingConfig(log_file=log_file, log_level=level, console_output=console))
