"""
Shared configuration and fixtures for module integration tests.

WARNING: Server-signed tests execute real transactions and spend real tokens!

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required)
    SOLANA_PRIVATE_KEY: Base58 encoded private key (required for server-signed tests)
    SOLANA_KEYPAIR_PATH: Path to keypair JSON file (alternative to private key)
    SOLANA_PUBLIC_KEY: Custodial public key (derived from the key when unset)
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env_or_fail(key: str) -> str:
    """Get required environment variable or raise error"""
    value = os.getenv(key)
    if not value:
        raise EnvironmentError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value


def get_rpc_url() -> str:
    """Get Solana RPC URL from environment"""
    return get_env_or_fail("SOLANA_RPC_URL")


def get_custodial_signer():
    """
    Load the custodial signer from environment.

    Tries SOLANA_PRIVATE_KEY, then SOLANA_KEYPAIR_PATH.
    """
    from swap_adapter.infra import create_signer
    from swap_adapter.errors import SignerError

    try:
        return create_signer(
            private_key=os.getenv("SOLANA_PRIVATE_KEY") or None,
            keypair_path=os.getenv("SOLANA_KEYPAIR_PATH") or None,
        )
    except SignerError as e:
        raise EnvironmentError(
            "No wallet configured. Set either:\n"
            "  SOLANA_PRIVATE_KEY - base58 encoded private key\n"
            f"  SOLANA_KEYPAIR_PATH - path to keypair JSON file\n({e})"
        )


def create_client(with_custody: bool = False):
    """Create SwapClient against the live RPC"""
    from swap_adapter import SwapClient

    if not with_custody:
        return SwapClient(rpc_url=get_rpc_url(), server_public_key="", private_key="", keypair_path="")

    signer = get_custodial_signer()
    return SwapClient(
        rpc_url=get_rpc_url(),
        server_public_key=signer.pubkey,
        private_key=os.getenv("SOLANA_PRIVATE_KEY") or "",
        keypair_path=os.getenv("SOLANA_KEYPAIR_PATH") or "",
    )


def skip_if_no_rpc():
    """Return skip message if the RPC endpoint is not configured"""
    try:
        get_rpc_url()
        return None
    except EnvironmentError as e:
        return str(e)


def skip_if_no_config():
    """Return skip message if RPC or custodial key is missing"""
    try:
        get_rpc_url()
        get_custodial_signer()
        return None
    except (EnvironmentError, FileNotFoundError) as e:
        return str(e)


# Pytest fixtures
@pytest.fixture(scope="module")
def client():
    """SwapClient without custody (client-signed path only)"""
    skip_msg = skip_if_no_rpc()
    if skip_msg:
        pytest.skip(skip_msg)
    swap_client = create_client()
    yield swap_client
    swap_client.close()


@pytest.fixture(scope="module")
def custodial_client():
    """SwapClient that signs for the custodial wallet"""
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)
    swap_client = create_client(with_custody=True)
    yield swap_client
    swap_client.close()
