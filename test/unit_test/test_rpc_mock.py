"""
Test RPC Client with Mocks

Tests for RPC client behavior with mocked HTTP responses.
"""

import base64
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import httpx
import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from swap_adapter.infra.rpc import RpcClient, RpcClientConfig
from swap_adapter.errors import ConfigurationError, RpcError

PRIMARY = "https://primary.example.com"
BACKUP = "https://backup.example.com"


def _response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


@pytest.fixture
def fast_config():
    return RpcClientConfig(timeout_seconds=5.0, max_retries=2, retry_delay_seconds=0, commitment="confirmed")


def test_rpc_config_defaults():
    """RpcClientConfig pulls defaults from global config"""
    config = RpcClientConfig()

    assert config.timeout_seconds > 0
    assert config.max_retries > 0
    assert config.commitment in ("processed", "confirmed", "finalized")


def test_rpc_config_override():
    config = RpcClientConfig(timeout_seconds=60.0, max_retries=5, commitment="finalized")

    assert config.timeout_seconds == 60.0
    assert config.max_retries == 5
    assert config.commitment == "finalized"


def test_rpc_client_init():
    assert RpcClient(PRIMARY).endpoint == PRIMARY
    assert RpcClient([PRIMARY, BACKUP]).endpoint == PRIMARY

    with pytest.raises(ConfigurationError):
        RpcClient([])
    with pytest.raises(ConfigurationError):
        RpcClient("")


def test_get_balance(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({"jsonrpc": "2.0", "id": 1, "result": {"value": 1_500_000_000}})

        rpc = RpcClient(PRIMARY, config=fast_config)
        assert rpc.get_balance("Wallet111") == 1_500_000_000

        body = mock_post.call_args.kwargs["json"]
        assert body["method"] == "getBalance"
        assert body["params"] == ["Wallet111", {"commitment": "confirmed"}]


def test_get_latest_blockhash(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({
            "result": {"value": {"blockhash": "Hash111", "lastValidBlockHeight": 42}},
        })

        rpc = RpcClient(PRIMARY, config=fast_config)
        latest = rpc.get_latest_blockhash(commitment="confirmed")

        assert latest == {"blockhash": "Hash111", "lastValidBlockHeight": 42}


def test_get_account_info_missing(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({"result": {"value": None}})

        rpc = RpcClient(PRIMARY, config=fast_config)
        assert rpc.get_account_info("Mint111", encoding="jsonParsed") is None
        assert mock_post.call_args.kwargs["json"]["params"][1]["encoding"] == "jsonParsed"


def test_send_transaction_uses_preflight(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({"result": "5igSig"})

        rpc = RpcClient(PRIMARY, config=fast_config)
        signature = rpc.send_transaction(b"\x01\x02\x03")

        assert signature == "5igSig"
        params = mock_post.call_args.kwargs["json"]["params"]
        assert params[0] == base64.b64encode(b"\x01\x02\x03").decode("ascii")
        assert params[1]["skipPreflight"] is False
        assert params[1]["encoding"] == "base64"


def test_send_transaction_is_not_retried_on_same_endpoint(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.side_effect = httpx.ConnectTimeout("timed out")

        rpc = RpcClient(PRIMARY, config=fast_config)
        with pytest.raises(RpcError):
            rpc.send_transaction(b"\x01")

        assert mock_post.call_count == 1


def test_get_signature_statuses(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({
            "result": {"value": [{"slot": 9, "confirmationStatus": "confirmed", "err": None}]},
        })

        rpc = RpcClient(PRIMARY, config=fast_config)
        statuses = rpc.get_signature_statuses(["5igSig"])

        assert statuses[0]["confirmationStatus"] == "confirmed"
        params = mock_post.call_args.kwargs["json"]["params"]
        assert params == [["5igSig"], {"searchTransactionHistory": True}]


@patch("swap_adapter.infra.retry.time.sleep")
def test_transient_error_retried(mock_sleep, fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.side_effect = [
            httpx.ConnectError("connection refused"),
            _response({"result": {"value": 7}}),
        ]

        rpc = RpcClient(PRIMARY, config=fast_config)
        assert rpc.get_balance("Wallet111") == 7
        assert mock_post.call_count == 2


def test_rate_limit_is_recoverable(fast_config):
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({}, status_code=429)

        rpc = RpcClient(PRIMARY, config=fast_config)
        with pytest.raises(RpcError) as exc_info:
            rpc.get_balance("Wallet111")

        assert exc_info.value.recoverable is True
        assert mock_post.call_count == 2


def test_endpoint_fallback(fast_config):
    """Primary exhausts its retries, backup answers"""
    def post(url, **kwargs):
        if url == PRIMARY:
            raise httpx.ConnectError("primary down")
        return _response({"result": {"value": 99}})

    with patch.object(httpx.Client, "post", side_effect=post) as mock_post:
        rpc = RpcClient([PRIMARY, BACKUP], config=fast_config)

        assert rpc.get_balance("Wallet111") == 99
        assert rpc.endpoint == BACKUP
        assert mock_post.call_count == 3


def test_node_error_not_retried(fast_config):
    """A JSON-RPC error object is final"""
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.return_value = _response({
            "error": {
                "code": -32002,
                "message": "Transaction simulation failed",
                "data": {"logs": ["Program log: insufficient funds"]},
            },
        })

        rpc = RpcClient([PRIMARY, BACKUP], config=fast_config)
        with pytest.raises(RpcError) as exc_info:
            rpc.send_transaction(b"\x01")

        assert exc_info.value.recoverable is False
        assert exc_info.value.rpc_code == -32002
        assert mock_post.call_count == 1
        assert rpc.endpoint == PRIMARY


def test_context_manager_closes_client(fast_config):
    with patch.object(httpx.Client, "post") as mock_post, patch.object(httpx.Client, "close") as mock_close:
        mock_post.return_value = _response({"result": 1})

        with RpcClient(PRIMARY, config=fast_config) as rpc:
            rpc.call("getSlot", [])

        mock_close.assert_called_once()


def test_send_transaction_never_moves_to_backup(fast_config):
    """Signed bytes go to one endpoint only; later calls use the next one"""
    with patch.object(httpx.Client, "post") as mock_post:
        mock_post.side_effect = httpx.ConnectTimeout("timed out")

        rpc = RpcClient([PRIMARY, BACKUP], config=fast_config)
        with pytest.raises(RpcError) as exc_info:
            rpc.send_transaction(b"\x01")

        sent_to = [c.args[0] for c in mock_post.call_args_list]
        assert sent_to == [PRIMARY]
        assert exc_info.value.recoverable is True
        assert rpc.endpoint == BACKUP
