"""
Unit tests for the signing policy
"""

import base64
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from swap_adapter.errors import ErrorKind, SignerError
from swap_adapter.infra.solana_signer import LocalSigner
from swap_adapter.modules.signing import SigningMode, SigningPolicy
from swap_adapter.types import PreparedTransaction
from conftest import build_unsigned_tx


def _prepared_for(pubkey):
    tx = build_unsigned_tx(pubkey)
    return PreparedTransaction(raw_bytes=bytes(tx), recent_blockhash=str(tx.message.recent_blockhash))


class TestSelectMode(unittest.TestCase):

    def setUp(self):
        self.keypair = Keypair()
        self.server = str(self.keypair.pubkey())

    def test_custodial_wallet_with_key_is_server(self):
        policy = SigningPolicy(server_public_key=self.server, private_key=str(self.keypair), keypair_path="")
        self.assertEqual(policy.select_mode(self.server), SigningMode.SERVER)

    def test_other_wallet_is_client(self):
        policy = SigningPolicy(server_public_key=self.server, private_key=str(self.keypair), keypair_path="")
        self.assertEqual(policy.select_mode(str(Keypair().pubkey())), SigningMode.CLIENT)

    def test_no_key_material_is_client(self):
        policy = SigningPolicy(server_public_key=self.server, private_key="", keypair_path="")
        self.assertFalse(policy.has_custodial_key)
        self.assertEqual(policy.select_mode(self.server), SigningMode.CLIENT)

    def test_no_server_key_is_client(self):
        policy = SigningPolicy(server_public_key="", private_key=str(self.keypair), keypair_path="")
        self.assertEqual(policy.select_mode(self.server), SigningMode.CLIENT)

    def test_preloaded_signer_sets_server_key(self):
        policy = SigningPolicy(server_public_key="", private_key="", keypair_path="", signer=LocalSigner(self.keypair))
        self.assertEqual(policy.server_public_key, self.server)
        self.assertEqual(policy.select_mode(self.server), SigningMode.SERVER)


class TestSign(unittest.TestCase):

    def setUp(self):
        self.keypair = Keypair()
        self.server = str(self.keypair.pubkey())

    def test_server_signs(self):
        policy = SigningPolicy(server_public_key=self.server, private_key=str(self.keypair), keypair_path="")

        signed = policy.sign(_prepared_for(self.keypair.pubkey()), self.server)

        tx = VersionedTransaction.from_bytes(signed.raw_bytes)
        self.assertEqual(str(tx.signatures[0]), signed.signature)
        self.assertNotEqual(tx.signatures[0], Signature.default())

    def test_signer_loaded_once(self):
        policy = SigningPolicy(server_public_key=self.server, private_key=str(self.keypair), keypair_path="")
        prepared = _prepared_for(self.keypair.pubkey())

        with patch("swap_adapter.modules.signing.create_signer", return_value=LocalSigner(self.keypair)) as factory:
            policy.sign(prepared, self.server)
            policy.sign(prepared, self.server)

        factory.assert_called_once()

    def test_key_for_other_wallet_is_mismatch(self):
        other = Keypair()
        policy = SigningPolicy(server_public_key=self.server, private_key=str(other), keypair_path="")

        with self.assertRaises(SignerError) as ctx:
            policy.sign(_prepared_for(self.keypair.pubkey()), self.server)
        self.assertEqual(ctx.exception.kind, ErrorKind.SIGNER_MISMATCH)

    def test_invalid_key_material(self):
        policy = SigningPolicy(server_public_key=self.server, private_key="not-a-key", keypair_path="")

        with self.assertRaises(SignerError) as ctx:
            policy.sign(_prepared_for(self.keypair.pubkey()), self.server)
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_KEY_FORMAT)

    def test_sign_refused_for_client_wallet(self):
        policy = SigningPolicy(server_public_key=self.server, private_key=str(self.keypair), keypair_path="")
        wallet = Keypair().pubkey()

        with patch("swap_adapter.modules.signing.create_signer") as factory:
            with self.assertRaises(SignerError):
                policy.sign(_prepared_for(wallet), str(wallet))
        factory.assert_not_called()


class TestPrepareForClient(unittest.TestCase):

    def test_payload_round_trips(self):
        wallet = Keypair().pubkey()
        prepared = _prepared_for(wallet)

        payload = SigningPolicy.prepare_for_client(prepared)

        self.assertEqual(payload.status, "pending_signature")
        self.assertEqual(base64.b64decode(payload.transaction_base64), prepared.raw_bytes)
        self.assertEqual(payload.recent_blockhash, prepared.recent_blockhash)

    def test_client_path_never_decodes_key(self):
        keypair = Keypair()
        policy = SigningPolicy(server_public_key=str(keypair.pubkey()), private_key="garbage", keypair_path="")
        wallet = str(Keypair().pubkey())

        with patch("swap_adapter.modules.signing.create_signer") as factory:
            self.assertEqual(policy.select_mode(wallet), SigningMode.CLIENT)
            policy.prepare_for_client(_prepared_for(Keypair().pubkey()))
        factory.assert_not_called()


if __name__ == "__main__":
    unittest.main()
