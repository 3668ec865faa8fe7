# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import base64
import json
import os
import tempfile
import unittest
from typing import Union

from algosdk import account as sdk_account
from algosdk import constants, encoding, mnemonic, transaction, util
from algosdk.atomic_transaction_composer import AccountTransactionSigner
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey


class Account:
    """An Algorand address together with the private key that controls it.

    Key generation, backup-phrase encoding and transaction signing are delegated
    to ``algosdk``; arbitrary-byte signatures go through PyNaCl directly. The
    private key is kept in the ``algosdk`` format: the base64 encoding of the
    64-byte ed25519 seed-plus-public-key.

    Examples:
        Generate, back up and recover::

            account = Account.generate()
            words = account.mnemonic()
            recovered = Account.from_mnemonic(words)
            assert recovered.address() == account.address()

        Persist to disk::

            account.store("./alice.json")
            alice = Account.load("./alice.json")

        Sign a transaction built elsewhere::

            signed = account.sign_transaction(txn)

    Note:
        After a rekey the address stays the same while a different account's key
        signs for it. Such transactions are signed with the authorized account,
        and ``algosdk`` records the signer in the signed transaction.
    """

    account_address: str
    private_key: str

    def __init__(self, account_address: str, private_key: str):
        self.account_address = account_address
        self.private_key = private_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return (
            self.account_address == other.account_address
            and self.private_key == other.private_key
        )

    def __repr__(self) -> str:
        return f"Account({self.account_address})"

    @staticmethod
    def generate() -> Account:
        """Create an account from a freshly generated key pair."""
        private_key, address = sdk_account.generate_account()
        return Account(address, private_key)

    @staticmethod
    def from_mnemonic(words: str) -> Account:
        """Recover an account from its 25-word backup phrase.

        Raises:
            algosdk.error.WrongChecksumError: If the phrase checksum does not match.
            algosdk.error.WrongMnemonicLengthError: If the phrase is not 25 words.
        """
        private_key = mnemonic.to_private_key(words)
        return Account.load_key(private_key)

    @staticmethod
    def load_key(private_key: str) -> Account:
        return Account(sdk_account.address_from_private_key(private_key), private_key)

    @staticmethod
    def load(path: str) -> Account:
        with open(path) as file:
            data = json.load(file)
        return Account(data["account_address"], data["private_key"])

    def store(self, path: str):
        data = {
            "account_address": self.account_address,
            "private_key": self.private_key,
        }
        with open(path, "w") as file:
            json.dump(data, file)

    def address(self) -> str:
        return self.account_address

    def mnemonic(self) -> str:
        """Return the 25-word backup phrase for this account's private key."""
        return mnemonic.from_private_key(self.private_key)

    def public_key(self) -> VerifyKey:
        """The ed25519 public key encoded in the address."""
        return VerifyKey(encoding.decode_address(self.account_address))

    def sign(self, data: bytes) -> bytes:
        """
        Sign arbitrary bytes.

        The data is prefixed with ``MX`` before signing so that the signature can
        never be replayed as a transaction signature. The result verifies with
        ``algosdk.util.verify_bytes``.
        """
        seed = base64.b64decode(self.private_key)[: constants.key_len_bytes]
        return SigningKey(seed).sign(constants.bytes_prefix + data).signature

    def verify(self, data: bytes, signature: bytes) -> bool:
        try:
            self.public_key().verify(constants.bytes_prefix + data, signature)
        except BadSignatureError:
            return False
        return True

    def sign_transaction(self, txn: transaction.Transaction) -> transaction.SignedTransaction:
        return txn.sign(self.private_key)

    def transaction_signer(self) -> AccountTransactionSigner:
        """A signer usable with ``algosdk``'s atomic transaction composer."""
        return AccountTransactionSigner(self.private_key)


def to_address(account_or_address: Union[Account, str]) -> str:
    """Accept either an ``Account`` or a plain address string."""
    if isinstance(account_or_address, Account):
        return account_or_address.address()
    return account_or_address


class Test(unittest.TestCase):
    def test_generate_and_recover(self):
        account = Account.generate()
        recovered = Account.from_mnemonic(account.mnemonic())

        self.assertEqual(account.address(), recovered.address())
        self.assertEqual(account, recovered)
        self.assertEqual(len(account.mnemonic().split()), 25)

    def test_load_and_store(self):
        (file, path) = tempfile.mkstemp()
        start = Account.generate()
        start.store(path)
        load = Account.load(path)
        os.close(file)
        os.unlink(path)

        self.assertEqual(start, load)

    def test_sign_and_verify(self):
        message = b"test message"
        account = Account.generate()
        signature = account.sign(message)

        self.assertTrue(account.verify(message, signature))
        self.assertFalse(account.verify(b"other message", signature))
        self.assertFalse(Account.generate().verify(message, signature))
        # Compatible with the SDK's own byte-signing check
        self.assertTrue(
            util.verify_bytes(
                message, base64.b64encode(signature).decode(), account.address()
            )
        )

    def test_public_key_matches_address(self):
        account = Account.generate()
        self.assertEqual(
            encoding.encode_address(bytes(account.public_key())), account.address()
        )

    def test_sign_transaction(self):
        sender = Account.generate()
        params = transaction.SuggestedParams(
            fee=1000,
            first=1,
            last=1001,
            gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
            gen="testnet-v1.0",
            flat_fee=True,
        )
        txn = transaction.PaymentTxn(sender.address(), params, sender.address(), 0)
        signed = sender.sign_transaction(txn)

        self.assertEqual(signed.get_txid(), txn.get_txid())
        self.assertIsNone(signed.authorizing_address)

    def test_to_address(self):
        account = Account.generate()
        self.assertEqual(to_address(account), account.address())
        self.assertEqual(to_address(account.address()), account.address())
