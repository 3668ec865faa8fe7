# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Account lifecycle: generation, recovery, multisig derivation, inspection and rekeying.

Rekeying hands an account's signing authority to a different key while its
address, balance and holdings stay where they are. After a rekey, transactions
*from* the original address must be signed by the authorized account.
"""

from __future__ import annotations

import logging
import unittest
import unittest.mock
from typing import Any, Dict, Sequence, Union

from algosdk import error, transaction

from .account import Account
from .async_client import AlgodClient
from .multisig import MultisigDescriptor
from .transaction_client import TransactionClient
from .workflow import Confirmation, WorkflowRunner


class AccountClient:
    client: AlgodClient
    runner: WorkflowRunner

    def __init__(self, client: AlgodClient):
        self.client = client
        self.runner = WorkflowRunner(client)

    @staticmethod
    def generate_account() -> Account:
        account = Account.generate()
        logging.info(f"Generated Account Address: {account.address()}")
        logging.info(f"Account Mnemonic: {account.mnemonic()}")
        return account

    @staticmethod
    def recover_account(words: str) -> Account:
        """
        Recover an account from its 25-word backup phrase.

        :raises algosdk.error.WrongChecksumError: If the phrase is not valid
        """
        try:
            account = Account.from_mnemonic(words)
        except Exception as e:
            logging.error(f"Error recovering account: {e}")
            raise
        logging.info(f"Recovered Account Address: {account.address()}")
        return account

    @staticmethod
    def create_multisig_account(
        addresses: Sequence[Union[Account, str]], threshold: int
    ) -> MultisigDescriptor:
        descriptor = MultisigDescriptor.create(addresses, threshold)
        logging.info(f"Multisig Address: {descriptor.address()}")
        return descriptor

    async def check_account_info(self, address: str) -> Dict[str, Any]:
        """
        Fetch an account record and log its balance, status and holdings.

        :raises AccountNotFound: If the node does not accept the address
        """
        try:
            info = await self.client.account_info(address)
        except Exception as e:
            logging.error(f"Error checking account info: {e}")
            raise

        logging.info(f"Account Balance: {info['amount']} microAlgos")
        logging.info(f"Account Status: {info['status']}")
        for asset in info.get("assets", []):
            logging.info(f"- Asset ID: {asset['asset-id']}, Amount: {asset['amount']}")
        if info.get("created-apps"):
            logging.info(f"Created Applications: {len(info['created-apps'])}")
        return info

    async def rekey_account(self, account: Account, auth_account: Account) -> Confirmation:
        """
        Give ``auth_account`` signing authority over ``account``.

        This is a zero-amount payment to itself, signed by the current key.
        """
        confirmation = await self.runner.execute(
            "rekeying account",
            lambda sp: TransactionClient.payment_transaction(
                account.address(),
                account.address(),
                0,
                sp,
                rekey_to=auth_account.address(),
            ),
            account,
        )
        logging.info(
            f"Account {account.address()} has been rekeyed to {auth_account.address()}"
        )
        return confirmation

    async def send_with_rekeyed_account(
        self,
        original_account: Account,
        auth_account: Account,
        receiver: Union[Account, str],
        amount: int,
    ) -> Confirmation:
        """Pay from ``original_account``'s address, signed by ``auth_account``."""
        return await self.runner.execute(
            "sending with rekeyed account",
            lambda sp: TransactionClient.payment_transaction(
                original_account.address(), receiver, amount, sp
            ),
            auth_account,
        )


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.accounts = AccountClient(self.client)
        self.alice = Account.generate()
        self.bob = Account.generate()
        self.params = transaction.SuggestedParams(
            fee=1000,
            first=1,
            last=1001,
            gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
            gen="testnet-v1.0",
            flat_fee=True,
        )

    async def asyncTearDown(self):
        await self.client.close()

    def test_generate_and_recover(self):
        account = AccountClient.generate_account()
        recovered = AccountClient.recover_account(account.mnemonic())

        self.assertEqual(recovered.address(), account.address())

    def test_recover_invalid_phrase(self):
        words = self.alice.mnemonic().split()
        # Replace the checksum word
        words[-1] = "abandon" if words[-1] != "abandon" else "ability"
        with self.assertRaises(error.WrongChecksumError):
            AccountClient.recover_account(" ".join(words))

    async def test_check_account_info(self):
        info = {
            "address": self.alice.address(),
            "amount": 5_000_000,
            "status": "Offline",
            "assets": [{"asset-id": 10, "amount": 3, "is-frozen": False}],
            "created-apps": [{"id": 20}],
        }
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.account_info",
            return_value=info,
        ):
            with self.assertLogs(level="INFO") as logs:
                result = await self.accounts.check_account_info(self.alice.address())

        self.assertEqual(result, info)
        self.assertIn("INFO:root:Account Balance: 5000000 microAlgos", logs.output)
        self.assertIn("INFO:root:- Asset ID: 10, Amount: 3", logs.output)
        self.assertIn("INFO:root:Created Applications: 1", logs.output)

    async def test_rekey_and_send(self):
        receiver = Account.generate()
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 8},
        ):
            await self.accounts.rekey_account(self.alice, self.bob)
            rekey = send.await_args.args[0][0]
            await self.accounts.send_with_rekeyed_account(
                self.alice, self.bob, receiver, 1000
            )
            payment = send.await_args.args[0][0]

        self.assertEqual(rekey.transaction.sender, self.alice.address())
        self.assertEqual(rekey.transaction.receiver, self.alice.address())
        self.assertEqual(rekey.transaction.amt, 0)
        self.assertEqual(rekey.transaction.rekey_to, self.bob.address())
        self.assertIsNone(rekey.authorizing_address)

        self.assertEqual(payment.transaction.sender, self.alice.address())
        self.assertEqual(payment.authorizing_address, self.bob.address())
