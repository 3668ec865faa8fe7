# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Stateless contracts (logic signatures).

A logic signature authorizes a transaction by program instead of by key. It is
used in two ways:

    - **Escrow**: the program alone controls an account whose address is the
      hash of the program bytes. Anything the program approves can spend it.
    - **Delegation**: an ordinary account signs the program, allowing any
      transaction from that account which the program approves.

Programs are compiled on the node; this module never interprets TEAL.
"""

from __future__ import annotations

import logging
import unittest
import unittest.mock
from typing import List, Optional, Union

from algosdk import transaction

from .account import Account, to_address
from .async_client import AlgodClient
from .transaction_client import TransactionClient
from .workflow import Confirmation, WorkflowRunner


class LogicSigSigner:
    """Signs transactions with a logic signature instead of a private key."""

    lsig: transaction.LogicSigAccount

    def __init__(self, lsig: transaction.LogicSigAccount):
        self.lsig = lsig

    def address(self) -> str:
        return self.lsig.address()

    def sign_transaction(
        self, txn: transaction.Transaction
    ) -> transaction.LogicSigTransaction:
        return transaction.LogicSigTransaction(txn, self.lsig)


class LogicSignatureClient:
    client: AlgodClient
    runner: WorkflowRunner

    def __init__(self, client: AlgodClient):
        self.client = client
        self.runner = WorkflowRunner(client)

    async def compile_program(self, source: str) -> bytes:
        """
        Compile TEAL source on the node.

        :param source: TEAL program text
        :return: The program bytes
        :raises ApiError: If the program does not compile
        """
        try:
            program, _ = await self.client.compile(source)
        except Exception as e:
            logging.error(f"Error compiling program: {e}")
            raise
        return program

    async def create_logic_signature(
        self, source: str, args: Optional[List[bytes]] = None
    ) -> transaction.LogicSigAccount:
        """Compile ``source`` into an escrow logic signature."""
        program = await self.compile_program(source)
        try:
            lsig = transaction.LogicSigAccount(program, args)
        except Exception as e:
            logging.error(f"Error creating logic signature: {e}")
            raise
        logging.info(f"LogicSig Address: {lsig.address()}")
        return lsig

    async def create_delegated_logic_signature(
        self,
        source: str,
        delegating_account: Account,
        args: Optional[List[bytes]] = None,
    ) -> transaction.LogicSigAccount:
        """
        Compile ``source`` and sign it with ``delegating_account``.

        The returned logic signature spends from the delegating account, not from
        the program's escrow address.
        """
        program = await self.compile_program(source)
        try:
            lsig = transaction.LogicSigAccount(program, args)
            lsig.sign(delegating_account.private_key)
        except Exception as e:
            logging.error(f"Error creating delegated logic signature: {e}")
            raise
        logging.info(
            f"Delegated LogicSig created for account: {delegating_account.address()}"
        )
        return lsig

    async def send_with_logic_signature(
        self,
        lsig: transaction.LogicSigAccount,
        receiver: Union[Account, str],
        amount: int,
    ) -> Confirmation:
        """
        Pay from the logic signature's account.

        :raises ApiError: If the program rejects the payment
        """
        signer = LogicSigSigner(lsig)
        return await self.runner.execute(
            "sending with LogicSig",
            lambda sp: TransactionClient.payment_transaction(
                signer.address(), to_address(receiver), amount, sp
            ),
            signer,
        )


# "#pragma version 6; int 1" as compiled by algod
ALWAYS_APPROVE = b"\x06\x81\x01"


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.lsigs = LogicSignatureClient(self.client)
        self.alice = Account.generate()
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

    async def test_escrow_address_is_program_hash(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.compile",
            return_value=(ALWAYS_APPROVE, "IGNORED"),
        ):
            lsig = await self.lsigs.create_logic_signature("#pragma version 6\nint 1")

        self.assertFalse(lsig.is_delegated())
        self.assertEqual(
            lsig.address(), transaction.LogicSigAccount(ALWAYS_APPROVE).address()
        )

    async def test_delegated_logic_signature(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.compile",
            return_value=(ALWAYS_APPROVE, "IGNORED"),
        ):
            lsig = await self.lsigs.create_delegated_logic_signature(
                "#pragma version 6\nint 1", self.alice
            )

        self.assertTrue(lsig.is_delegated())
        self.assertTrue(lsig.verify())
        self.assertEqual(lsig.address(), self.alice.address())

    async def test_send_with_logic_signature(self):
        lsig = transaction.LogicSigAccount(ALWAYS_APPROVE)
        receiver = Account.generate()
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 3},
        ):
            await self.lsigs.send_with_logic_signature(lsig, receiver, 1000)

        signed = send.await_args.args[0][0]
        self.assertIsInstance(signed, transaction.LogicSigTransaction)
        self.assertEqual(signed.transaction.sender, lsig.address())
        self.assertEqual(signed.transaction.receiver, receiver.address())
