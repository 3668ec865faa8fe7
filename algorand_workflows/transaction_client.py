# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Payments: single, leased, atomic groups and multisig.

Examples:
    Pay two receivers all-or-nothing::

        client = AlgodClient("https://testnet-api.algonode.cloud")
        payments = TransactionClient(client)
        confirmation = await payments.send_atomic_transactions(
            alice, [bob, chad.address()], 100_000
        )
        print(f"Group confirmed in round {confirmation.confirmed_round}")
"""

from __future__ import annotations

import logging
import unittest
import unittest.mock
from typing import Optional, Sequence, Union

from algosdk import error, transaction

from .account import Account, to_address
from .async_client import AlgodClient
from .multisig import MultisigDescriptor, MultisigSigner
from .workflow import Confirmation, WorkflowRunner


class TransactionClient:
    """Builds and sends ALGO payments."""

    client: AlgodClient
    runner: WorkflowRunner

    def __init__(self, client: AlgodClient):
        self.client = client
        self.runner = WorkflowRunner(client)

    @staticmethod
    def payment_transaction(
        sender: str,
        receiver: Union[Account, str],
        amount: int,
        sp: transaction.SuggestedParams,
        note: Optional[str] = None,
        lease: Optional[bytes] = None,
        rekey_to: Optional[str] = None,
        close_remainder_to: Optional[str] = None,
    ) -> transaction.PaymentTxn:
        """
        Build a payment in microAlgos.

        :param sender: Address the funds leave from
        :param receiver: Receiving account or address
        :param amount: Amount in microAlgos
        :param sp: Suggested parameters from the node
        :param note: Optional text note, stored UTF-8 encoded
        :param lease: Optional 32-byte lease; the network rejects a second
            transaction from the same sender with the same lease while the first
            one's validity window is open
        :param rekey_to: Optional address to hand signing authority to
        :param close_remainder_to: Optional address that receives the remaining
            balance, closing the sender account
        :return: The unsigned payment
        """
        return transaction.PaymentTxn(
            sender,
            sp,
            to_address(receiver),
            amount,
            close_remainder_to=close_remainder_to,
            note=note.encode("utf-8") if note else None,
            lease=lease,
            rekey_to=rekey_to,
        )

    async def send_payment(
        self,
        sender: Account,
        receiver: Union[Account, str],
        amount: int,
        note: Optional[str] = None,
    ) -> Confirmation:
        """
        Pay ``amount`` microAlgos from ``sender`` to ``receiver``.

        :raises ApiError: If the node rejects the payment, e.g. for overspending
        """
        return await self.runner.execute(
            "sending payment",
            lambda sp: TransactionClient.payment_transaction(
                sender.address(), receiver, amount, sp, note
            ),
            sender,
        )

    async def send_transaction_with_lease(
        self,
        sender: Account,
        receiver: Union[Account, str],
        amount: int,
        lease: bytes,
    ) -> Confirmation:
        """
        Pay with a lease so an identical resubmission cannot go through twice.

        :raises algosdk.error.WrongLeaseLengthError: If the lease is not 32 bytes
        """
        return await self.runner.execute(
            "sending transaction with lease",
            lambda sp: TransactionClient.payment_transaction(
                sender.address(), receiver, amount, sp, lease=lease
            ),
            sender,
        )

    async def send_atomic_transactions(
        self,
        sender: Account,
        receivers: Sequence[Union[Account, str]],
        amount: int,
    ) -> Confirmation:
        """
        Pay every receiver the same amount in one atomic group.

        Either all payments are committed in the same round or none are.

        :raises ValueError: If ``receivers`` is empty
        """
        return await self.runner.execute_group(
            "sending atomic transactions",
            lambda sp: [
                (
                    TransactionClient.payment_transaction(
                        sender.address(),
                        receiver,
                        amount,
                        sp,
                        note=f"Payment {index} in atomic group",
                    ),
                    sender,
                )
                for index, receiver in enumerate(receivers, start=1)
            ],
        )

    async def send_multisig_transaction(
        self,
        descriptor: MultisigDescriptor,
        signers: Sequence[Account],
        receiver: Union[Account, str],
        amount: int,
    ) -> Confirmation:
        """
        Pay from a multisig address, signed by ``signers`` in order.

        Fewer signers than the threshold is not caught here; the node rejects
        the submission.
        """
        logging.info(f"Multisig address: {descriptor.address()}")
        return await self.runner.execute(
            "sending multisig transaction",
            lambda sp: TransactionClient.payment_transaction(
                descriptor.address(), receiver, amount, sp, note="Multisig transaction"
            ),
            MultisigSigner(descriptor, signers),
        )


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.payments = TransactionClient(self.client)
        self.alice = Account.generate()
        self.bob = Account.generate()
        self.chad = Account.generate()
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

    def test_payment_transaction(self):
        txn = TransactionClient.payment_transaction(
            self.alice.address(), self.bob, 1_000_000, self.params, note="hello"
        )

        self.assertEqual(txn.sender, self.alice.address())
        self.assertEqual(txn.receiver, self.bob.address())
        self.assertEqual(txn.amt, 1_000_000)
        self.assertEqual(txn.note, b"hello")
        self.assertIsNone(txn.lease)

    async def test_send_atomic_transactions(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 5},
        ):
            confirmation = await self.payments.send_atomic_transactions(
                self.alice, [self.bob, self.chad.address()], 1000
            )

        signed = send.await_args.args[0]
        self.assertEqual(confirmation.confirmed_round, 5)
        self.assertEqual(
            [s.transaction.note for s in signed],
            [b"Payment 1 in atomic group", b"Payment 2 in atomic group"],
        )
        self.assertEqual(signed[0].transaction.group, signed[1].transaction.group)
        self.assertEqual(signed[1].transaction.receiver, self.chad.address())

    async def test_send_transaction_with_lease(self):
        lease = bytes(range(1, 33))
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 5},
        ):
            await self.payments.send_transaction_with_lease(
                self.alice, self.bob, 1000, lease
            )

        self.assertEqual(send.await_args.args[0][0].transaction.lease, lease)

    async def test_send_transaction_with_short_lease(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
        ) as send:
            with self.assertLogs(level="ERROR") as logs:
                with self.assertRaises(error.WrongLeaseLengthError):
                    await self.payments.send_transaction_with_lease(
                        self.alice, self.bob, 1000, b"short"
                    )

        send.assert_not_called()
        self.assertIn("Error sending transaction with lease:", logs.output[0])

    async def test_send_multisig_transaction(self):
        descriptor = MultisigDescriptor.create([self.alice, self.bob, self.chad], 2)
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 5},
        ):
            await self.payments.send_multisig_transaction(
                descriptor, [self.alice, self.bob], self.chad, 1000
            )

        signed = send.await_args.args[0][0]
        self.assertEqual(signed.transaction.sender, descriptor.address())
        self.assertEqual(signed.transaction.note, b"Multisig transaction")
        self.assertIsInstance(signed, transaction.MultisigTransaction)
