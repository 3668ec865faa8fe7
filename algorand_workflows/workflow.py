# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
The request/sign/submit/confirm template shared by every operation.

Every operation in this package follows the same steps: fetch network parameters,
build a transaction from them, sign it, submit it, wait for inclusion, and return
the confirmation. ``WorkflowRunner`` owns those steps so the operation clients only
describe what to build and who signs it.

Failures are logged with the name of the action that failed and re-raised
unchanged. Nothing is retried.
"""

from __future__ import annotations

import base64
import logging
import unittest
import unittest.mock
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from algosdk import transaction
from typing_extensions import Protocol

from .account import Account
from .async_client import AlgodClient, ConfirmationTimeout


class Signer(Protocol):
    """Anything that turns an unsigned transaction into a submittable one."""

    def sign_transaction(self, txn: transaction.Transaction) -> Any:
        ...


@dataclass
class Confirmation:
    """What the node reported once a transaction was committed."""

    txid: str
    confirmed_round: int
    asset_index: Optional[int] = None
    application_index: Optional[int] = None
    logs: List[bytes] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def parse(txid: str, info: Dict[str, Any]) -> Confirmation:
        return Confirmation(
            txid=txid,
            confirmed_round=info["confirmed-round"],
            asset_index=info.get("asset-index"),
            application_index=info.get("application-index"),
            logs=[base64.b64decode(log) for log in info.get("logs", [])],
            raw=info,
        )


def assign_group(
    transactions: Sequence[transaction.Transaction],
) -> List[transaction.Transaction]:
    """
    Give every transaction the same group id so the network applies all or none.

    :param transactions: Unsigned transactions in submission order
    :return: The same transactions, now carrying the shared group id
    :raises ValueError: If no transactions are given
    """
    if not transactions:
        raise ValueError("cannot group an empty list of transactions")
    return transaction.assign_group_id(list(transactions))


BuildTransaction = Callable[[transaction.SuggestedParams], transaction.Transaction]
BuildGroup = Callable[
    [transaction.SuggestedParams], Sequence[Tuple[transaction.Transaction, Signer]]
]


class WorkflowRunner:
    """Runs the seven-step template against one algod client.

    Examples:
        Pay 1 ALGO::

            runner = WorkflowRunner(client)
            confirmation = await runner.execute(
                "sending payment",
                lambda sp: transaction.PaymentTxn(alice.address(), sp, bob.address(), 1_000_000),
                alice,
            )
    """

    client: AlgodClient

    def __init__(self, client: AlgodClient):
        self.client = client

    async def execute(
        self, action: str, build: BuildTransaction, signer: Signer
    ) -> Confirmation:
        """
        Build, sign, submit and confirm one transaction.

        :param action: Short description used in log lines, e.g. "sending payment"
        :param build: Called with fresh suggested parameters; returns the transaction
        :param signer: Signs the built transaction
        :return: The confirmation record
        """
        try:
            params = await self.client.suggested_params()
            signed = signer.sign_transaction(build(params))
        except Exception as e:
            logging.error(f"Error {action}: {e}")
            raise
        return await self.submit(action, [signed])

    async def execute_group(self, action: str, build: BuildGroup) -> Confirmation:
        """
        Build, group, sign, submit and confirm an atomic group.

        The group id is assigned before anything is signed, the whole group goes
        out in one request, and the runner waits on the first transaction: all
        members are committed in the same round or not at all.
        """
        try:
            params = await self.client.suggested_params()
            pairs = list(build(params))
            grouped = assign_group([txn for txn, _ in pairs])
            signed = [
                signer.sign_transaction(txn)
                for txn, (_, signer) in zip(grouped, pairs)
            ]
        except Exception as e:
            logging.error(f"Error {action}: {e}")
            raise
        return await self.submit(action, signed)

    async def submit(self, action: str, signed_transactions: List[Any]) -> Confirmation:
        """Submit already-signed transactions and wait for the first to confirm."""
        try:
            txid = await self.client.send_transactions(signed_transactions)
            logging.info(f"Transaction ID: {txid}")
            info = await self.client.wait_for_confirmation(txid)
        except Exception as e:
            logging.error(f"Error {action}: {e}")
            raise
        confirmation = Confirmation.parse(txid, info)
        logging.info(f"Transaction confirmed in round: {confirmation.confirmed_round}")
        return confirmation


def _suggested_params() -> transaction.SuggestedParams:
    return transaction.SuggestedParams(
        fee=1000,
        first=1,
        last=1001,
        gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
        gen="testnet-v1.0",
        flat_fee=True,
    )


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.runner = WorkflowRunner(self.client)
        self.alice = Account.generate()
        self.bob = Account.generate()

    async def asyncTearDown(self):
        await self.client.close()

    def test_assign_group(self):
        params = _suggested_params()
        txns = [
            transaction.PaymentTxn(self.alice.address(), params, self.bob.address(), n)
            for n in range(1, 4)
        ]
        grouped = assign_group(txns)

        self.assertEqual(len(grouped), 3)
        self.assertIsNotNone(grouped[0].group)
        self.assertTrue(all(txn.group == grouped[0].group for txn in grouped))

    def test_assign_group_empty(self):
        with self.assertRaises(ValueError):
            assign_group([])

    def test_confirmation_parse(self):
        info = {
            "confirmed-round": 12,
            "application-index": 77,
            "logs": [base64.b64encode(b"hello").decode()],
        }
        confirmation = Confirmation.parse("TXID", info)

        self.assertEqual(confirmation.confirmed_round, 12)
        self.assertEqual(confirmation.application_index, 77)
        self.assertIsNone(confirmation.asset_index)
        self.assertEqual(confirmation.logs, [b"hello"])
        self.assertEqual(confirmation.raw, info)

    async def test_payment_confirmed_after_rounds(self):
        pending = {"confirmed-round": 0, "pool-error": ""}
        confirmed = {"confirmed-round": 1003, "pool-error": ""}
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=_suggested_params(),
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_raw_transactions",
            return_value="TXID",
        ) as send_raw, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status",
            return_value={"last-round": 1000},
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.pending_transaction_info",
            side_effect=[pending, pending, confirmed],
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status_after_block",
            return_value={},
        ):
            confirmation = await self.runner.execute(
                "sending payment",
                lambda sp: transaction.PaymentTxn(
                    self.alice.address(), sp, self.bob.address(), 1_000_000
                ),
                self.alice,
            )

        self.assertEqual(confirmation.txid, "TXID")
        self.assertEqual(confirmation.confirmed_round, 1003)
        self.assertEqual(len(send_raw.await_args.args[0]), 1)

    async def test_group_is_submitted_once(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=_suggested_params(),
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="FIRST",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 9},
        ) as wait:
            await self.runner.execute_group(
                "sending atomic transactions",
                lambda sp: [
                    (
                        transaction.PaymentTxn(
                            self.alice.address(), sp, self.bob.address(), 1
                        ),
                        self.alice,
                    ),
                    (
                        transaction.PaymentTxn(
                            self.bob.address(), sp, self.alice.address(), 2
                        ),
                        self.bob,
                    ),
                ],
            )

        signed = send.await_args.args[0]
        self.assertEqual(len(signed), 2)
        self.assertEqual(signed[0].transaction.group, signed[1].transaction.group)
        wait.assert_awaited_once_with("FIRST")

    async def test_failure_is_logged_and_reraised(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=_suggested_params(),
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            side_effect=ConfirmationTimeout("TXID", 5),
        ):
            with self.assertLogs(level="ERROR") as logs:
                with self.assertRaises(ConfirmationTimeout):
                    await self.runner.execute(
                        "sending payment",
                        lambda sp: transaction.PaymentTxn(
                            self.alice.address(), sp, self.bob.address(), 1
                        ),
                        self.alice,
                    )

        self.assertIn("Error sending payment:", logs.output[0])

    async def test_empty_group_is_rejected(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=_suggested_params(),
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
        ) as send:
            with self.assertRaises(ValueError):
                await self.runner.execute_group("sending nothing", lambda sp: [])

        send.assert_not_awaited()
