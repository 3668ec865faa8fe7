# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Stateful contracts (applications): lifecycle, calls, state reads and ABI methods.

An application is a pair of programs stored on chain under a numeric id. The
approval program decides every call; the clear program runs when an account
force-exits and cannot stop the exit. Global state belongs to the application,
local state to each account that opted in, and both are bounded by the schema
fixed at creation.

Application Lifecycle:
    1. **Create**: compile both programs, allocate the schema, get an id
    2. **Opt in**: an account allocates its local state
    3. **Call**: no-op calls carrying arguments, accounts, apps and assets
    4. **Close out / Clear**: leave politely (may be rejected) or by force
    5. **Update / Delete**: replace the programs or remove the application

Examples:
    Deploy a counter and bump it::

        apps = ApplicationClient(client)
        app_id, _ = await apps.create_application(alice, approval, clear)
        await apps.call_application(alice, app_id, ["increment"])
        print(await apps.read_global_state(app_id))

    Call an ABI method and read its return value::

        result = await apps.call_abi_method(
            alice, app_id, "add(uint64,uint64)uint64", [1, 2]
        )
        print(result.return_value)
"""

from __future__ import annotations

import base64
import logging
import unittest
import unittest.mock
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from algosdk import abi, transaction
from algosdk.atomic_transaction_composer import AtomicTransactionComposer

from .account import Account, to_address
from .async_client import AlgodClient
from .logic_signature import LogicSignatureClient
from .state import decode_state, local_state_entries
from .workflow import Confirmation, WorkflowRunner

# Prefix of the log entry that carries an ABI method's return value
ABI_RETURN_PREFIX = bytes.fromhex("151f7c75")

AppArg = Union[str, bytes, int]


@dataclass
class ABIResult:
    txid: str
    confirmed_round: int
    method: abi.Method
    raw_return_value: Optional[bytes]
    return_value: Any


class ABIReturnNotFound(Exception):
    """The confirmed call did not log a return value for a non-void method"""

    txid: str

    def __init__(self, txid: str, method: abi.Method):
        super().__init__(f"{method.get_signature()} returned nothing in {txid}")
        self.txid = txid


def encode_app_args(app_args: Optional[Sequence[AppArg]]) -> Optional[List[Any]]:
    """Encode string arguments as UTF-8; bytes and integers pass through."""
    if app_args is None:
        return None
    return [arg.encode("utf-8") if isinstance(arg, str) else arg for arg in app_args]


def decode_abi_return(
    method: abi.Method, logs: List[bytes]
) -> Tuple[Optional[bytes], Any]:
    """
    Decode a method's return value from the last log of its call.

    :return: The raw return bytes and the decoded value; both ``None`` for a
        void method or when the last log entry lacks the return prefix
    """
    if method.returns.type == abi.Returns.VOID or not logs:
        return None, None
    log = logs[-1]
    if log[: len(ABI_RETURN_PREFIX)] != ABI_RETURN_PREFIX:
        return None, None
    raw = log[len(ABI_RETURN_PREFIX) :]
    return raw, method.returns.type.decode(raw)


class ApplicationClient:
    """Deploys, calls and reads applications."""

    client: AlgodClient
    runner: WorkflowRunner
    programs: LogicSignatureClient

    def __init__(self, client: AlgodClient):
        self.client = client
        self.runner = WorkflowRunner(client)
        self.programs = LogicSignatureClient(client)

    @staticmethod
    def create_application_transaction(
        creator: str,
        sp: transaction.SuggestedParams,
        approval_program: bytes,
        clear_program: bytes,
        global_ints: int = 1,
        global_bytes: int = 1,
        local_ints: int = 1,
        local_bytes: int = 1,
    ) -> transaction.ApplicationCreateTxn:
        """
        Build an application creation.

        :param creator: Address creating the application
        :param sp: Suggested parameters from the node
        :param approval_program: Compiled approval program
        :param clear_program: Compiled clear program
        :param global_ints: Number of integer slots in global state
        :param global_bytes: Number of byte-slice slots in global state
        :param local_ints: Number of integer slots in each account's local state
        :param local_bytes: Number of byte-slice slots in each account's local state
        :return: The unsigned creation transaction
        """
        return transaction.ApplicationCreateTxn(
            sender=creator,
            sp=sp,
            on_complete=transaction.OnComplete.NoOpOC,
            approval_program=approval_program,
            clear_program=clear_program,
            global_schema=transaction.StateSchema(global_ints, global_bytes),
            local_schema=transaction.StateSchema(local_ints, local_bytes),
        )

    @staticmethod
    def call_application_transaction(
        sender: str,
        sp: transaction.SuggestedParams,
        app_id: int,
        app_args: Optional[Sequence[AppArg]] = None,
        accounts: Optional[Sequence[Union[Account, str]]] = None,
        foreign_apps: Optional[List[int]] = None,
        foreign_assets: Optional[List[int]] = None,
    ) -> transaction.ApplicationNoOpTxn:
        return transaction.ApplicationNoOpTxn(
            sender=sender,
            sp=sp,
            index=app_id,
            app_args=encode_app_args(app_args),
            accounts=[to_address(account) for account in accounts or []] or None,
            foreign_apps=foreign_apps,
            foreign_assets=foreign_assets,
        )

    async def create_application(
        self,
        creator: Account,
        approval_source: str,
        clear_source: str,
        global_ints: int = 1,
        global_bytes: int = 1,
        local_ints: int = 1,
        local_bytes: int = 1,
    ) -> Tuple[int, Confirmation]:
        """
        Compile both programs and deploy them as a new application.

        :return: The new application id and the confirmation record
        :raises ApiError: If a program does not compile or the node rejects the creation
        """
        approval_program = await self.programs.compile_program(approval_source)
        clear_program = await self.programs.compile_program(clear_source)
        confirmation = await self.runner.execute(
            "creating application",
            lambda sp: ApplicationClient.create_application_transaction(
                creator.address(),
                sp,
                approval_program,
                clear_program,
                global_ints,
                global_bytes,
                local_ints,
                local_bytes,
            ),
            creator,
        )
        app_id = confirmation.application_index
        logging.info(f"Application ID: {app_id}")
        return app_id, confirmation

    async def update_application(
        self,
        creator: Account,
        app_id: int,
        approval_source: str,
        clear_source: str,
    ) -> Confirmation:
        """Replace both programs. The approval program in place decides whether this is allowed."""
        approval_program = await self.programs.compile_program(approval_source)
        clear_program = await self.programs.compile_program(clear_source)
        return await self.runner.execute(
            "updating application",
            lambda sp: transaction.ApplicationUpdateTxn(
                sender=creator.address(),
                sp=sp,
                index=app_id,
                approval_program=approval_program,
                clear_program=clear_program,
            ),
            creator,
        )

    async def opt_in_to_application(self, account: Account, app_id: int) -> Confirmation:
        return await self.runner.execute(
            "opting in to application",
            lambda sp: transaction.ApplicationOptInTxn(
                sender=account.address(), sp=sp, index=app_id
            ),
            account,
        )

    async def call_application(
        self,
        sender: Account,
        app_id: int,
        app_args: Optional[Sequence[AppArg]] = None,
        accounts: Optional[Sequence[Union[Account, str]]] = None,
        foreign_apps: Optional[List[int]] = None,
        foreign_assets: Optional[List[int]] = None,
    ) -> Confirmation:
        """
        Make a no-op call.

        :param app_args: Arguments; strings are sent UTF-8 encoded
        :param accounts: Extra accounts the program may read
        :param foreign_apps: Other applications the program may read
        :param foreign_assets: Assets the program may read
        """
        return await self.runner.execute(
            "calling application",
            lambda sp: ApplicationClient.call_application_transaction(
                sender.address(),
                sp,
                app_id,
                app_args,
                accounts,
                foreign_apps,
                foreign_assets,
            ),
            sender,
        )

    async def close_out_from_application(
        self, account: Account, app_id: int
    ) -> Confirmation:
        """Leave an application; the approval program may refuse."""
        return await self.runner.execute(
            "closing out from application",
            lambda sp: transaction.ApplicationCloseOutTxn(
                sender=account.address(), sp=sp, index=app_id
            ),
            account,
        )

    async def clear_application_state(
        self, account: Account, app_id: int
    ) -> Confirmation:
        """Leave an application unconditionally, discarding local state."""
        return await self.runner.execute(
            "clearing application state",
            lambda sp: transaction.ApplicationClearStateTxn(
                sender=account.address(), sp=sp, index=app_id
            ),
            account,
        )

    async def delete_application(self, creator: Account, app_id: int) -> Confirmation:
        return await self.runner.execute(
            "deleting application",
            lambda sp: transaction.ApplicationDeleteTxn(
                sender=creator.address(), sp=sp, index=app_id
            ),
            creator,
        )

    async def read_global_state(self, app_id: int) -> Dict[str, Union[int, str]]:
        try:
            info = await self.client.application_info(app_id)
        except Exception as e:
            logging.error(f"Error reading global state: {e}")
            raise
        return decode_state(info["params"].get("global-state", []))

    async def read_local_state(
        self, account: Union[Account, str], app_id: int
    ) -> Dict[str, Union[int, str]]:
        """Decode one account's local state for ``app_id``; empty if not opted in."""
        try:
            info = await self.client.account_info(to_address(account))
        except Exception as e:
            logging.error(f"Error reading local state: {e}")
            raise
        return decode_state(local_state_entries(info, app_id))

    async def call_abi_method(
        self,
        sender: Account,
        app_id: int,
        method: Union[str, abi.Method],
        method_args: Optional[List[Any]] = None,
    ) -> ABIResult:
        """
        Call an ABI method and decode its return value.

        The call is encoded and signed by ``algosdk``'s atomic transaction
        composer, then submitted and confirmed like any other transaction.

        :param method: A method signature such as ``"add(uint64,uint64)uint64"``
            or an ``abi.Method``
        :param method_args: Argument values in declaration order
        :raises ABIReturnNotFound: If a non-void call's last log lacks the return value
        """
        action = "calling ABI method"
        try:
            if isinstance(method, str):
                method = abi.Method.from_signature(method)
            params = await self.client.suggested_params()
            atc = AtomicTransactionComposer()
            atc.add_method_call(
                app_id=app_id,
                method=method,
                sender=sender.address(),
                sp=params,
                signer=sender.transaction_signer(),
                method_args=method_args,
            )
            signed = atc.gather_signatures()
        except Exception as e:
            logging.error(f"Error {action}: {e}")
            raise

        confirmation = await self.runner.submit(action, signed)
        raw, value = decode_abi_return(method, confirmation.logs)
        if raw is None and method.returns.type != abi.Returns.VOID:
            error = ABIReturnNotFound(confirmation.txid, method)
            logging.error(f"Error {action}: {error}")
            raise error
        logging.info(f"ABI Method Call Result: {value}")
        return ABIResult(
            txid=confirmation.txid,
            confirmed_round=confirmation.confirmed_round,
            method=method,
            raw_return_value=raw,
            return_value=value,
        )


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.apps = ApplicationClient(self.client)
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

    def test_call_application_transaction(self):
        txn = ApplicationClient.call_application_transaction(
            self.alice.address(),
            self.params,
            42,
            ["increment", b"\x01"],
            accounts=[self.bob, self.alice.address()],
            foreign_assets=[7],
        )

        self.assertEqual(txn.index, 42)
        self.assertEqual(txn.on_complete, transaction.OnComplete.NoOpOC)
        self.assertEqual(txn.app_args, [b"increment", b"\x01"])
        self.assertEqual(txn.accounts, [self.bob.address(), self.alice.address()])
        self.assertEqual(txn.foreign_assets, [7])

    def test_create_application_transaction_schema(self):
        txn = ApplicationClient.create_application_transaction(
            self.alice.address(), self.params, b"\x06\x81\x01", b"\x06\x81\x01"
        )

        self.assertEqual(txn.global_schema.num_uints, 1)
        self.assertEqual(txn.global_schema.num_byte_slices, 1)
        self.assertEqual(txn.local_schema.num_uints, 1)
        self.assertEqual(txn.local_schema.num_byte_slices, 1)

    def test_decode_abi_return_reads_last_log(self):
        method = abi.Method.from_signature("add(uint64,uint64)uint64")
        logs = [
            ABI_RETURN_PREFIX + (1).to_bytes(8, "big"),
            b"unrelated",
            ABI_RETURN_PREFIX + (3).to_bytes(8, "big"),
        ]
        raw, value = decode_abi_return(method, logs)

        self.assertEqual(raw, (3).to_bytes(8, "big"))
        self.assertEqual(value, 3)

    def test_decode_abi_return_rejects_trailing_log(self):
        method = abi.Method.from_signature("add(uint64,uint64)uint64")
        logs = [ABI_RETURN_PREFIX + (3).to_bytes(8, "big"), b"trailing"]

        self.assertEqual(decode_abi_return(method, logs), (None, None))
        self.assertEqual(decode_abi_return(method, []), (None, None))

    def test_decode_abi_return_void(self):
        method = abi.Method.from_signature("reset()void")
        self.assertEqual(decode_abi_return(method, [ABI_RETURN_PREFIX]), (None, None))

    async def test_create_application(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.compile",
            return_value=(b"\x06\x81\x01", "HASH"),
        ) as compile_program, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 11, "application-index": 99},
        ):
            app_id, confirmation = await self.apps.create_application(
                self.alice, "#pragma version 6\nint 1", "#pragma version 6\nint 1"
            )

        self.assertEqual(app_id, 99)
        self.assertEqual(confirmation.confirmed_round, 11)
        self.assertEqual(compile_program.await_count, 2)

    async def test_read_global_state(self):
        info = {
            "id": 99,
            "params": {
                "global-state": [
                    {
                        "key": base64.b64encode(b"counter").decode(),
                        "value": {"type": 2, "uint": 4},
                    }
                ]
            },
        }
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.application_info",
            return_value=info,
        ):
            state = await self.apps.read_global_state(99)

        self.assertEqual(state, {"counter": 4})

    async def test_read_local_state_not_opted_in(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.account_info",
            return_value={"address": self.alice.address(), "apps-local-state": []},
        ):
            state = await self.apps.read_local_state(self.alice, 99)

        self.assertEqual(state, {})

    async def test_call_abi_method(self):
        method = abi.Method.from_signature("add(uint64,uint64)uint64")
        log = base64.b64encode(ABI_RETURN_PREFIX + (3).to_bytes(8, "big")).decode()
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ) as send, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 12, "logs": [log]},
        ):
            result = await self.apps.call_abi_method(
                self.alice, 99, "add(uint64,uint64)uint64", [1, 2]
            )

        signed = send.await_args.args[0][0]
        self.assertEqual(signed.transaction.app_args[0], method.get_selector())
        self.assertEqual(result.return_value, 3)
        self.assertEqual(result.confirmed_round, 12)
        self.assertEqual(result.method.get_signature(), method.get_signature())

    async def test_call_abi_method_without_return_log(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 12, "logs": []},
        ):
            with self.assertRaises(ABIReturnNotFound):
                await self.apps.call_abi_method(
                    self.alice, 99, "add(uint64,uint64)uint64", [1, 2]
                )

    async def test_call_abi_method_with_trailing_log(self):
        logs = [
            base64.b64encode(ABI_RETURN_PREFIX + (3).to_bytes(8, "big")).decode(),
            base64.b64encode(b"trailing").decode(),
        ]
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 12, "logs": logs},
        ):
            with self.assertLogs(level="ERROR") as logs_output:
                with self.assertRaises(ABIReturnNotFound):
                    await self.apps.call_abi_method(
                        self.alice, 99, "add(uint64,uint64)uint64", [1, 2]
                    )

        self.assertIn("returned nothing in TXID", logs_output.output[0])
