# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Algorand Standard Asset (ASA) lifecycle client.

An asset is created by one account, which becomes the first holder of its whole
supply. Four role addresses are fixed at creation and may later be changed by
the manager:

    - **manager**: may reconfigure the roles or destroy the asset
    - **reserve**: informational holder of un-minted units
    - **freeze**: may freeze and unfreeze a holder's balance
    - **clawback**: may move units out of any holder's balance

Accounts must opt in (a zero-amount transfer to themselves) before they can
receive an asset. Destroying an asset only succeeds once the creator holds the
entire supply again.

Examples:
    Create an asset and hand some to a second account::

        assets = AssetClient(client)
        asset_id, _ = await assets.create_asset(
            alice, "Example Token", "EXT", total=1_000_000, decimals=2
        )
        await assets.opt_in_to_asset(bob, asset_id)
        await assets.transfer_asset(alice, bob, asset_id, 500)
"""

from __future__ import annotations

import logging
import unittest
import unittest.mock
from typing import Any, Dict, Optional, Tuple, Union

from algosdk import transaction

from .account import Account, to_address
from .async_client import AlgodClient
from .workflow import Confirmation, WorkflowRunner


def _optional_address(account: Optional[Union[Account, str]]) -> Optional[str]:
    return None if account is None else to_address(account)


class AssetClient:
    """Creates, configures, moves, freezes, claws back and destroys assets."""

    client: AlgodClient
    runner: WorkflowRunner

    def __init__(self, client: AlgodClient):
        self.client = client
        self.runner = WorkflowRunner(client)

    @staticmethod
    def create_asset_transaction(
        creator: str,
        sp: transaction.SuggestedParams,
        asset_name: str,
        unit_name: str,
        total: int,
        decimals: int,
        url: str = "",
        metadata_hash: Optional[bytes] = None,
        manager: Optional[str] = None,
        reserve: Optional[str] = None,
        freeze: Optional[str] = None,
        clawback: Optional[str] = None,
        default_frozen: bool = False,
    ) -> transaction.AssetCreateTxn:
        """
        Build an asset creation.

        Any role left as ``None`` is assigned to the creator.

        :param creator: Address creating the asset
        :param sp: Suggested parameters from the node
        :param asset_name: Display name of the asset
        :param unit_name: Ticker of one unit
        :param total: Total number of base units ever in existence
        :param decimals: Number of digits after the decimal point in display amounts
        :param url: Optional URL describing the asset
        :param metadata_hash: Optional 32-byte commitment to off-chain metadata
        :param default_frozen: Whether new holdings start frozen
        :return: The unsigned creation transaction
        """
        return transaction.AssetCreateTxn(
            sender=creator,
            sp=sp,
            total=total,
            default_frozen=default_frozen,
            unit_name=unit_name,
            asset_name=asset_name,
            manager=manager or creator,
            reserve=reserve or creator,
            freeze=freeze or creator,
            clawback=clawback or creator,
            url=url,
            metadata_hash=metadata_hash,
            decimals=decimals,
        )

    @staticmethod
    def configure_asset_transaction(
        manager: str,
        sp: transaction.SuggestedParams,
        asset_id: int,
        new_manager: Optional[str] = None,
        new_reserve: Optional[str] = None,
        new_freeze: Optional[str] = None,
        new_clawback: Optional[str] = None,
    ) -> transaction.AssetConfigTxn:
        # Omitted roles are cleared permanently.
        return transaction.AssetConfigTxn(
            sender=manager,
            sp=sp,
            index=asset_id,
            manager=new_manager,
            reserve=new_reserve,
            freeze=new_freeze,
            clawback=new_clawback,
            strict_empty_address_check=False,
        )

    @staticmethod
    def opt_in_transaction(
        account: str, sp: transaction.SuggestedParams, asset_id: int
    ) -> transaction.AssetTransferTxn:
        """A zero-amount transfer of ``asset_id`` from ``account`` to itself."""
        return transaction.AssetTransferTxn(
            sender=account, sp=sp, receiver=account, amt=0, index=asset_id
        )

    @staticmethod
    def transfer_asset_transaction(
        sender: str,
        sp: transaction.SuggestedParams,
        receiver: str,
        asset_id: int,
        amount: int,
    ) -> transaction.AssetTransferTxn:
        return transaction.AssetTransferTxn(
            sender=sender, sp=sp, receiver=receiver, amt=amount, index=asset_id
        )

    @staticmethod
    def freeze_asset_transaction(
        freeze_manager: str,
        sp: transaction.SuggestedParams,
        target: str,
        asset_id: int,
        frozen: bool,
    ) -> transaction.AssetFreezeTxn:
        return transaction.AssetFreezeTxn(
            sender=freeze_manager,
            sp=sp,
            index=asset_id,
            target=target,
            new_freeze_state=frozen,
        )

    @staticmethod
    def revoke_asset_transaction(
        clawback_manager: str,
        sp: transaction.SuggestedParams,
        revoke_from: str,
        revoke_to: str,
        asset_id: int,
        amount: int,
    ) -> transaction.AssetTransferTxn:
        """A clawback: sent and signed by the clawback account, debiting ``revoke_from``."""
        return transaction.AssetTransferTxn(
            sender=clawback_manager,
            sp=sp,
            receiver=revoke_to,
            amt=amount,
            index=asset_id,
            revocation_target=revoke_from,
        )

    @staticmethod
    def destroy_asset_transaction(
        manager: str, sp: transaction.SuggestedParams, asset_id: int
    ) -> transaction.AssetDestroyTxn:
        return transaction.AssetDestroyTxn(sender=manager, sp=sp, index=asset_id)

    async def create_asset(
        self,
        creator: Account,
        asset_name: str,
        unit_name: str,
        total: int,
        decimals: int,
        url: str = "",
        metadata_hash: Optional[bytes] = None,
        manager: Optional[Union[Account, str]] = None,
        reserve: Optional[Union[Account, str]] = None,
        freeze: Optional[Union[Account, str]] = None,
        clawback: Optional[Union[Account, str]] = None,
        default_frozen: bool = False,
    ) -> Tuple[int, Confirmation]:
        """
        Create an asset and return the id the network assigned to it.

        :return: The new asset id and the confirmation record
        :raises ApiError: If the node rejects the creation
        """
        confirmation = await self.runner.execute(
            "creating asset",
            lambda sp: AssetClient.create_asset_transaction(
                creator.address(),
                sp,
                asset_name,
                unit_name,
                total,
                decimals,
                url,
                metadata_hash,
                _optional_address(manager),
                _optional_address(reserve),
                _optional_address(freeze),
                _optional_address(clawback),
                default_frozen,
            ),
            creator,
        )
        asset_id = confirmation.asset_index
        logging.info(f"Asset ID: {asset_id}")
        return asset_id, confirmation

    async def configure_asset(
        self,
        manager: Account,
        asset_id: int,
        new_manager: Optional[Union[Account, str]] = None,
        new_reserve: Optional[Union[Account, str]] = None,
        new_freeze: Optional[Union[Account, str]] = None,
        new_clawback: Optional[Union[Account, str]] = None,
    ) -> Confirmation:
        """
        Replace the role addresses of an asset.

        Every role must be passed again: a role left as ``None`` is cleared and
        can never be set afterwards.
        """
        return await self.runner.execute(
            "configuring asset",
            lambda sp: AssetClient.configure_asset_transaction(
                manager.address(),
                sp,
                asset_id,
                _optional_address(new_manager),
                _optional_address(new_reserve),
                _optional_address(new_freeze),
                _optional_address(new_clawback),
            ),
            manager,
        )

    async def opt_in_to_asset(self, account: Account, asset_id: int) -> Confirmation:
        return await self.runner.execute(
            "opting in to asset",
            lambda sp: AssetClient.opt_in_transaction(account.address(), sp, asset_id),
            account,
        )

    async def transfer_asset(
        self,
        sender: Account,
        receiver: Union[Account, str],
        asset_id: int,
        amount: int,
    ) -> Confirmation:
        """
        Move ``amount`` base units of an asset.

        :raises ApiError: If the receiver has not opted in, or either side is frozen
        """
        return await self.runner.execute(
            "transferring asset",
            lambda sp: AssetClient.transfer_asset_transaction(
                sender.address(), sp, to_address(receiver), asset_id, amount
            ),
            sender,
        )

    async def freeze_asset(
        self,
        freeze_manager: Account,
        target: Union[Account, str],
        asset_id: int,
        frozen: bool,
    ) -> Confirmation:
        return await self.runner.execute(
            "freezing asset",
            lambda sp: AssetClient.freeze_asset_transaction(
                freeze_manager.address(), sp, to_address(target), asset_id, frozen
            ),
            freeze_manager,
        )

    async def revoke_asset(
        self,
        clawback_manager: Account,
        revoke_from: Union[Account, str],
        revoke_to: Union[Account, str],
        asset_id: int,
        amount: int,
    ) -> Confirmation:
        return await self.runner.execute(
            "revoking asset",
            lambda sp: AssetClient.revoke_asset_transaction(
                clawback_manager.address(),
                sp,
                to_address(revoke_from),
                to_address(revoke_to),
                asset_id,
                amount,
            ),
            clawback_manager,
        )

    async def destroy_asset(self, manager: Account, asset_id: int) -> Confirmation:
        return await self.runner.execute(
            "destroying asset",
            lambda sp: AssetClient.destroy_asset_transaction(
                manager.address(), sp, asset_id
            ),
            manager,
        )

    async def asset_info(self, asset_id: int) -> Dict[str, Any]:
        """Return the asset's current parameters as reported by the node."""
        try:
            info = await self.client.asset_info(asset_id)
        except Exception as e:
            logging.error(f"Error reading asset info: {e}")
            raise
        return info["params"]


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")
        self.assets = AssetClient(self.client)
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

    def test_opt_in_transaction(self):
        txn = AssetClient.opt_in_transaction(self.bob.address(), self.params, 1234)

        self.assertEqual(txn.sender, self.bob.address())
        self.assertEqual(txn.receiver, self.bob.address())
        self.assertEqual(txn.amount, 0)
        self.assertEqual(txn.index, 1234)
        self.assertIsNone(txn.revocation_target)

    def test_create_asset_transaction_defaults_roles_to_creator(self):
        txn = AssetClient.create_asset_transaction(
            self.alice.address(), self.params, "Example Token", "EXT", 1_000_000, 2
        )

        self.assertEqual(txn.total, 1_000_000)
        self.assertEqual(txn.decimals, 2)
        self.assertEqual(txn.manager, self.alice.address())
        self.assertEqual(txn.clawback, self.alice.address())
        self.assertFalse(txn.default_frozen)

    def test_revoke_asset_transaction(self):
        txn = AssetClient.revoke_asset_transaction(
            self.alice.address(),
            self.params,
            self.bob.address(),
            self.alice.address(),
            1234,
            10,
        )

        self.assertEqual(txn.sender, self.alice.address())
        self.assertEqual(txn.revocation_target, self.bob.address())
        self.assertEqual(txn.receiver, self.alice.address())

    def test_configure_asset_transaction_allows_cleared_roles(self):
        txn = AssetClient.configure_asset_transaction(
            self.alice.address(), self.params, 1234, new_manager=self.bob.address()
        )

        self.assertEqual(txn.manager, self.bob.address())
        self.assertIsNone(txn.clawback)

    async def test_create_asset(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.suggested_params",
            return_value=self.params,
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.send_transactions",
            return_value="TXID",
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.wait_for_confirmation",
            return_value={"confirmed-round": 7, "asset-index": 4321},
        ):
            asset_id, confirmation = await self.assets.create_asset(
                self.alice, "Example Token", "EXT", 1_000_000, 2
            )

        self.assertEqual(asset_id, 4321)
        self.assertEqual(confirmation.confirmed_round, 7)

    async def test_asset_info(self):
        info = {"index": 4321, "params": {"creator": self.alice.address(), "total": 10}}
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.asset_info",
            return_value=info,
        ):
            params = await self.assets.asset_info(4321)

        self.assertEqual(params["total"], 10)
