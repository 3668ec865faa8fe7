# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Transaction Operations Example - payments, groups, multisig and assets.

Workflow:
    1. **Setup**: generate two accounts and fund them from the funded account
    2. **Payments**: a plain payment, a leased payment and an atomic group
    3. **Multisig**: fund a 2-of-3 multisig address and pay out of it
    4. **Asset Lifecycle**: create, reconfigure, opt in, transfer, freeze,
       unfreeze, claw back and destroy an asset

Asset Roles:
    The funded account creates the asset and holds every role, so it can
    freeze, claw back and finally destroy it once the supply is back home.

Examples:
    Run the full walkthrough::

        FUNDED_ACCOUNT_MNEMONIC="25 words ..." python -m examples.transaction_operations
"""

import asyncio
import logging
import os

from algorand_workflows.account import Account
from algorand_workflows.async_client import AlgodClient
from algorand_workflows.asset_client import AssetClient
from algorand_workflows.multisig import MultisigDescriptor
from algorand_workflows.transaction_client import TransactionClient

from .common import ALGOD_URL, FAUCET_HINT, FUNDED_ACCOUNT_MNEMONIC, algod_config


async def main():
    print("===== ALGORAND TRANSACTION EXAMPLES =====")

    account1 = Account.generate()
    account2 = Account.generate()
    print(f"Account 1: {account1.address()}")
    print(f"Account 2: {account2.address()}")

    if not FUNDED_ACCOUNT_MNEMONIC:
        print(f"\n{FAUCET_HINT}")
        return

    funder = Account.from_mnemonic(FUNDED_ACCOUNT_MNEMONIC)
    print(f"Funder: {funder.address()}")

    algod_client = AlgodClient(ALGOD_URL, algod_config())
    payments = TransactionClient(algod_client)
    assets = AssetClient(algod_client)

    try:
        print("\n=== Payment Transaction ===")
        await payments.send_payment(funder, account1, 1_000_000, "Example payment")

        print("\n=== Transaction with Lease ===")
        await payments.send_transaction_with_lease(
            funder, account2, 1_000_000, os.urandom(32)
        )

        print("\n=== Atomic Transactions ===")
        confirmation = await payments.send_atomic_transactions(
            funder, [account1, account2], 100_000
        )
        print(f"Group confirmed in round {confirmation.confirmed_round}")

        print("\n=== Multisig Transaction ===")
        descriptor = MultisigDescriptor.create([funder, account1, account2], 2)
        await payments.send_payment(funder, descriptor.address(), 300_000)
        await payments.send_multisig_transaction(
            descriptor, [account1, account2], funder, 100_000
        )

        print("\n=== Asset Creation ===")
        asset_id, _ = await assets.create_asset(
            funder, "Example Token", "EX", 1_000_000, 0
        )

        print("\n=== Asset Configuration ===")
        await assets.configure_asset(funder, asset_id, funder, funder, funder, funder)

        print("\n=== Asset Opt-in ===")
        await assets.opt_in_to_asset(account1, asset_id)

        print("\n=== Asset Transfer ===")
        await assets.transfer_asset(funder, account1, asset_id, 1000)

        print("\n=== Asset Freeze ===")
        await assets.freeze_asset(funder, account1, asset_id, True)

        print("\n=== Asset Unfreeze ===")
        await assets.freeze_asset(funder, account1, asset_id, False)

        print("\n=== Asset Revoke ===")
        await assets.revoke_asset(funder, account1, funder, asset_id, 1000)

        params = await assets.asset_info(asset_id)
        print(f"Asset {params['name']} ({params['unit-name']}): {params['total']} units")

        print("\n=== Asset Destruction ===")
        await assets.destroy_asset(funder, asset_id)
    finally:
        await algod_client.close()

    print("\n===== TRANSACTION EXAMPLES COMPLETE =====")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Error running transaction examples: {e}")
