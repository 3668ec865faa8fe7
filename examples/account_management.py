# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Account Management Example - keys, multisig addresses and rekeying.

Workflow:
    1. **Offline**: generate three accounts, recover the first from its backup
       phrase, and derive a 2-of-3 multisig address from all three
    2. **Funding**: the funded account pays the first generated account
    3. **Inspection**: read the first account's balance and status
    4. **Rekeying**: hand the first account's authority to the second, then pay
       from the first account's address with the second account's key
    5. **History**: list the funded account's recent transactions on the indexer

Examples:
    Offline part only::

        python -m examples.account_management

    Everything::

        FUNDED_ACCOUNT_MNEMONIC="25 words ..." python -m examples.account_management
"""

import asyncio
import logging

from algorand_workflows.account import Account
from algorand_workflows.account_client import AccountClient
from algorand_workflows.async_client import AlgodClient, IndexerClient
from algorand_workflows.transaction_client import TransactionClient

from .common import (
    ALGOD_URL,
    FAUCET_HINT,
    FUNDED_ACCOUNT_MNEMONIC,
    INDEXER_URL,
    algod_config,
    indexer_config,
)


async def main():
    print("===== ALGORAND ACCOUNT MANAGEMENT EXAMPLES =====")

    print("\n=== Generating Accounts ===")
    account1 = AccountClient.generate_account()
    account2 = AccountClient.generate_account()
    account3 = AccountClient.generate_account()
    print(f"Account 1: {account1.address()}")
    print(f"Account 2: {account2.address()}")
    print(f"Account 3: {account3.address()}")

    print("\n=== Recovering Account ===")
    recovered = AccountClient.recover_account(account1.mnemonic())
    print(f"Account recovery successful: {recovered.address() == account1.address()}")

    print("\n=== Creating Multisig Account ===")
    descriptor = AccountClient.create_multisig_account(
        [account1, account2, account3], 2
    )
    print(f"Multisig Address: {descriptor.address()}")

    if not FUNDED_ACCOUNT_MNEMONIC:
        print(f"\n{FAUCET_HINT}")
        return

    funder = Account.from_mnemonic(FUNDED_ACCOUNT_MNEMONIC)
    algod_client = AlgodClient(ALGOD_URL, algod_config())
    indexer_client = IndexerClient(INDEXER_URL, indexer_config())
    accounts = AccountClient(algod_client)
    payments = TransactionClient(algod_client)

    try:
        print("\n=== Funding Account 1 ===")
        await payments.send_payment(funder, account1, 1_000_000, "Account setup")

        print("\n=== Checking Account Info ===")
        info = await accounts.check_account_info(account1.address())
        print(f"Balance: {info['amount']} microAlgos, status: {info['status']}")

        print("\n=== Rekeying Account ===")
        await accounts.rekey_account(account1, account2)

        print("\n=== Sending with Rekeyed Account ===")
        confirmation = await accounts.send_with_rekeyed_account(
            account1, account2, account3.address(), 100_000
        )
        print(f"Confirmed in round {confirmation.confirmed_round}")

        print("\n=== Funder History ===")
        page = await indexer_client.account_transactions(funder.address(), limit=5)
        for txn in page.get("transactions", []):
            print(f"{txn['id']} {txn['tx-type']} round {txn.get('confirmed-round')}")
    finally:
        await algod_client.close()
        await indexer_client.close()

    print("\n===== ACCOUNT EXAMPLES COMPLETE =====")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Error running account examples: {e}")
