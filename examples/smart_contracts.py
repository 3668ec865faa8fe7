# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Smart Contracts Example - logic signatures and a counter application.

Workflow:
    1. **LogicSig**: compile an always-approve program into an escrow, fund it,
       and pay back out of it; then delegate the same program from an account
    2. **Application**: create the counter, opt a user in, increment it twice,
       decrement it once and read global and local state
    3. **Lifecycle**: update the approval program to one with a ``reset`` call,
       reset, close out, clear state and delete the application

Examples:
    Run the full walkthrough::

        FUNDED_ACCOUNT_MNEMONIC="25 words ..." python -m examples.smart_contracts
"""

import asyncio
import logging

from algorand_workflows.account import Account
from algorand_workflows.application_client import ApplicationClient
from algorand_workflows.async_client import AlgodClient
from algorand_workflows.logic_signature import LogicSignatureClient
from algorand_workflows.transaction_client import TransactionClient

from . import programs
from .common import ALGOD_URL, FAUCET_HINT, FUNDED_ACCOUNT_MNEMONIC, algod_config


async def main():
    print("===== ALGORAND SMART CONTRACT EXAMPLES =====")

    user = Account.generate()
    print(f"User Account: {user.address()}")

    if not FUNDED_ACCOUNT_MNEMONIC:
        print(f"\n{FAUCET_HINT}")
        return

    creator = Account.from_mnemonic(FUNDED_ACCOUNT_MNEMONIC)
    print(f"Creator Account: {creator.address()}")

    algod_client = AlgodClient(ALGOD_URL, algod_config())
    payments = TransactionClient(algod_client)
    lsigs = LogicSignatureClient(algod_client)
    apps = ApplicationClient(algod_client)

    try:
        await payments.send_payment(creator, user, 1_000_000, "Contract user setup")

        print("\n=== Stateless Smart Contract (LogicSig) ===")
        escrow = await lsigs.create_logic_signature(programs.ALWAYS_APPROVE)
        await payments.send_payment(creator, escrow.address(), 300_000)
        await lsigs.send_with_logic_signature(escrow, creator, 100_000)

        print("\n=== Delegated LogicSig ===")
        delegated = await lsigs.create_delegated_logic_signature(
            programs.ALWAYS_APPROVE, user
        )
        await lsigs.send_with_logic_signature(delegated, creator, 1000)

        print("\n=== Stateful Smart Contract (Application) ===")
        app_id, _ = await apps.create_application(
            creator, programs.COUNTER_APPROVAL, programs.CLEAR
        )

        print("\n=== Application Opt-in ===")
        await apps.opt_in_to_application(user, app_id)

        print("\n=== Application Calls ===")
        await apps.call_application(user, app_id, ["increment"])
        await apps.call_application(user, app_id, ["increment"])
        await apps.call_application(user, app_id, ["decrement"])

        print("\n=== Reading State ===")
        print(f"Global State: {await apps.read_global_state(app_id)}")
        print(f"Local State: {await apps.read_local_state(user, app_id)}")

        print("\n=== Application Update ===")
        await apps.update_application(
            creator, app_id, programs.COUNTER_APPROVAL_WITH_RESET, programs.CLEAR
        )
        await apps.call_application(creator, app_id, ["reset"])
        print(f"Global State: {await apps.read_global_state(app_id)}")

        print("\n=== Application Close Out ===")
        await apps.close_out_from_application(user, app_id)

        print("\n=== Application Clear State ===")
        await apps.opt_in_to_application(user, app_id)
        await apps.clear_application_state(user, app_id)

        print("\n=== Application Deletion ===")
        await apps.delete_application(creator, app_id)
    finally:
        await algod_client.close()

    print("\n===== SMART CONTRACT EXAMPLES COMPLETE =====")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Error running smart contract examples: {e}")
