# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
ABI Method Call Example - call a typed contract method and read its result.

The contract in ``programs.ADDER_APPROVAL`` implements
``add(uint64,uint64)uint64`` and logs its return value with the ABI return
prefix. The call is encoded by ``algosdk``'s atomic transaction composer; the
result is decoded from the confirmed transaction's logs.

Examples:
    Run the walkthrough::

        FUNDED_ACCOUNT_MNEMONIC="25 words ..." python -m examples.abi_method_call
"""

import asyncio
import logging

from algorand_workflows.account import Account
from algorand_workflows.application_client import ApplicationClient
from algorand_workflows.async_client import AlgodClient

from . import programs
from .common import ALGOD_URL, FAUCET_HINT, FUNDED_ACCOUNT_MNEMONIC, algod_config

METHOD = "add(uint64,uint64)uint64"


async def main():
    print("===== ALGORAND ABI METHOD CALL EXAMPLE =====")

    if not FUNDED_ACCOUNT_MNEMONIC:
        print(f"\n{FAUCET_HINT}")
        return

    sender = Account.from_mnemonic(FUNDED_ACCOUNT_MNEMONIC)
    algod_client = AlgodClient(ALGOD_URL, algod_config())
    apps = ApplicationClient(algod_client)

    try:
        print("\n=== Deploying Contract ===")
        app_id, _ = await apps.create_application(
            sender, programs.ADDER_APPROVAL, programs.CLEAR, 0, 0, 0, 0
        )

        print("\n=== Calling Method ===")
        result = await apps.call_abi_method(sender, app_id, METHOD, [40, 2])
        print(f"{result.method.get_signature()} returned {result.return_value}")
        print(f"Confirmed in round {result.confirmed_round}")

        await apps.delete_application(sender, app_id)
    finally:
        await algod_client.close()

    print("\n===== ABI EXAMPLE COMPLETE =====")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Error running ABI example: {e}")
