# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Algorand Workflows - end-to-end Algorand operations on top of ``algosdk``.

Every operation in this package runs the same template: fetch suggested
parameters from an algod node, build a typed transaction, sign it, submit it,
wait for inclusion within a bounded number of rounds, and return the
confirmation. Encoding and signing are done by ``py-algorand-sdk``; the network
calls go through an asynchronous ``httpx`` client.

Core Features:
- **Accounts**: generate, back up and recover keys; multisig addresses; rekeying
- **Payments**: single, leased, atomic groups and multisig payments
- **Assets**: create, configure, opt in, transfer, freeze, claw back, destroy
- **Logic Signatures**: escrow and delegated stateless contracts
- **Applications**: deploy, call, update, delete, read state, ABI method calls

Modules:
- ``async_client``: ``AlgodClient`` / ``IndexerClient`` and their errors
- ``workflow``: ``WorkflowRunner``, ``Confirmation``, atomic group assignment
- ``account``, ``multisig``: key material and multisig descriptors
- ``account_client``, ``transaction_client``, ``asset_client``,
  ``logic_signature``, ``application_client``: the operations
- ``state``: application state decoding

Quick Start:
    Send a payment on TestNet::

        import asyncio
        from algorand_workflows.account import Account
        from algorand_workflows.async_client import AlgodClient
        from algorand_workflows.transaction_client import TransactionClient

        async def main():
            client = AlgodClient("https://testnet-api.algonode.cloud")
            sender = Account.from_mnemonic("25 words ...")
            receiver = Account.generate()

            payments = TransactionClient(client)
            confirmation = await payments.send_payment(
                sender, receiver, 100_000, note="hello"
            )
            print(f"Confirmed in round {confirmation.confirmed_round}")

            await client.close()

        asyncio.run(main())

Note:
    Nothing here checks balances, thresholds or contract rules locally; the
    network enforces them and rejections surface as ``ApiError`` or
    ``TransactionRejected``. Failed operations are logged and re-raised, never
    retried.
"""
