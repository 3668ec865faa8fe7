# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration for the Algorand Workflows examples.

All settings come from environment variables so that the same scripts run
against TestNet, a local sandbox or any other algod/indexer pair.

Environment Variables:
    ALGOD_URL: URL of the algod REST API
    ALGOD_TOKEN: API token for algod (empty for public endpoints)
    INDEXER_URL: URL of the indexer REST API
    INDEXER_TOKEN: API token for the indexer (empty for public endpoints)
    FUNDED_ACCOUNT_MNEMONIC: 25-word phrase of an account holding ALGO; without
        it the examples skip everything that needs the network

Network Configurations:
    TestNet (Default):
    - Algod: https://testnet-api.algonode.cloud
    - Indexer: https://testnet-idx.algonode.cloud
    - Faucet: https://bank.testnet.algorand.network/

    Local sandbox::

        export ALGOD_URL=http://localhost:4001
        export ALGOD_TOKEN=aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa
        export INDEXER_URL=http://localhost:8980
"""

import os

from algorand_workflows.async_client import ClientConfig

# :!:>section_1
# Algod REST API endpoint
ALGOD_URL = os.getenv("ALGOD_URL", "https://testnet-api.algonode.cloud")

# Token for algod; public endpoints accept requests without one
ALGOD_TOKEN = os.getenv("ALGOD_TOKEN", "")

# Indexer REST API endpoint for historical queries
INDEXER_URL = os.getenv("INDEXER_URL", "https://testnet-idx.algonode.cloud")

INDEXER_TOKEN = os.getenv("INDEXER_TOKEN", "")

# Account that pays for everything the examples do on the network
FUNDED_ACCOUNT_MNEMONIC = os.getenv("FUNDED_ACCOUNT_MNEMONIC")
# <:!:section_1

FAUCET_HINT = (
    "The following examples require funded accounts on TestNet and won't execute "
    "successfully without them.\nSet FUNDED_ACCOUNT_MNEMONIC to the phrase of an "
    "account funded with the Algorand TestNet faucet: "
    "https://bank.testnet.algorand.network/"
)


def algod_config() -> ClientConfig:
    return ClientConfig(api_token=ALGOD_TOKEN or None)


def indexer_config() -> ClientConfig:
    return ClientConfig(api_token=INDEXER_TOKEN or None)
