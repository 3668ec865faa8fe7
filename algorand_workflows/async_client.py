# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous clients for the Algorand node (algod) and indexer REST APIs.

The transaction-construction and signing work is done by ``algosdk``; this module
only moves bytes and JSON between the caller and the network. Each client owns one
``httpx.AsyncClient`` and every call suspends the caller until the node answers.

Key Features:
- **AlgodClient**: network parameters, raw transaction submission, pending
  transaction lookup, bounded confirmation waiting, TEAL compilation, and account,
  application and asset reads
- **IndexerClient**: historical lookups (accounts, transactions, assets) against
  the indexer service
- **Error Handling**: ``ApiError`` for any HTTP status >= 400, plus specific
  not-found, rejection and timeout errors

Examples:
    Fetch network parameters and check an account::

        from algorand_workflows.async_client import AlgodClient

        client = AlgodClient("https://testnet-api.algonode.cloud")
        params = await client.suggested_params()
        info = await client.account_info("ADDRESS...")
        print(f"Balance: {info['amount']} microAlgos at round {params.first}")
        await client.close()

    Submit a signed transaction and wait for it::

        txid = await client.send_transaction(signed_txn)
        confirmed = await client.wait_for_confirmation(txid)
        print(f"Confirmed in round {confirmed['confirmed-round']}")

Error Handling:
    - ApiError: the node returned a status code >= 400
    - AccountNotFound / ApplicationNotFound / AssetNotFound: a 404 on a lookup
    - TransactionRejected: the transaction pool reported an error
    - ConfirmationTimeout: the round budget ran out before inclusion

    Transport failures surface as ``httpx.HTTPError`` and malformed requests as
    ``algosdk.error`` exceptions; neither is wrapped.

Note:
    All client operations are async and must be awaited. Call ``close()`` when
    done so the underlying connection pool is released.
"""

from __future__ import annotations

import base64
import unittest
import unittest.mock
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
from algosdk import account, encoding, transaction

from .metadata import Metadata


# Rounds ``wait_for_confirmation`` polls before giving up
WAIT_ROUNDS = 5


@dataclass
class ClientConfig:
    """Configuration shared by the algod and indexer clients.

    Attributes:
        http2: Enable HTTP/2 on the underlying client (default: True).
        api_token: Token sent in the service's token header. Public endpoints
            such as AlgoNode need none, so the default is ``None``.
    """

    http2: bool = True
    api_token: Optional[str] = None


class _BaseClient:
    base_url: str
    client: httpx.AsyncClient
    client_config: ClientConfig

    token_header: str = ""

    def __init__(self, base_url: str, client_config: ClientConfig = ClientConfig()):
        self.base_url = base_url.rstrip("/")
        # Default limits
        limits = httpx.Limits()
        # No pool timeout: a caller waits on the pool as long as requests progress.
        timeout = httpx.Timeout(60.0, pool=None)
        headers = {Metadata.CLIENT_HEADER: Metadata.get_client_header_val()}
        self.client = httpx.AsyncClient(
            http2=client_config.http2,
            limits=limits,
            timeout=timeout,
            headers=headers,
        )
        self.client_config = client_config
        if client_config.api_token:
            self.client.headers[self.token_header] = client_config.api_token

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def health(self) -> bool:
        """Return True if the service answers its health endpoint."""
        response = await self._get(endpoint="health")
        return response.status_code == 200

    async def _post(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        return await self.client.post(
            url=f"{self.base_url}/{endpoint}",
            params=params,
            headers=headers,
            content=content,
        )

    async def _get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        return await self.client.get(
            url=f"{self.base_url}/{endpoint}",
            params=params,
        )


class AlgodClient(_BaseClient):
    """Async client for the algod v2 REST API.

    The client covers the calls the workflows need: the seven-step
    request/sign/submit/confirm template only talks to ``suggested_params``,
    ``send_transactions`` and ``wait_for_confirmation``; the rest are reads used
    by the account, asset and application helpers.

    Attributes:
        client: Underlying HTTP client with connection pooling
        client_config: HTTP/2 and token settings
        base_url: Base URL of the algod service, e.g.
            ``https://testnet-api.algonode.cloud``

    Examples:
        Default TestNet setup::

            client = AlgodClient("https://testnet-api.algonode.cloud")

        Local sandbox with a token::

            config = ClientConfig(api_token="a" * 64, http2=False)
            client = AlgodClient("http://localhost:4001", config)
    """

    token_header = "X-Algo-API-Token"

    #
    # Ledger accessors
    #

    async def status(self) -> Dict[str, Any]:
        """Return the node status, including ``last-round``."""
        response = await self._get(endpoint="v2/status")
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()

    async def status_after_block(self, round_num: int) -> Dict[str, Any]:
        """Block until the node has seen the round after ``round_num``."""
        response = await self._get(endpoint=f"v2/status/wait-for-block-after/{round_num}")
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()

    async def suggested_params(self) -> transaction.SuggestedParams:
        """
        Fetch the current network parameters used to build a transaction.

        The validity window starts at the node's last round and spans 1000 rounds,
        the same window ``algosdk`` uses.

        :return: Suggested parameters ready to hand to a transaction constructor
        :raises ApiError: If the request fails
        """
        response = await self._get(endpoint="v2/transactions/params")
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        params = response.json()
        return transaction.SuggestedParams(
            fee=params["fee"],
            first=params["last-round"],
            last=params["last-round"] + 1000,
            gh=params["genesis-hash"],
            gen=params["genesis-id"],
            flat_fee=False,
            consensus_version=params["consensus-version"],
            min_fee=params["min-fee"],
        )

    #
    # Transactions
    #

    async def send_raw_transactions(self, raw_transactions: List[bytes]) -> str:
        """
        Submit msgpack-encoded signed transactions in a single request.

        A group must be submitted in one request for the node to evaluate it
        atomically.

        :param raw_transactions: Encoded signed transactions, in group order
        :return: The id of the first transaction
        :raises ApiError: If the node rejects the submission
        """
        headers = {"Content-Type": "application/x-binary"}
        response = await self._post(
            endpoint="v2/transactions",
            headers=headers,
            content=b"".join(raw_transactions),
        )
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()["txId"]

    async def send_transactions(self, signed_transactions: List[Any]) -> str:
        """Encode and submit signed transactions; returns the first txid."""
        raw_transactions = [
            base64.b64decode(encoding.msgpack_encode(signed))
            for signed in signed_transactions
        ]
        return await self.send_raw_transactions(raw_transactions)

    async def send_transaction(self, signed_transaction: Any) -> str:
        return await self.send_transactions([signed_transaction])

    async def pending_transaction_info(self, txid: str) -> Dict[str, Any]:
        """
        Look up a transaction in the pool or, once committed, in the ledger.

        :param txid: The transaction id
        :return: Pending transaction record (``confirmed-round``, ``pool-error``, ...)
        :raises ApiError: If the node does not know the transaction
        """
        response = await self._get(endpoint=f"v2/transactions/pending/{txid}")
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {txid}", response.status_code)
        return response.json()

    async def wait_for_confirmation(
        self, txid: str, wait_rounds: int = WAIT_ROUNDS
    ) -> Dict[str, Any]:
        """
        Wait until a transaction is committed, for at most ``wait_rounds`` rounds.

        Polling starts at the round after the node's current round. Between polls
        the client waits for the next block rather than sleeping.

        :param txid: The transaction id returned at submission
        :param wait_rounds: Round budget (default: 5)
        :return: The pending transaction record with a positive ``confirmed-round``
        :raises TransactionRejected: If the pool reports an error for the transaction
        :raises ConfirmationTimeout: If the budget runs out first
        """
        status = await self.status()
        start_round = status["last-round"] + 1
        current_round = start_round

        while current_round < start_round + wait_rounds:
            info = await self.pending_transaction_info(txid)
            if info.get("confirmed-round", 0) > 0:
                return info
            if info.get("pool-error"):
                raise TransactionRejected(txid, info["pool-error"])
            await self.status_after_block(current_round)
            current_round += 1

        raise ConfirmationTimeout(txid, wait_rounds)

    #
    # Programs
    #

    async def compile(self, source: str) -> Tuple[bytes, str]:
        """
        Compile TEAL source on the node.

        :param source: TEAL program text
        :return: The program bytes and the program hash (its escrow address)
        :raises ApiError: If the source does not compile
        """
        headers = {"Content-Type": "application/x-binary"}
        response = await self._post(
            endpoint="v2/teal/compile",
            headers=headers,
            content=source.encode("utf-8"),
        )
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        data = response.json()
        return base64.b64decode(data["result"]), data["hash"]

    #
    # Account, application and asset accessors
    #

    async def account_info(self, address: str) -> Dict[str, Any]:
        """
        Fetch balance, status, held assets, created applications and local state.

        :param address: The account address
        :raises AccountNotFound: If the address is malformed or unknown to the node
        :raises ApiError: For any other failure
        """
        response = await self._get(endpoint=f"v2/accounts/{address}")
        if response.status_code == 404:
            raise AccountNotFound(f"{response.text} - {address}", address)
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {address}", response.status_code)
        return response.json()

    async def application_info(self, app_id: int) -> Dict[str, Any]:
        """
        Fetch an application's parameters, including its ``global-state``.

        :raises ApplicationNotFound: If no application has this id
        """
        response = await self._get(endpoint=f"v2/applications/{app_id}")
        if response.status_code == 404:
            raise ApplicationNotFound(response.text, app_id)
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()

    async def asset_info(self, asset_id: int) -> Dict[str, Any]:
        """
        Fetch an asset's parameters (supply, decimals, role addresses).

        :raises AssetNotFound: If no asset has this id
        """
        response = await self._get(endpoint=f"v2/assets/{asset_id}")
        if response.status_code == 404:
            raise AssetNotFound(response.text, asset_id)
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()


class IndexerClient(_BaseClient):
    """Async client for the indexer v2 REST API.

    The indexer serves historical data that algod does not keep: past
    transactions of an account, a transaction by id after it left the pool, and
    asset records including destroyed ones.

    Examples:
        Recent payments of an account::

            indexer = IndexerClient("https://testnet-idx.algonode.cloud")
            page = await indexer.account_transactions(address, limit=10)
            for txn in page["transactions"]:
                print(txn["id"], txn["tx-type"], txn["confirmed-round"])
            await indexer.close()
    """

    token_header = "X-Indexer-API-Token"

    async def account(self, address: str) -> Dict[str, Any]:
        response = await self._get(endpoint=f"v2/accounts/{address}")
        if response.status_code == 404:
            raise AccountNotFound(f"{response.text} - {address}", address)
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {address}", response.status_code)
        return response.json()

    async def account_transactions(
        self,
        address: str,
        limit: Optional[int] = None,
        next_page: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        List transactions involving an account, newest first.

        :param address: The account address
        :param limit: Maximum number of results in this page
        :param next_page: The ``next-token`` of a previous page
        :return: Page with ``transactions`` and, if more exist, ``next-token``
        """
        response = await self._get(
            endpoint=f"v2/accounts/{address}/transactions",
            params={"limit": limit, "next": next_page},
        )
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {address}", response.status_code)
        return response.json()

    async def transaction(self, txid: str) -> Dict[str, Any]:
        response = await self._get(endpoint=f"v2/transactions/{txid}")
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {txid}", response.status_code)
        return response.json()

    async def asset(self, asset_id: int) -> Dict[str, Any]:
        response = await self._get(endpoint=f"v2/assets/{asset_id}")
        if response.status_code == 404:
            raise AssetNotFound(response.text, asset_id)
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()


class ApiError(Exception):
    """The API returned a non-success status code, e.g., >= 400"""

    status_code: int

    def __init__(self, message: str, status_code: int):
        # Call the base class constructor with the parameters it needs
        super().__init__(message)
        self.status_code = status_code


class AccountNotFound(Exception):
    """The account was not found"""

    account: str

    def __init__(self, message: str, account: str):
        super().__init__(message)
        self.account = account


class ApplicationNotFound(Exception):
    """The application was not found"""

    app_id: int

    def __init__(self, message: str, app_id: int):
        super().__init__(message)
        self.app_id = app_id


class AssetNotFound(Exception):
    """The asset was not found"""

    asset_id: int

    def __init__(self, message: str, asset_id: int):
        super().__init__(message)
        self.asset_id = asset_id


class TransactionRejected(Exception):
    """The transaction pool rejected the transaction"""

    txid: str
    pool_error: str

    def __init__(self, txid: str, pool_error: str):
        super().__init__(f"transaction {txid} rejected: {pool_error}")
        self.txid = txid
        self.pool_error = pool_error


class ConfirmationTimeout(Exception):
    """The transaction was not confirmed within the round budget"""

    txid: str
    wait_rounds: int

    def __init__(self, txid: str, wait_rounds: int):
        super().__init__(f"transaction {txid} not confirmed after {wait_rounds} rounds")
        self.txid = txid
        self.wait_rounds = wait_rounds


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = AlgodClient("https://testnet-api.algonode.cloud")

    async def asyncTearDown(self):
        await self.client.close()

    async def test_suggested_params(self):
        body = {
            "consensus-version": "https://github.com/algorandfoundation/specs/tree/abc",
            "fee": 0,
            "genesis-hash": "SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
            "genesis-id": "testnet-v1.0",
            "last-round": 4200,
            "min-fee": 1000,
        }
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._get",
            return_value=httpx.Response(200, json=body),
        ):
            params = await self.client.suggested_params()

        self.assertEqual(params.first, 4200)
        self.assertEqual(params.last, 5200)
        self.assertEqual(params.gen, "testnet-v1.0")
        self.assertEqual(params.min_fee, 1000)
        self.assertFalse(params.flat_fee)

    async def test_wait_for_confirmation_after_rounds(self):
        pending = {"confirmed-round": 0, "pool-error": ""}
        confirmed = {"confirmed-round": 103, "pool-error": ""}
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status",
            return_value={"last-round": 100},
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.pending_transaction_info",
            side_effect=[pending, pending, confirmed],
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status_after_block",
            return_value={},
        ) as status_after_block:
            info = await self.client.wait_for_confirmation("TXID")

        self.assertEqual(info["confirmed-round"], 103)
        self.assertEqual(
            [call.args[0] for call in status_after_block.await_args_list], [101, 102]
        )

    async def test_wait_for_confirmation_timeout(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status",
            return_value={"last-round": 7},
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.pending_transaction_info",
            return_value={"confirmed-round": 0},
        ) as pending_info, unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status_after_block",
            return_value={},
        ):
            with self.assertRaises(ConfirmationTimeout) as context:
                await self.client.wait_for_confirmation("TXID")

        self.assertEqual(context.exception.wait_rounds, 5)
        self.assertEqual(pending_info.await_count, 5)

    async def test_wait_for_confirmation_pool_error(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.status",
            return_value={"last-round": 7},
        ), unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient.pending_transaction_info",
            return_value={"confirmed-round": 0, "pool-error": "overspend"},
        ):
            with self.assertRaises(TransactionRejected) as context:
                await self.client.wait_for_confirmation("TXID")

        self.assertEqual(context.exception.pool_error, "overspend")

    async def test_send_raw_transactions_error(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._post",
            return_value=httpx.Response(400, text="overspend"),
        ):
            with self.assertRaises(ApiError) as context:
                await self.client.send_raw_transactions([b"\x01", b"\x02"])

        self.assertEqual(context.exception.status_code, 400)

    async def test_account_not_found(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._get",
            return_value=httpx.Response(404, text="not found"),
        ):
            with self.assertRaises(AccountNotFound):
                await self.client.account_info("NOTANADDRESS")

    async def test_compile(self):
        body = {"hash": "ESCROWADDRESS", "result": base64.b64encode(b"\x06\x81\x01").decode()}
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._post",
            return_value=httpx.Response(200, json=body),
        ):
            program, program_hash = await self.client.compile("#pragma version 6\nint 1")

        self.assertEqual(program, b"\x06\x81\x01")
        self.assertEqual(program_hash, "ESCROWADDRESS")

    async def test_health(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._get",
            return_value=httpx.Response(200, json={}),
        ) as get:
            self.assertTrue(await self.client.health())

        get.assert_awaited_once_with(endpoint="health")

        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._get",
            return_value=httpx.Response(503, text="unavailable"),
        ):
            self.assertFalse(await self.client.health())

    async def test_send_transaction(self):
        private_key, address = account.generate_account()
        params = transaction.SuggestedParams(
            fee=1000,
            first=1,
            last=1001,
            gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
            gen="testnet-v1.0",
            flat_fee=True,
        )
        signed = transaction.PaymentTxn(address, params, address, 1).sign(private_key)
        with unittest.mock.patch(
            "algorand_workflows.async_client.AlgodClient._post",
            return_value=httpx.Response(200, json={"txId": signed.get_txid()}),
        ) as post:
            txid = await self.client.send_transaction(signed)

        self.assertEqual(txid, signed.get_txid())
        self.assertEqual(
            post.await_args.kwargs["content"],
            base64.b64decode(encoding.msgpack_encode(signed)),
        )


class TestIndexer(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.indexer = IndexerClient("https://testnet-idx.algonode.cloud")

    async def asyncTearDown(self):
        await self.indexer.close()

    async def test_account(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.IndexerClient._get",
            return_value=httpx.Response(200, json={"account": {"amount": 5}}),
        ) as get:
            info = await self.indexer.account("ADDRESS")

        self.assertEqual(info["account"]["amount"], 5)
        get.assert_awaited_once_with(endpoint="v2/accounts/ADDRESS")

    async def test_account_not_found(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.IndexerClient._get",
            return_value=httpx.Response(404, text="no accounts found"),
        ):
            with self.assertRaises(AccountNotFound) as context:
                await self.indexer.account("ADDRESS")

        self.assertEqual(context.exception.account, "ADDRESS")

    async def test_account_transactions(self):
        page = {"transactions": [{"id": "TXID"}], "next-token": "PAGE2"}
        with unittest.mock.patch(
            "algorand_workflows.async_client.IndexerClient._get",
            return_value=httpx.Response(200, json=page),
        ) as get:
            result = await self.indexer.account_transactions(
                "ADDRESS", limit=10, next_page="PAGE1"
            )

        self.assertEqual(result["next-token"], "PAGE2")
        get.assert_awaited_once_with(
            endpoint="v2/accounts/ADDRESS/transactions",
            params={"limit": 10, "next": "PAGE1"},
        )

    async def test_transaction_error(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.IndexerClient._get",
            return_value=httpx.Response(500, text="boom"),
        ):
            with self.assertRaises(ApiError) as context:
                await self.indexer.transaction("TXID")

        self.assertEqual(context.exception.status_code, 500)

    async def test_asset_not_found(self):
        with unittest.mock.patch(
            "algorand_workflows.async_client.IndexerClient._get",
            return_value=httpx.Response(404, text="no assets found"),
        ):
            with self.assertRaises(AssetNotFound):
                await self.indexer.asset(1234)
