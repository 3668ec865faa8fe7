# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Client identification metadata for algorand-workflows.

Every HTTP request made by :class:`~algorand_workflows.async_client.AlgodClient`
and :class:`~algorand_workflows.async_client.IndexerClient` carries a header that
names this package and its installed version, so node operators can tell the
traffic apart in their logs.

Examples:
    Build the header by hand::

        import httpx
        from algorand_workflows.metadata import Metadata

        headers = {Metadata.CLIENT_HEADER: Metadata.get_client_header_val()}
        response = httpx.get("https://testnet-api.algonode.cloud/health", headers=headers)

Note:
    The version is read from the installed distribution metadata, so the
    package has to be installed (``pip install -e .`` is enough).
"""

import importlib.metadata as metadata

# Distribution name used for the version lookup
PACKAGE_NAME = "algorand-workflows"


class Metadata:
    """Header name and value used to identify this client to Algorand services."""

    CLIENT_HEADER = "x-algorand-workflows-client"

    @staticmethod
    def get_client_header_val() -> str:
        """Return ``algorand-workflows/<version>`` for the installed package.

        Raises:
            PackageNotFoundError: If the distribution is not installed.
        """
        version = metadata.version(PACKAGE_NAME)
        return f"algorand-workflows/{version}"
