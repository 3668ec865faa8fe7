# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""
Threshold multisignature descriptors.

A descriptor fixes a version tag, a signature threshold and an ordered list of
member addresses. The composite address is a hash of exactly those three
things, so reordering the members or changing the threshold yields a different
account. Whether the threshold is achievable is checked by the network when a
transaction is submitted, not here.

Examples:
    Derive a 2-of-3 address and pay from it::

        descriptor = MultisigDescriptor.create([alice, bob, chad], threshold=2)
        print(descriptor.address())

        signer = MultisigSigner(descriptor, [alice, bob])
        signed = signer.sign_transaction(txn)
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from algosdk import transaction

from .account import Account, to_address


@dataclass(frozen=True)
class MultisigDescriptor:
    version: int
    threshold: int
    addresses: Tuple[str, ...]

    @staticmethod
    def create(
        members: Sequence[Union[Account, str]], threshold: int, version: int = 1
    ) -> MultisigDescriptor:
        return MultisigDescriptor(
            version, threshold, tuple(to_address(member) for member in members)
        )

    def to_multisig(self) -> transaction.Multisig:
        """Build a new ``algosdk`` multisig object for this descriptor.

        ``algosdk`` stores signatures on the multisig object itself, so every
        signed transaction gets its own instance.
        """
        return transaction.Multisig(self.version, self.threshold, list(self.addresses))

    def address(self) -> str:
        return self.to_multisig().address()


class MultisigSigner:
    """Signs a transaction from a multisig address with a set of member accounts.

    The first signer starts the multisig signature and each following signer
    appends to it, in the order given.
    """

    descriptor: MultisigDescriptor
    signers: List[Account]

    def __init__(self, descriptor: MultisigDescriptor, signers: Sequence[Account]):
        self.descriptor = descriptor
        self.signers = list(signers)

    def address(self) -> str:
        return self.descriptor.address()

    def sign_transaction(
        self, txn: transaction.Transaction
    ) -> transaction.MultisigTransaction:
        signed = transaction.MultisigTransaction(txn, self.descriptor.to_multisig())
        for signer in self.signers:
            signed.sign(signer.private_key)
        return signed


class Test(unittest.TestCase):
    def setUp(self):
        self.members = [Account.generate() for _ in range(3)]

    def test_address_is_deterministic(self):
        first = MultisigDescriptor.create(self.members, 2)
        second = MultisigDescriptor.create(
            [member.address() for member in self.members], 2
        )

        self.assertEqual(first, second)
        self.assertEqual(first.address(), second.address())
        self.assertEqual(first.address(), first.address())

    def test_address_depends_on_order_and_threshold(self):
        base = MultisigDescriptor.create(self.members, 2)
        reordered = MultisigDescriptor.create(list(reversed(self.members)), 2)
        higher = MultisigDescriptor.create(self.members, 3)

        self.assertNotEqual(base.address(), reordered.address())
        self.assertNotEqual(base.address(), higher.address())

    def test_descriptor_is_immutable(self):
        descriptor = MultisigDescriptor.create(self.members, 2)
        with self.assertRaises(Exception):
            descriptor.threshold = 1  # type: ignore[misc]

    def test_sign_transaction(self):
        descriptor = MultisigDescriptor.create(self.members, 2)
        params = transaction.SuggestedParams(
            fee=1000,
            first=1,
            last=1001,
            gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
            gen="testnet-v1.0",
            flat_fee=True,
        )
        txn = transaction.PaymentTxn(
            descriptor.address(), params, self.members[2].address(), 1000
        )
        signer = MultisigSigner(descriptor, self.members[:2])

        signed = signer.sign_transaction(txn)
        signatures = [subsig.signature for subsig in signed.multisig.subsigs]

        self.assertIsNotNone(signatures[0])
        self.assertIsNotNone(signatures[1])
        self.assertIsNone(signatures[2])
        # The descriptor's own multisig is untouched by signing
        fresh = descriptor.to_multisig()
        self.assertTrue(all(subsig.signature is None for subsig in fresh.subsigs))
