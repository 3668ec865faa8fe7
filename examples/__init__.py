"""
Algorand Workflows Examples - runnable walkthroughs of every operation.

Example Scripts:

    **Accounts**:
    - account_management.py: generation, recovery, multisig derivation, account
      inspection and rekeying

    **Transactions and Assets**:
    - transaction_operations.py: payments, leases, atomic groups, multisig
      payments and the full asset lifecycle

    **Smart Contracts**:
    - smart_contracts.py: logic signatures and a counter application from
      creation to deletion
    - abi_method_call.py: deploying an ABI contract and decoding a method's
      return value

    **Shared**:
    - common.py: endpoint and account configuration from the environment
    - programs.py: TEAL sources used by the contract examples

Quick Start:
    Every script runs its offline part (key generation, recovery, multisig
    address derivation) without any configuration::

        python -m examples.account_management

    The network part needs an account funded on TestNet::

        export FUNDED_ACCOUNT_MNEMONIC="25 words ..."
        python -m examples.transaction_operations

    Fund a TestNet account at https://bank.testnet.algorand.network/.

Note:
    All examples default to the public AlgoNode TestNet endpoints. Accounts
    other than the funded one are generated fresh on every run and never stored.
"""
