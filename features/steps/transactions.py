import base64

from algosdk import transaction
from behave import *

from algorand_workflows.account import Account
from algorand_workflows.asset_client import AssetClient
from algorand_workflows.state import decode_state
from algorand_workflows.workflow import assign_group

# Use regular expressions
use_step_matcher("re")


def suggested_params() -> transaction.SuggestedParams:
    return transaction.SuggestedParams(
        fee=1000,
        first=1,
        last=1001,
        gh="SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
        gen="testnet-v1.0",
        flat_fee=True,
    )


@given(r"(?P<count>\d+) payment transactions")
def given_payment_transactions(context, count):
    sender = Account.generate()
    receiver = Account.generate()
    context.transactions = [
        transaction.PaymentTxn(
            sender.address(), suggested_params(), receiver.address(), amount
        )
        for amount in range(1, int(count) + 1)
    ]


@when("I assign a group id")
def when_assign_group(context):
    try:
        context.output = assign_group(context.transactions)
    except ValueError as e:
        context.output = e


@then("every transaction should carry the same group id")
def then_same_group(context):
    groups = {txn.group for txn in context.output}
    assert len(groups) == 1
    assert None not in groups


@then("the group assignment should fail")
def then_group_fails(context):
    assert isinstance(context.output, ValueError)


@when("I build an asset opt-in transaction")
def when_build_opt_in(context):
    context.account = Account.generate()
    context.output = AssetClient.opt_in_transaction(
        context.account.address(), suggested_params(), context.input
    )


@then(r"the transaction should transfer 0 units of asset (?P<asset_id>\d+) to its sender")
def then_opt_in_shape(context, asset_id):
    txn = context.output
    assert txn.sender == context.account.address()
    assert txn.receiver == txn.sender
    assert txn.amount == 0
    assert txn.index == int(asset_id)


@given(r'a state entry "(?P<key>[^"]+)" of type (?P<value_type>\d+) holding bytes "(?P<value>[^"]*)"')
def given_bytes_state_entry(context, key, value_type, value):
    context.entries = [
        {
            "key": base64.b64encode(key.encode()).decode(),
            "value": {
                "type": int(value_type),
                "bytes": base64.b64encode(value.encode()).decode(),
                "uint": 0,
            },
        }
    ]


@given(r'a state entry "(?P<key>[^"]+)" of type (?P<value_type>\d+) holding uint (?P<value>\d+)')
def given_uint_state_entry(context, key, value_type, value):
    context.entries = [
        {
            "key": base64.b64encode(key.encode()).decode(),
            "value": {"type": int(value_type), "bytes": "", "uint": int(value)},
        }
    ]


@when(r'I decode the state value of "(?P<key>[^"]+)"')
def when_decode_state(context, key):
    context.output = decode_state(context.entries)[key]
