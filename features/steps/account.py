from behave import *
from algosdk import error

from algorand_workflows.account import Account
from algorand_workflows.multisig import MultisigDescriptor

# Use regular expressions
use_step_matcher("re")


@given("a generated account")
def given_generated_account(context):
    context.account = Account.generate()


@given(r"(?P<count>\d+) generated accounts")
def given_generated_accounts(context, count):
    context.accounts = [Account.generate() for _ in range(int(count))]


@when("I recover the account from its backup phrase")
def when_recover_account(context):
    context.output = Account.from_mnemonic(context.account.mnemonic())


@when("I recover the account from a phrase with a changed checksum word")
def when_recover_account_bad_checksum(context):
    words = context.account.mnemonic().split()
    words[-1] = "abandon" if words[-1] != "abandon" else "ability"
    try:
        context.output = Account.from_mnemonic(" ".join(words))
    except error.WrongChecksumError as e:
        context.output = e


@then("the recovered address should match the generated address")
def then_recovered_address(context):
    assert context.output.address() == context.account.address()


@then("the backup phrase should have 25 words")
def then_phrase_length(context):
    assert len(context.account.mnemonic().split()) == 25


@then("I should fail to recover the account")
def then_fail_recover(context):
    assert isinstance(context.output, error.WrongChecksumError)


@when(r"I derive the multisig address with threshold (?P<threshold>\d+) twice")
def when_derive_multisig_twice(context, threshold):
    context.first = MultisigDescriptor.create(context.accounts, int(threshold))
    context.second = MultisigDescriptor.create(
        [account.address() for account in context.accounts], int(threshold)
    )


@when(
    r"I derive the multisig address with threshold (?P<threshold>\d+) in reverse order"
)
def when_derive_multisig_reversed(context, threshold):
    context.first = MultisigDescriptor.create(context.accounts, int(threshold))
    context.second = MultisigDescriptor.create(
        list(reversed(context.accounts)), int(threshold)
    )


@when(
    r"I derive the multisig address with thresholds (?P<first>\d+) and (?P<second>\d+)"
)
def when_derive_multisig_thresholds(context, first, second):
    context.first = MultisigDescriptor.create(context.accounts, int(first))
    context.second = MultisigDescriptor.create(context.accounts, int(second))


@then("both multisig addresses should be equal")
def then_multisig_equal(context):
    assert context.first.address() == context.second.address()


@then("the multisig addresses should differ")
def then_multisig_differ(context):
    assert context.first.address() != context.second.address()
