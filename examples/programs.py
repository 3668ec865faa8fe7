# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

"""TEAL sources used by the contract examples."""

# Stateless program that approves every transaction
ALWAYS_APPROVE = """#pragma version 6
// Simple stateless contract that always approves
int 1
return
"""

# Counter application: a global "counter", a per-account "local_counter"
COUNTER_APPROVAL = """#pragma version 6
txn ApplicationID
int 0
==
bnz handle_create

txn OnCompletion
int NoOp
==
bnz handle_noop

txn OnCompletion
int OptIn
==
bnz handle_optin

txn OnCompletion
int CloseOut
==
bnz handle_closeout

txn OnCompletion
int UpdateApplication
==
bnz handle_update

txn OnCompletion
int DeleteApplication
==
bnz handle_delete

// Default: reject
int 0
return

handle_create:
byte "counter"
int 0
app_global_put
int 1
return

handle_noop:
txna ApplicationArgs 0
byte "increment"
==
bnz increment

txna ApplicationArgs 0
byte "decrement"
==
bnz decrement

int 0
return

increment:
byte "counter"
dup
app_global_get
int 1
+
app_global_put
int 1
return

decrement:
byte "counter"
dup
app_global_get
int 1
-
app_global_put
int 1
return

handle_optin:
int 0
byte "local_counter"
int 0
app_local_put
int 1
return

handle_closeout:
int 1
return

handle_update:
int 1
return

handle_delete:
int 1
return
"""

# Same counter with an extra "reset" call, deployed by updating the application
COUNTER_APPROVAL_WITH_RESET = COUNTER_APPROVAL.replace(
    """int 0
return

increment:""",
    """txna ApplicationArgs 0
byte "reset"
==
bnz reset

int 0
return

reset:
byte "counter"
int 0
app_global_put
int 1
return

increment:""",
)

CLEAR = """#pragma version 6
// Always approve clear state
int 1
return
"""

# ABI contract exposing add(uint64,uint64)uint64
ADDER_APPROVAL = """#pragma version 8
txn ApplicationID
int 0
==
bnz approve

txn OnCompletion
int DeleteApplication
==
bnz approve

txn OnCompletion
int NoOp
==
assert

txna ApplicationArgs 0
method "add(uint64,uint64)uint64"
==
assert

// Return value: prefix followed by the encoded sum
byte 0x151f7c75
txna ApplicationArgs 1
btoi
txna ApplicationArgs 2
btoi
+
itob
concat
log

approve:
int 1
return
"""
