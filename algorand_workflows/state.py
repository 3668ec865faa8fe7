# Copyright © Algorand Workflows contributors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import base64
import unittest
from typing import Any, Dict, List, Union

# Type discriminant of a byte-string TEAL value; every other type is an integer
BYTES_TYPE = 1


def decode_value(value: Dict[str, Any]) -> Union[int, str]:
    """Decode one TEAL value: type 1 is base64 text, anything else is an integer."""
    if value.get("type") == BYTES_TYPE:
        return base64.b64decode(value.get("bytes", "")).decode("utf-8", errors="replace")
    return value.get("uint", 0)


def decode_state(entries: List[Dict[str, Any]]) -> Dict[str, Union[int, str]]:
    """
    Decode an application key/value state list into a plain dictionary.

    :param entries: ``global-state`` of an application or ``key-value`` of an
        account's local state, as returned by algod
    :return: Mapping of decoded key to decoded value
    """
    state: Dict[str, Union[int, str]] = {}
    for entry in entries:
        key = base64.b64decode(entry["key"]).decode("utf-8", errors="replace")
        state[key] = decode_value(entry["value"])
    return state


def local_state_entries(
    account_info: Dict[str, Any], app_id: int
) -> List[Dict[str, Any]]:
    """Pick the ``key-value`` list of one application out of an account record."""
    for app_state in account_info.get("apps-local-state", []):
        if app_state["id"] == app_id:
            return app_state.get("key-value", [])
    return []


def _entry(key: str, value: Dict[str, Any]) -> Dict[str, Any]:
    return {"key": base64.b64encode(key.encode()).decode(), "value": value}


class Test(unittest.TestCase):
    def test_decode_bytes_value(self):
        entries = [
            _entry(
                "owner",
                {"type": 1, "bytes": base64.b64encode(b"alice").decode(), "uint": 0},
            )
        ]
        self.assertEqual(decode_state(entries), {"owner": "alice"})

    def test_decode_uint_value(self):
        entries = [_entry("counter", {"type": 2, "bytes": "", "uint": 42})]
        self.assertEqual(decode_state(entries), {"counter": 42})

    def test_unknown_type_is_integer(self):
        entries = [_entry("counter", {"type": 7, "uint": 3})]
        self.assertEqual(decode_state(entries), {"counter": 3})

        entries = [_entry("missing", {"type": 0})]
        self.assertEqual(decode_state(entries), {"missing": 0})

    def test_empty_state(self):
        self.assertEqual(decode_state([]), {})

    def test_local_state_entries(self):
        counter = _entry("local_counter", {"type": 2, "uint": 5})
        account_info = {
            "apps-local-state": [
                {"id": 10, "key-value": []},
                {"id": 11, "key-value": [counter]},
            ]
        }
        self.assertEqual(local_state_entries(account_info, 11), [counter])
        self.assertEqual(local_state_entries(account_info, 12), [])
        self.assertEqual(local_state_entries({}, 11), [])
