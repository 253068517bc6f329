"""
Key transcoding between the client's camelCase and the API's snake_case.

Applied at the HTTP boundary only: outbound bodies go through
keys_to_snake(), inbound JSON through keys_to_camel(). Both walk nested
dicts and lists, keep list order, and leave leaf values untouched.

Known edge case: conversion is by convention, not detection. A key that
is already camelCase goes through to_snake() again if it is sent back
out, so "HTTPStatus" becomes "_h_t_t_p_status". Keys with a digit right
after an underscore ("tier_2") are not camel-cased because only
"_<letter>" is rewritten, which keeps "tier_2" stable in both directions.

Usage:
    from core.casing import keys_to_camel, keys_to_snake

    keys_to_camel({"due_amount": 0, "plan_id": "p1"})
    # {"dueAmount": 0, "planId": "p1"}
"""

import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"[-_][a-z]", re.IGNORECASE)
_UPPER = re.compile(r"[A-Z]")


def to_camel(key: str) -> str:
    """snake_case / kebab-case → camelCase ("joining_date" → "joiningDate")."""
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(0)[1].upper(), key)


def to_snake(key: str) -> str:
    """camelCase → snake_case ("joiningDate" → "joining_date")."""
    return _UPPER.sub(lambda m: "_" + m.group(0).lower(), key)


def keys_to_camel(value: Any) -> Any:
    """Recursively camel-case every dict key inside a JSON-compatible value."""
    return _convert(value, to_camel)


def keys_to_snake(value: Any) -> Any:
    """Recursively snake-case every dict key inside a JSON-compatible value."""
    return _convert(value, to_snake)


def _convert(value: Any, convert_key) -> Any:
    if isinstance(value, dict):
        return {convert_key(str(k)): _convert(v, convert_key) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(item, convert_key) for item in value]
    return value
