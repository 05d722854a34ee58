# fleet_dump/Z_utils/Z03_raw_json.py
"""
Helpers for JSON kept as text.

Policy documents travel through fleet_dump as the JSON text Fleet sent. They
are never decoded into Python values and encoded again, so numbers such as
``1.10``, ``1E5`` or ``1e400`` reach disk exactly as received.

- split_raw: raw text of each member of an object or array
- indent_raw: re-indent a document, changing whitespace only
- check_json: strict validation (NaN and Infinity are rejected)
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Union

INDENT = "  "

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_STRING = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


def _skip_whitespace(text: str, idx: int) -> int:
    return _WHITESPACE.match(text, idx).end()


def check_json(text: str) -> None:
    """
    Validate a JSON document.

    Raises:
        ValueError: If ``text`` is not exactly one strict JSON value.
    """
    _decoder.decode(text)


def split_raw(text: str) -> Union[Dict[str, str], List[str]]:
    """
    Split a JSON object or array into the raw text of its members.

    Every member is validated, but its text is returned untouched.

    Returns:
        Key -> raw value text for an object, raw element texts for an array.

    Raises:
        ValueError: If ``text`` is not a single strict JSON object or array.
    """
    idx = _skip_whitespace(text, 0)
    opener = text[idx:idx + 1]
    if opener not in ("{", "["):
        raise ValueError("Expected a JSON object or array")
    is_object = opener == "{"
    closer = "}" if is_object else "]"

    members: Dict[str, str] = {}
    elements: List[str] = []

    idx = _skip_whitespace(text, idx + 1)
    if text[idx:idx + 1] == closer:
        idx += 1
    else:
        while True:
            key = None
            if is_object:
                key, idx = _decoder.raw_decode(text, idx)
                if not isinstance(key, str):
                    raise ValueError(f"Expected a string key at position {idx}")
                idx = _skip_whitespace(text, idx)
                if text[idx:idx + 1] != ":":
                    raise ValueError(f"Expected ':' at position {idx}")
                idx = _skip_whitespace(text, idx + 1)

            start = idx
            _, idx = _decoder.raw_decode(text, idx)
            if is_object:
                members[key] = text[start:idx]
            else:
                elements.append(text[start:idx])

            idx = _skip_whitespace(text, idx)
            separator = text[idx:idx + 1]
            idx += 1
            if separator == closer:
                break
            if separator != ",":
                raise ValueError(f"Expected ',' or '{closer}' at position {idx - 1}")
            idx = _skip_whitespace(text, idx)

    if _skip_whitespace(text, idx) != len(text):
        raise ValueError(f"Extra data at position {idx}")
    return members if is_object else elements


def indent_raw(text: str) -> str:
    """
    Re-indent a JSON document with two spaces per level.

    Only whitespace between tokens changes. Strings and numbers are copied
    as they appear, and empty objects and arrays stay on one line.

    Raises:
        ValueError: If ``text`` is not a strict JSON document.
    """
    check_json(text)

    out: List[str] = []
    depth = 0
    idx = 0
    end = len(text)

    while idx < end:
        ch = text[idx]
        if ch == '"':
            string_end = _STRING.match(text, idx).end()
            out.append(text[idx:string_end])
            idx = string_end
            continue
        if ch in " \t\n\r":
            idx += 1
            continue

        if ch in "{[":
            closer = "}" if ch == "{" else "]"
            after = _skip_whitespace(text, idx + 1)
            if text[after:after + 1] == closer:
                out.append(ch + closer)
                idx = after + 1
                continue
            depth += 1
            out.append(ch + "\n" + INDENT * depth)
        elif ch in "}]":
            depth -= 1
            out.append("\n" + INDENT * depth + ch)
        elif ch == ",":
            out.append(",\n" + INDENT * depth)
        elif ch == ":":
            out.append(": ")
        else:
            out.append(ch)
        idx += 1

    return "".join(out)
