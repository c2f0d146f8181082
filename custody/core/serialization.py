"""Canonical encoding of ledger values.

canonical_bytes(obj) -> Ok[bytes] | Err[str]: compact JSON, keys sorted,
    dataclasses tagged with "_type", principals as their raw id,
    timestamps as UTC ISO-8601.
content_hash(obj) -> Ok[str] | Err[str]: SHA-256 hex of canonical_bytes(obj).

Two values are the same ledger state exactly when their canonical bytes
are equal. Event payloads on the bus use the same encoding.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from custody.core.result import Err, Ok
from custody.core.types import Principal, UtcDatetime


def _encode(obj: object) -> Any:  # noqa: PLR0911
    """Map a ledger value onto JSON primitives. TypeError if it has no encoding."""
    match obj:
        # bool and int share a branch; json keeps True distinct from 1
        case None | bool() | int() | str():
            return obj
        case Principal(value=raw):
            return raw
        case UtcDatetime(value=moment):
            return moment.isoformat()
        case datetime() if obj.tzinfo is None:
            raise TypeError("naive datetime has no canonical form, use UtcDatetime")
        case datetime():
            return obj.astimezone(UTC).isoformat()
        case Enum():
            return obj.value
        case tuple() | list():
            return [_encode(item) for item in obj]
        case dict():
            return {str(_encode(k)): _encode(v) for k, v in obj.items()}
        case _ if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            encoded = {f.name: _encode(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
            encoded["_type"] = type(obj).__name__
            return encoded
        case _:
            raise TypeError(f"no canonical encoding for {type(obj).__name__}")


def canonical_bytes(obj: object) -> Ok[bytes] | Err[str]:
    """Deterministic bytes for obj. Unsupported values give Err, never raise.

    The dataclass name is written into "_type", so renaming a ledger type
    changes its encoding.
    """
    try:
        tree = _encode(obj)
    except TypeError as e:
        return Err(f"Unsupported type in canonical serialization: {e}")
    return Ok(json.dumps(tree, sort_keys=True, separators=(",", ":")).encode("utf-8"))


def content_hash(obj: object) -> Ok[str] | Err[str]:
    """SHA-256 hex digest of canonical_bytes(obj)."""
    match canonical_bytes(obj):
        case Ok(raw):
            return Ok(hashlib.sha256(raw).hexdigest())
        case Err() as e:
            return e
