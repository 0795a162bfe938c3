"""Cache key construction.

Convention: {namespace}:{operation}:{args}

``args`` is the compact JSON array of the positional arguments with the
outer brackets removed, so the key of a call with arguments
``("INVENTORY",)`` is a prefix of the key of every call starting with
those arguments, e.g. ``("INVENTORY", "FURNITURE")``.

Examples:
    database:getData:"INVENTORY","FURNITURE"
    database:getData:"INVENTORY","FURNITURE",{"name":"Item"}
    database:getTabs:"INVENTORY"
"""

import math
from datetime import date, datetime
from typing import Any, Sequence, Tuple

import orjson
from pydantic import BaseModel


SEPARATOR = ":"


def serialize_args(args: Sequence[Any]) -> str:
    """Serialize an argument list deterministically, without brackets."""
    raw = orjson.dumps(
        [_normalize(arg) for arg in args],
        option=orjson.OPT_SORT_KEYS,
    ).decode("utf-8")
    return raw[1:-1]


def build_cache_key(namespace: str, operation: str, args: Sequence[Any]) -> str:
    """Build the key identifying one memoized call.

    Args:
        namespace: Namespace the operation was wrapped under (e.g., "database")
        operation: Registered operation name (e.g., "getData")
        args: Positional arguments of the call

    Returns:
        Key string like 'database:getData:"INVENTORY","FURNITURE"'
    """
    return f"{namespace}{SEPARATOR}{operation}{SEPARATOR}{serialize_args(args)}"


def build_key_prefix(namespace: str, operation: str, leading_args: Sequence[Any] = ()) -> str:
    """Return the prefix shared by every call whose leading arguments match.

    With no leading arguments the prefix covers every call of the operation.
    """
    if not leading_args:
        return f"{namespace}{SEPARATOR}{operation}{SEPARATOR}"
    return build_cache_key(namespace, operation, leading_args)


def namespace_prefix(namespace: str) -> str:
    """Return the prefix shared by every key in a namespace."""
    return f"{namespace}{SEPARATOR}"


def parse_cache_key(key: str) -> Tuple[str, str, str]:
    """Split a key into (namespace, operation, args_string)."""
    parts = key.split(SEPARATOR, 2)
    while len(parts) < 3:
        parts.append("")
    return parts[0], parts[1], parts[2]


# orjson serializes integers only within this range
_INT_MIN = -(2**63)
_INT_MAX = 2**64


def _normalize(obj: Any) -> Any:
    """Normalize arguments so structurally equal values serialize equally."""
    if isinstance(obj, (str, bool, type(None))):
        return obj
    elif isinstance(obj, int):
        if _INT_MIN <= obj < _INT_MAX:
            return obj
        return str(obj)
    elif isinstance(obj, float):
        # nan and inf would otherwise serialize as null
        if math.isfinite(obj):
            return obj
        return repr(obj)
    elif isinstance(obj, (date, datetime)):
        return obj.isoformat()
    elif isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    elif isinstance(obj, dict):
        return {str(k): _normalize(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_normalize(item) for item in obj]
    elif isinstance(obj, (set, frozenset)):
        return sorted((_normalize(item) for item in obj), key=repr)
    else:
        return str(obj)
