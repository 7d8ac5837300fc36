"""
Primitive kinds and their canonical (type, format) pairs.

Python's int and float carry no width, so `int` maps to int32 and
`float` to double. Callers that need another width annotate with one of
the NewType aliases below.
"""

from __future__ import annotations

import datetime
import decimal
import ipaddress
import uuid
from typing import Any, Dict, NewType, Optional, Tuple

from pydantic import AnyUrl


Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)
Double = NewType("Double", float)


# (json type, format) per primitive kind
PRIMITIVE_FORMATS: Dict[Any, Tuple[str, Optional[str]]] = {
    bool: ("boolean", None),
    int: ("integer", "int32"),
    Int32: ("integer", "int32"),
    Int64: ("integer", "int64"),
    float: ("number", "double"),
    Float32: ("number", "float"),
    Double: ("number", "double"),
    decimal.Decimal: ("number", "double"),
    str: ("string", None),
    bytes: ("string", "byte"),
    uuid.UUID: ("string", "uuid"),
    datetime.datetime: ("string", "date-time"),
    datetime.date: ("string", "date"),
    datetime.time: ("string", "time"),
    datetime.timedelta: ("string", "duration"),
    ipaddress.IPv4Address: ("string", "ipv4"),
    ipaddress.IPv6Address: ("string", "ipv6"),
    AnyUrl: ("string", "uri"),
}

# Stable reference names for primitive kinds
PRIMITIVE_NAMES: Dict[Any, str] = {
    bool: "Boolean",
    int: "Int",
    float: "Float",
    decimal.Decimal: "Decimal",
    str: "String",
    bytes: "Bytes",
    uuid.UUID: "UUID",
    datetime.datetime: "DateTime",
    datetime.date: "Date",
    datetime.time: "Time",
    datetime.timedelta: "TimeDelta",
    ipaddress.IPv4Address: "IPv4Address",
    ipaddress.IPv6Address: "IPv6Address",
    AnyUrl: "Url",
}

# Checked most-specific first: bool before int, datetime before date
_SUBCLASS_ORDER = (
    bool,
    int,
    float,
    decimal.Decimal,
    str,
    bytes,
    uuid.UUID,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    AnyUrl,
)


def primitive_kind(tp: Any) -> Optional[Any]:
    """
    Return the primitive kind `tp` belongs to, or None.

    NewType aliases and subclasses of primitive kinds are recognised.
    Enums are not primitives and must be filtered out by the caller.
    """
    try:
        if tp in PRIMITIVE_FORMATS:
            return tp
    except TypeError:
        # unhashable annotations are never primitives
        return None

    if isinstance(tp, type):
        for kind in _SUBCLASS_ORDER:
            if issubclass(tp, kind):
                return kind
        return None

    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        return primitive_kind(supertype)
    return None


def primitive_type_and_format(tp: Any) -> Optional[Tuple[str, Optional[str]]]:
    kind = primitive_kind(tp)
    if kind is None:
        return None
    return PRIMITIVE_FORMATS[kind]
