"""
Reference names for types.

A reference name is stable for a given type, URL-safe, and distinct
across generic instantiations and nested classes:

    Todo                      -> Todo
    Outer.Inner               -> Outer_Inner
    list[Todo]                -> ListOfTodo
    dict[str, Todo]           -> DictOfStringAndTodo
    Optional[Todo]            -> NullableOfTodo
    Result[Todo]              -> ResultOfTodo
"""

from __future__ import annotations

import re
import types
import typing
from typing import Any

from openapi_engine.app.introspection.primitives import PRIMITIVE_NAMES
from openapi_engine.app.introspection.type_shapes import NONE_TYPE, split_annotated

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_.\-]")


def _class_name(cls: type) -> str:
    metadata = getattr(cls, "__pydantic_generic_metadata__", None)
    if metadata and metadata.get("origin") is not None:
        return _generic_name(metadata["origin"], metadata.get("args", ()))

    parts = cls.__qualname__.split(".")
    if "<locals>" in parts:
        # drop the enclosing function scope
        last = len(parts) - 1 - parts[::-1].index("<locals>")
        parts = parts[last + 1:]
    return "_".join(parts)


def _origin_name(origin: Any) -> str:
    if isinstance(origin, type):
        return _class_name(origin).capitalize() if origin.__module__ == "builtins" else _class_name(origin)
    return getattr(origin, "_name", None) or str(origin)


def _generic_name(origin: Any, args: tuple) -> str:
    arg_names = "And".join(get_schema_reference_id(arg) for arg in args)
    return f"{_origin_name(origin)}Of{arg_names}"


def get_schema_reference_id(tp: Any) -> str:
    base, _ = split_annotated(tp)

    if base is Any:
        return "Any"
    if base is NONE_TYPE or base is None:
        return "Null"

    try:
        primitive_name = PRIMITIVE_NAMES.get(base)
    except TypeError:
        primitive_name = None
    if primitive_name is not None:
        return primitive_name

    origin = typing.get_origin(base)
    args = typing.get_args(base)

    if origin is not None:
        if origin in (typing.Union, types.UnionType):
            non_null = [arg for arg in args if arg is not NONE_TYPE]
            inner = "And".join(get_schema_reference_id(arg) for arg in non_null)
            if len(non_null) < len(args):
                return f"NullableOf{inner}"
            return f"UnionOf{inner}"
        if origin is typing.Literal:
            values = "And".join(str(value) for value in args)
            return _UNSAFE_CHARACTERS.sub("", f"LiteralOf{values}")
        if args and args[-1] is Ellipsis:
            args = args[:-1]
        return _generic_name(origin, args)

    if isinstance(base, type):
        return _UNSAFE_CHARACTERS.sub("", _class_name(base))

    # NewType aliases and other named annotations
    name = getattr(base, "__name__", None) or str(base)
    return _UNSAFE_CHARACTERS.sub("", name)
