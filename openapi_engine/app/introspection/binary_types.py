"""
Stream and file-like types.

These types never go through general reflection. Their schemas are
pre-seeded into every schema cache, and the binary override generation
hook forces the same shape wherever they appear as nested properties.
"""

from __future__ import annotations

import asyncio
import io
import typing
from typing import Any, List

from fastapi import UploadFile


class UploadFileCollection(List[UploadFile]):
    """
    A collection of uploaded files bound from a multipart form.
    """


# Single values rendered as {type: string, format: binary}
BINARY_VALUE_TYPES = (
    UploadFile,
    typing.BinaryIO,
    io.IOBase,
    asyncio.StreamReader,
)

# Collections rendered as {type: array, items: {type: string, format: binary}}
BINARY_COLLECTION_TYPES = (UploadFileCollection,)


def _is_subclass(tp: Any, bases: tuple) -> bool:
    return isinstance(tp, type) and issubclass(tp, bases)


def is_binary_collection_type(tp: Any) -> bool:
    return _is_subclass(tp, BINARY_COLLECTION_TYPES)


def is_binary_value_type(tp: Any) -> bool:
    return _is_subclass(tp, BINARY_VALUE_TYPES)


def is_binary_type(tp: Any) -> bool:
    return is_binary_collection_type(tp) or is_binary_value_type(tp)


def is_upload_type(tp: Any) -> bool:
    return _is_subclass(tp, (UploadFile, UploadFileCollection))


def seeded_binary_types() -> List[Any]:
    """
    Well-known types whose schemas are pre-populated in every cache.
    """
    return [UploadFile, UploadFileCollection, typing.BinaryIO, asyncio.StreamReader]
