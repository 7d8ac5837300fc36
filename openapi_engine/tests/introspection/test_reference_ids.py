import datetime
import uuid
from dataclasses import dataclass
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

import annotated_types
import pytest
from pydantic import BaseModel

from openapi_engine.app.introspection import Int64, get_schema_reference_id
from openapi_engine.tests.shared_types import Error, Result, Status, Todo


class Outer:
    @dataclass
    class Inner:
        value: int


class Envelope(BaseModel):
    payload: str


@pytest.mark.parametrize(
    "tp, expected",
    [
        (Todo, "Todo"),
        (Outer.Inner, "Outer_Inner"),
        (Status, "Status"),
        (str, "String"),
        (int, "Int"),
        (uuid.UUID, "UUID"),
        (datetime.datetime, "DateTime"),
        (Int64, "Int64"),
        (List[Todo], "ListOfTodo"),
        (Dict[str, Todo], "DictOfStringAndTodo"),
        (Optional[Todo], "NullableOfTodo"),
        (Union[Todo, Error], "UnionOfTodoAndError"),
        (Result[Todo], "ResultOfTodo"),
        (Result[List[Todo]], "ResultOfListOfTodo"),
        (Tuple[Todo, ...], "TupleOfTodo"),
        (Literal["a", "b"], "LiteralOfaAndb"),
        (Annotated[Todo, annotated_types.MinLen(1)], "Todo"),
        (Envelope, "Envelope"),
    ],
)
def test_reference_ids(tp, expected):
    assert get_schema_reference_id(tp) == expected


def test_function_local_scope_is_dropped():
    @dataclass
    class LocalType:
        value: int

    assert get_schema_reference_id(LocalType) == "LocalType"


def test_reference_ids_are_url_safe():
    for tp in (Todo, List[Todo], Result[Todo], Optional[Todo], Literal["a-b", "c d"]):
        reference_id = get_schema_reference_id(tp)
        assert all(ch.isalnum() or ch in "_.-" for ch in reference_id)
