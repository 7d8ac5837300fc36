import typing
import uuid
from dataclasses import dataclass
from typing import Annotated, Callable, Dict, List, Optional, Sequence

import annotated_types
import pytest

from openapi_engine.app.config import EngineConfig
from openapi_engine.app.introspection import Int64, UnsupportedTypeError
from openapi_engine.app.schemas.operations import ParameterSource
from openapi_engine.app.services.schema_builder import SchemaBuilder
from openapi_engine.app.services.schema_key import ParameterContext, SchemaCacheKey
from openapi_engine.tests.shared_types import (
    Error,
    Project,
    Proposal,
    Result,
    ResumeUpload,
    Shape,
    Status,
    Todo,
    TodoWithDueDate,
    TreeNode,
)


def build(tp, parameter=None):
    builder = SchemaBuilder(naming_policy=EngineConfig().property_naming_policy)
    return builder.build(SchemaCacheKey.for_type(tp, parameter))


@dataclass
class WithCallback:
    callback: Callable[[], None]


def test_object_properties_follow_declaration_order():
    result = build(Todo)
    schema = result.schema

    assert schema.type == "object"
    assert list(schema.properties) == ["id", "title", "completed", "createdAt"]
    assert [(p.type, p.format) for p in schema.properties.values()] == [
        ("integer", "int32"),
        ("string", None),
        ("boolean", None),
        ("string", "date-time"),
    ]
    assert schema.required == ["id", "title", "completed", "createdAt"]
    assert schema.placeholder.reference_id == "Todo"
    assert result.dependencies == ()


def test_inherited_members_come_first():
    schema = build(TodoWithDueDate).schema
    assert list(schema.properties) == ["id", "title", "completed", "createdAt", "dueDate"]


@pytest.mark.parametrize(
    "tp, expected",
    [
        (int, {"type": "integer", "format": "int32"}),
        (Int64, {"type": "integer", "format": "int64"}),
        (float, {"type": "number", "format": "double"}),
        (bool, {"type": "boolean"}),
        (uuid.UUID, {"type": "string", "format": "uuid"}),
        (bytes, {"type": "string", "format": "byte"}),
    ],
)
def test_primitive_roots_stay_inline(tp, expected):
    result = build(tp)
    assert result.schema.to_dict() == expected
    assert result.schema.placeholder is None
    assert not SchemaCacheKey.for_type(tp).should_use_ref()


def test_binary_property_is_forced_to_string_binary():
    schema = build(ResumeUpload).schema
    assert schema.properties["resume"].to_dict() == {"type": "string", "format": "binary"}


def test_binary_root_is_string_binary():
    assert build(typing.BinaryIO).schema.to_dict() == {"type": "string", "format": "binary"}


def test_self_reference_becomes_placeholder_to_own_component():
    result = build(Proposal)
    properties = result.schema.properties

    assert properties["proposalElement"].placeholder.reference_id == "Proposal"
    assert properties["stream"].to_dict() == {"type": "string", "format": "binary"}
    assert result.dependencies == ()


def test_self_reference_inside_collections():
    schema = build(TreeNode).schema
    assert schema.properties["children"].items.placeholder.reference_id == "TreeNode"

    parent = schema.properties["parent"]
    assert parent.nullable is True
    assert parent.all_of[0].placeholder.reference_id == "TreeNode"


@pytest.mark.parametrize("tp", [List[Todo], Sequence[Todo], typing.Iterable[Todo]])
def test_collection_items_point_at_shared_type(tp):
    result = build(tp)

    assert result.schema.type == "array"
    assert result.schema.items.placeholder.reference_id == "Todo"
    assert result.schema.placeholder is None
    assert result.dependencies == (SchemaCacheKey.for_type(Todo),)


def test_dictionary_values_become_additional_properties():
    schema = build(Dict[str, Todo]).schema
    assert schema.type == "object"
    assert schema.additional_properties.placeholder.reference_id == "Todo"


def test_nullable_shared_type_wraps_reference():
    schema = build(Optional[Todo]).schema
    assert schema.nullable is True
    assert [child.placeholder.reference_id for child in schema.all_of] == ["Todo"]


def test_nullable_primitive_is_marked_nullable():
    assert build(Optional[int]).schema.to_dict() == {
        "type": "integer",
        "format": "int32",
        "nullable": True,
    }


def test_enum_is_a_shared_component():
    result = build(Status)
    assert result.schema.type == "string"
    assert result.schema.enum == ["Pending", "Approved", "Rejected"]
    assert result.schema.placeholder.reference_id == "Status"


def test_generic_instantiation_records_dependencies_in_order():
    key = SchemaCacheKey.for_type(Result[Todo])
    assert key.reference_id == "ResultOfTodo"

    result = build(Result[Todo])
    properties = result.schema.properties
    assert list(properties) == ["isSuccessful", "value", "error"]
    assert properties["value"].placeholder.reference_id == "Todo"
    assert [dependency.type for dependency in result.dependencies] == [Todo, Error]


def test_annotated_constraints_become_keywords():
    schema = build(Annotated[int, annotated_types.Gt(0), annotated_types.Le(100)]).schema
    assert schema.to_dict() == {
        "type": "integer",
        "format": "int32",
        "minimum": 0,
        "exclusiveMinimum": True,
        "maximum": 100,
    }

    schema = build(Annotated[str, annotated_types.Len(1, 5)]).schema
    assert (schema.min_length, schema.max_length) == (1, 5)


def test_pydantic_field_constraints_and_aliases():
    schema = build(Project).schema
    properties = schema.properties

    assert list(properties) == ["name", "ownerId", "status", "tags", "todos", "homepageUrl"]
    assert schema.required == ["name", "ownerId"]

    assert properties["name"].to_dict() == {
        "type": "string",
        "description": "Display name",
        "minLength": 1,
        "maxLength": 64,
    }
    assert properties["ownerId"].minimum == 0
    assert properties["ownerId"].exclusive_minimum is True
    assert properties["status"].placeholder.reference_id == "Status"
    assert properties["tags"].max_items == 10
    assert properties["todos"].items.placeholder.reference_id == "Todo"
    assert properties["homepageUrl"].pattern == r"^https?://"


def test_parameter_context_embeds_binding_constraints():
    parameter = ParameterContext(
        name="page",
        source=ParameterSource.QUERY,
        operation_id="listTodos",
        metadata=(annotated_types.Ge(1),),
        description="Page number",
        default=1,
    )
    result = build(int, parameter)

    assert result.schema.to_dict() == {
        "type": "integer",
        "format": "int32",
        "description": "Page number",
        "default": 1,
        "minimum": 1,
    }


def test_parameter_context_keeps_shared_type_inline():
    parameter = ParameterContext(
        name="todo",
        source=ParameterSource.QUERY,
        operation_id="findTodo",
        description="Filter",
    )
    key = SchemaCacheKey.for_type(Todo, parameter)
    result = build(Todo, parameter)

    assert not key.should_use_ref()
    assert result.schema.placeholder is None
    assert result.schema.description == "Filter"
    assert list(result.schema.properties) == ["id", "title", "completed", "createdAt"]


def test_parameter_context_identity_ignores_constraints():
    first = ParameterContext(name="id", source=ParameterSource.PATH, operation_id="op")
    second = ParameterContext(
        name="id",
        source=ParameterSource.PATH,
        operation_id="op",
        metadata=(annotated_types.Ge(1),),
    )
    assert SchemaCacheKey.for_type(int, first) == SchemaCacheKey.for_type(int, second)
    assert SchemaCacheKey.for_type(int, first) != SchemaCacheKey.for_type(int)


def test_polymorphic_root_gets_discriminator_and_variants():
    schema = build(Shape).schema

    assert schema.type == "object"
    assert list(schema.properties) == ["color", "sides"]
    assert schema.discriminator.property_name == "$type"
    assert schema.discriminator.mapping == {
        "triangle": "#/components/schemas/DiscriminatedTriangle",
        "square": "#/components/schemas/DiscriminatedSquare",
    }
    assert [variant.placeholder.reference_id for variant in schema.one_of] == [
        "Triangle",
        "Square",
    ]

    triangle = schema.one_of[0]
    assert list(triangle.properties) == ["$type", "color", "sides", "hypotenuse"]
    assert triangle.properties["$type"].enum == ["triangle"]
    assert triangle.required[0] == "$type"


def test_unsupported_member_names_the_offending_type():
    with pytest.raises(UnsupportedTypeError) as excinfo:
        build(WithCallback)

    assert "Callable" in str(excinfo.value)
    assert isinstance(excinfo.value, TypeError)
