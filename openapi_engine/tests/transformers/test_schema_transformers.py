import typing
from typing import List

import anyio
import pytest

from openapi_engine.app.schemas.document import OperationType
from openapi_engine.app.schemas.operations import ParameterDescription, ParameterSource
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.transformers.context import SchemaTransformerContext
from openapi_engine.tests.helpers import (
    generate_document,
    get,
    make_registry,
    post,
    request_body_schema,
    with_parameters,
)
from openapi_engine.tests.shared_types import Todo

pytestmark = pytest.mark.anyio

TODO_EXAMPLE = {"id": 1, "title": "Todo item", "completed": False, "createdAt": "2021-01-01T00:00:00Z"}


async def test_schema_transformers_run_in_registered_order():
    def describe(schema: Schema, context: SchemaTransformerContext) -> None:
        if context.type is Todo:
            schema.description = "Represents a todo item"

    async def add_example(schema: Schema, context: SchemaTransformerContext) -> None:
        if context.type is Todo and schema.description is not None:
            schema.example = TODO_EXAMPLE

    document = await generate_document(
        post("/todo", Todo),
        configure=lambda options: options.add_schema_transformer(describe).add_schema_transformer(add_example),
    )

    todo = document.components.schemas["Todo"]
    assert todo.description == "Represents a todo item"
    assert todo.example == TODO_EXAMPLE


async def test_transformer_objects_are_awaited_sequentially():
    order = []

    class SlowTransformer:
        def __init__(self, name: str) -> None:
            self.name = name

        async def transform(self, schema: Schema, context: SchemaTransformerContext) -> None:
            order.append(f"{self.name}:start")
            await anyio.sleep(0.01)
            schema.extensions[self.name] = True
            order.append(f"{self.name}:end")

    document = await generate_document(
        post("/todo", Todo),
        configure=lambda options: options.add_schema_transformer(SlowTransformer("first")).add_schema_transformer(
            SlowTransformer("second")
        ),
    )

    # Seeded binary schemas are transformed too, always in pairs
    assert order[:4] == ["first:start", "first:end", "second:start", "second:end"]
    serialized = document.to_dict()["components"]["schemas"]["Todo"]
    assert serialized["x-first"] is True
    assert serialized["x-second"] is True


async def test_transformer_can_use_parameter_context():
    def describe_name(schema: Schema, context: SchemaTransformerContext) -> None:
        if context.parameter is not None and context.parameter.name == "name":
            schema.description = "Represents a name"

    document = await generate_document(
        with_parameters(
            "/{name}",
            ParameterDescription(
                name="name",
                type=str,
                source=ParameterSource.PATH,
                description="The name",
            ),
        ),
        configure=lambda options: options.add_schema_transformer(describe_name),
    )

    parameter = document.get_operation("/{name}", OperationType.GET).parameters[0]
    assert parameter.schema_.description == "Represents a name"


async def test_transformer_runs_once_per_schema():
    seen = []

    def record(schema: Schema, context: SchemaTransformerContext) -> None:
        seen.append(context.type)

    registry = make_registry([post("/todo", Todo), get("/todos", List[Todo])])
    registry.configure("v1").add_schema_transformer(record)

    await registry.generate()
    await registry.generate()

    assert seen.count(Todo) == 1
    assert seen.count(List[Todo]) == 1
    assert seen.count(typing.BinaryIO) == 1


async def test_seeded_schemas_are_transformed():
    def mark_binary(schema: Schema, context: SchemaTransformerContext) -> None:
        if schema.format == "binary":
            schema.description = "Raw bytes"

    document = await generate_document(
        post("/upload", typing.BinaryIO),
        configure=lambda options: options.add_schema_transformer(mark_binary),
    )

    schema = request_body_schema(document, "/upload", "application/octet-stream")
    assert schema.description == "Raw bytes"


async def test_transformer_failure_aborts_generation_and_commits_nothing():
    def explode(schema: Schema, context: SchemaTransformerContext) -> None:
        if context.type is Todo:
            raise RuntimeError("transformer failed")

    registry = make_registry([post("/todo", Todo)])
    registry.configure("v1").add_schema_transformer(explode)

    with pytest.raises(RuntimeError, match="transformer failed"):
        await registry.generate()

    assert all(key.type is not Todo for key, _ in registry.get_schema_service("v1").schemas())
