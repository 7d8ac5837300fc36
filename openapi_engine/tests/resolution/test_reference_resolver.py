import uuid
from typing import Annotated, List, Optional

import annotated_types
import pytest

from openapi_engine.app.schemas.document import (
    Info,
    MediaType,
    OpenApiDocument,
    Operation,
    OperationType,
    Response,
)
from openapi_engine.app.schemas.operations import (
    OperationDescription,
    ParameterDescription,
    ParameterSource,
    ResponseDescription,
)
from openapi_engine.app.schemas.schema import Discriminator, Schema
from openapi_engine.app.services.reference_resolver import (
    ReferenceResolutionError,
    ReferenceResolver,
)
from openapi_engine.app.services.schema_key import SchemaCacheKey
from openapi_engine.tests.helpers import (
    generate_document,
    get,
    make_registry,
    post,
    response_schema,
    with_parameters,
)
from openapi_engine.tests.shared_types import Error, Result, Shape, Todo, TreeNode

pytestmark = pytest.mark.anyio


async def test_resolution_is_idempotent():
    document = await generate_document(
        post("/todos", Todo),
        get("/shapes", List[Shape]),
        get("/tree", TreeNode),
    )
    before = document.to_dict()

    ReferenceResolver().resolve(document, [])

    assert document.to_dict() == before


async def test_primitive_parameter_is_inlined():
    document = await generate_document(
        with_parameters(
            "/todos/{id}",
            ParameterDescription(name="id", type=uuid.UUID, source=ParameterSource.PATH),
        )
    )

    operation = document.get_operation("/todos/{id}", OperationType.GET)
    parameter = operation.parameters[0]

    assert parameter.required is True
    assert parameter.schema_.to_dict() == {"type": "string", "format": "uuid"}
    assert document.components.schemas == {}


async def test_constrained_parameter_is_binding_specific():
    document = await generate_document(
        with_parameters(
            "/todos",
            ParameterDescription(
                name="page",
                type=int,
                metadata=(annotated_types.Ge(1),),
                default=1,
            ),
            ParameterDescription(name="size", type=int),
            ParameterDescription(name="filter", type=Optional[str]),
        )
    )

    page, size, filter_ = document.get_operation("/todos", OperationType.GET).parameters

    assert page.required is False
    assert page.schema_.to_dict() == {
        "type": "integer",
        "format": "int32",
        "default": 1,
        "minimum": 1,
    }
    assert size.required is True
    assert size.schema_.to_dict() == {"type": "integer", "format": "int32"}
    assert filter_.required is False
    assert filter_.in_.value == "query"


async def test_nullable_and_generic_responses():
    document = await generate_document(
        get("/maybe", Optional[Todo]),
        get("/result", Result[Todo]),
        get("/annotated", Annotated[List[Todo], annotated_types.MaxLen(50)]),
    )

    assert response_schema(document, "/maybe").to_dict() == {
        "nullable": True,
        "allOf": [{"$ref": "#/components/schemas/Todo"}],
    }
    assert response_schema(document, "/result").to_dict() == {
        "$ref": "#/components/schemas/ResultOfTodo"
    }
    assert response_schema(document, "/annotated").to_dict() == {
        "type": "array",
        "items": {"$ref": "#/components/schemas/Todo"},
        "maxItems": 50,
    }

    result = document.components.schemas["ResultOfTodo"]
    assert result.properties["value"].to_dict() == {"$ref": "#/components/schemas/Todo"}
    assert result.properties["error"].to_dict() == {"$ref": "#/components/schemas/Error"}
    assert list(document.components.schemas) == ["Error", "ResultOfTodo", "Todo"]


async def test_layout_order_is_stable():
    operations = [
        post("/todos", Todo, tags=["todos"]),
        get("/todos", List[Todo], tags=["admin", "todos"]),
        get("/errors", Error, tags=["errors", "admin"]),
    ]

    document = await generate_document(*operations)

    assert list(document.paths) == ["/todos", "/errors"]
    assert list(document.paths["/todos"]) == [OperationType.GET, OperationType.POST]
    assert [tag.name for tag in document.tags] == ["admin", "todos", "errors"]

    again = await generate_document(*operations)
    assert again.to_json() == document.to_json()


async def test_repeated_builds_do_not_mutate_the_cache():
    registry = make_registry([post("/todos", Todo), get("/shapes", Shape)])

    first = await registry.generate()
    second = await registry.generate()

    assert first.to_dict() == second.to_dict()

    cached = registry.get_schema_service("v1").cache.get(SchemaCacheKey.for_type(Todo))
    assert cached.placeholder is not None
    assert cached.placeholder.reference_id == "Todo"


async def test_response_descriptions_default_to_reason_phrase():
    operation = OperationDescription(
        path="/todos",
        method=OperationType.GET,
        responses={
            "200": ResponseDescription(type=List[Todo]),
            "404": ResponseDescription(),
            "default": ResponseDescription(type=Error, description="Unexpected error"),
        },
    )
    document = await generate_document(operation)

    responses = document.get_operation("/todos", OperationType.GET).responses
    assert responses["200"].description == "OK"
    assert responses["404"].description == "Not Found"
    assert responses["404"].content == {}
    assert responses["default"].description == "Unexpected error"


def test_missing_component_is_fatal():
    document = OpenApiDocument(
        info=Info(title="t", version="1"),
        paths={
            "/api": {
                OperationType.GET: Operation(
                    responses={
                        "200": Response(
                            description="OK",
                            content={"application/json": MediaType(schema_=Schema.placeholder_for("Missing"))},
                        )
                    }
                )
            }
        },
    )

    with pytest.raises(ReferenceResolutionError, match="Missing"):
        ReferenceResolver().resolve(document, [])


def test_dangling_discriminator_mapping_is_fatal():
    key = SchemaCacheKey.for_type(Shape)
    broken = Schema(
        type="object",
        discriminator=Discriminator(
            property_name="$type",
            mapping={"x": "#/components/schemas/Nowhere"},
        ),
    )
    document = OpenApiDocument(info=Info(title="t", version="1"))

    with pytest.raises(ReferenceResolutionError, match="Nowhere"):
        ReferenceResolver().resolve(document, [(key, broken)])
