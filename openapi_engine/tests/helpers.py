from typing import Any, Callable, Dict, Optional, Sequence

from openapi_engine.app.config import DocumentOptions, EngineConfig
from openapi_engine.app.schemas.document import OpenApiDocument, OperationType
from openapi_engine.app.schemas.operations import (
    OperationDescription,
    ParameterDescription,
    RequestBodyDescription,
    ResponseDescription,
    StaticOperationProvider,
)
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.services.registry import DocumentRegistry


def make_registry(
    operations: Sequence[OperationDescription],
    *,
    config: Optional[EngineConfig] = None,
    emitter: Any = None,
    application_services: Any = None,
) -> DocumentRegistry:
    return DocumentRegistry(
        config or EngineConfig(),
        StaticOperationProvider(operations),
        application_services=application_services,
        emitter=emitter,
    )


async def generate_document(
    *operations: OperationDescription,
    configure: Optional[Callable[[DocumentOptions], None]] = None,
    config: Optional[EngineConfig] = None,
) -> OpenApiDocument:
    registry = make_registry(operations, config=config)
    options = registry.configure(registry.document_names[0])
    if configure is not None:
        configure(options)
    return await registry.generate()


def post(path: str, body_type: Any, **kwargs: Any) -> OperationDescription:
    return OperationDescription(
        path=path,
        method=OperationType.POST,
        request_body=RequestBodyDescription(type=body_type),
        **kwargs,
    )


def get(path: str, response_type: Any = None, **kwargs: Any) -> OperationDescription:
    responses: Dict[str, ResponseDescription] = kwargs.pop("responses", None) or {
        "200": ResponseDescription(type=response_type)
    }
    return OperationDescription(
        path=path,
        method=OperationType.GET,
        responses=responses,
        **kwargs,
    )


def with_parameters(path: str, *parameters: ParameterDescription, **kwargs: Any) -> OperationDescription:
    return OperationDescription(
        path=path,
        method=kwargs.pop("method", OperationType.GET),
        parameters=list(parameters),
        **kwargs,
    )


def request_body_schema(
    document: OpenApiDocument,
    path: str = "/api",
    content_type: str = "application/json",
) -> Schema:
    operation = document.get_operation(path, OperationType.POST)
    assert operation.request_body is not None
    return operation.request_body.content[content_type].schema_


def response_schema(
    document: OpenApiDocument,
    path: str = "/api",
    status_code: str = "200",
    content_type: str = "application/json",
) -> Schema:
    operation = document.get_operation(path, OperationType.GET)
    return operation.responses[status_code].content[content_type].schema_
