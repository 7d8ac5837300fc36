"""
Document assembler for one document name.

Execution order:
    1. Seeded schemas are transformed (once per service)
    2. Operations are laid out; every parameter, request body and
       response type is turned into a cached schema
    3. Reference resolution builds the component table
    4. Document transformers run, in registration order

IMPORTANT:
- Operations embed deep copies of cached schemas. Resolving a document
  never mutates the cache, so every build starts from the same state.
- A failure in any step aborts the build. No partial document is
  returned.
- Events are strictly observational.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Sequence

from openapi_engine.app.constants import (
    MULTIPART_FORM_CONTENT_TYPE,
    OCTET_STREAM_CONTENT_TYPE,
)
from openapi_engine.app.config import DocumentOptions, EngineConfig
from openapi_engine.app.events import (
    GenerationEvent,
    GenerationEventEmitter,
    GenerationEventType,
    NullEventEmitter,
)
from openapi_engine.app.introspection.binary_types import is_binary_type, is_upload_type
from openapi_engine.app.introspection.type_shapes import TypeKind, inspect_type, split_annotated
from openapi_engine.app.schemas.document import (
    Info,
    MediaType,
    OpenApiDocument,
    Operation,
    OperationType,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
    Server,
)
from openapi_engine.app.schemas.operations import (
    OperationDescription,
    OperationProvider,
    ParameterDescription,
    ParameterSource,
    RequestBodyDescription,
    ResponseDescription,
)
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.services.reference_resolver import ReferenceResolver
from openapi_engine.app.services.schema_key import ParameterContext
from openapi_engine.app.services.schema_service import SchemaService
from openapi_engine.app.transformers.context import DocumentTransformerContext
from openapi_engine.app.transformers.pipeline import DocumentTransformerPipeline

logger = logging.getLogger(__name__)


def response_description(status_code: str) -> str:
    """
    HTTP reason phrase for a status code, e.g. "200" -> "OK".
    """
    try:
        return HTTPStatus(int(status_code)).phrase
    except ValueError:
        return "Default" if status_code == "default" else status_code


def accepts_none(tp: Any) -> bool:
    base, _ = split_annotated(tp)
    return inspect_type(base).kind in (TypeKind.NULLABLE, TypeKind.ANY)


class DocumentService:
    def __init__(
        self,
        *,
        config: EngineConfig,
        options: DocumentOptions,
        schema_service: SchemaService,
        operation_provider: OperationProvider,
        resolver: Optional[ReferenceResolver] = None,
        application_services: Optional[Any] = None,
        emitter: Optional[GenerationEventEmitter] = None,
    ) -> None:
        self._config = config
        self._options = options
        self._schema_service = schema_service
        self._operation_provider = operation_provider
        self._resolver = resolver or ReferenceResolver()
        self._application_services = application_services
        self._emitter = emitter or NullEventEmitter()
        self._document_transformers = DocumentTransformerPipeline(options.document_transformers)

    @property
    def document_name(self) -> str:
        return self._options.document_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self) -> OpenApiDocument:
        """
        Build the finished document.

        Builder, resolver and transformer failures propagate unchanged
        after a DOCUMENT_FAILED event has been emitted.
        """
        name = self.document_name
        await self._emit(GenerationEventType.DOCUMENT_STARTED)

        try:
            await self._schema_service.transform_seeded_schemas()

            operations = list(self._operation_provider.get_operations(name))
            document = OpenApiDocument(
                openapi=self._config.OPENAPI_VERSION,
                info=Info(
                    title=self._options.title or self._config.document_title(name),
                    version=self._config.DOCUMENT_VERSION,
                ),
                servers=[Server(url=url) for url in self._config.SERVER_URLS],
            )

            # ----------------------------------------------------------
            # 1. Operations
            # ----------------------------------------------------------
            for description in operations:
                path_item = document.paths.setdefault(description.path, {})
                if description.method in path_item:
                    raise ValueError(
                        f"Duplicate operation {description.method.value.upper()} {description.path}"
                    )
                path_item[description.method] = await self._build_operation(description)

            for path, path_item in document.paths.items():
                document.paths[path] = {
                    operation_type: path_item[operation_type]
                    for operation_type in OperationType
                    if operation_type in path_item
                }

            # ----------------------------------------------------------
            # 2. Reference resolution
            # ----------------------------------------------------------
            self._resolver.resolve(document, self._schema_service.schemas())
            await self._emit(
                GenerationEventType.REFERENCES_RESOLVED,
                components_count=len(document.components.schemas),
            )

            # ----------------------------------------------------------
            # 3. Document transformers
            # ----------------------------------------------------------
            if len(self._document_transformers):
                await self._document_transformers.run(
                    document,
                    DocumentTransformerContext(
                        document_name=name,
                        operations=operations,
                        application_services=self._application_services,
                    ),
                )
                await self._emit(
                    GenerationEventType.DOCUMENT_TRANSFORMERS_APPLIED,
                    transformers_count=len(self._document_transformers),
                )

        except Exception as exc:
            logger.exception("Generation of document %s failed", name)
            await self._emit(
                GenerationEventType.DOCUMENT_FAILED,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        logger.info(
            "Generated document %s: %d paths, %d components",
            name,
            len(document.paths),
            len(document.components.schemas),
        )
        await self._emit(GenerationEventType.DOCUMENT_COMPLETED)
        return document

    # ------------------------------------------------------------------
    # Operation layout
    # ------------------------------------------------------------------

    async def _build_operation(self, description: OperationDescription) -> Operation:
        parameters: List[Parameter] = []
        request_body = description.request_body

        for parameter in description.parameters:
            if parameter.source is ParameterSource.BODY:
                if request_body is None:
                    request_body = RequestBodyDescription(
                        type=parameter.type,
                        description=parameter.description,
                        required=parameter.required if parameter.required is not None else True,
                    )
                continue
            parameters.append(await self._build_parameter(description, parameter))

        return Operation(
            operation_id=description.operation_id,
            summary=description.summary,
            description=description.description,
            tags=list(description.tags),
            parameters=parameters,
            request_body=(
                await self._build_request_body(request_body)
                if request_body is not None
                else None
            ),
            responses=await self._build_responses(description.responses),
        )

    async def _build_parameter(
        self,
        operation: OperationDescription,
        parameter: ParameterDescription,
    ) -> Parameter:
        context = None
        if parameter.has_binding_constraints:
            context = ParameterContext(
                name=parameter.name,
                source=parameter.source,
                operation_id=operation.identity,
                metadata=parameter.metadata,
                description=parameter.description,
                default=parameter.default,
            )

        if parameter.source is ParameterSource.PATH:
            required = True
        elif parameter.required is not None:
            required = parameter.required
        else:
            required = parameter.default is None and not accepts_none(parameter.type)

        return Parameter(
            name=parameter.name,
            in_=ParameterLocation(parameter.source.value),
            required=required,
            description=parameter.description,
            schema_=await self._schema_for(parameter.type, context),
        )

    async def _build_request_body(self, body: RequestBodyDescription) -> RequestBody:
        schema = await self._schema_for(body.type)
        return RequestBody(
            description=body.description,
            required=body.required,
            content=self._content(body.type, body.content_types, schema),
        )

    async def _build_responses(
        self,
        responses: Dict[str, ResponseDescription],
    ) -> Dict[str, Response]:
        built: Dict[str, Response] = {}
        for status_code, response in responses.items():
            content: Dict[str, MediaType] = {}
            if response.type is not None:
                schema = await self._schema_for(response.type)
                content = self._content(response.type, response.content_types, schema)
            built[str(status_code)] = Response(
                description=response.description or response_description(str(status_code)),
                content=content,
            )
        return built

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _schema_for(self, tp: Any, context: Optional[ParameterContext] = None) -> Schema:
        schema = await self._schema_service.get_or_create_schema(tp, context)
        return schema.model_copy(deep=True)

    def _content(self, tp: Any, content_types: Sequence[str], schema: Schema) -> Dict[str, MediaType]:
        declared = list(content_types) or [self._default_content_type(tp)]
        content: Dict[str, MediaType] = {}
        for index, content_type in enumerate(declared):
            # each content entry owns its schema
            entry_schema = schema if index == 0 else schema.model_copy(deep=True)
            content[content_type] = MediaType(schema_=entry_schema)
        return content

    def _default_content_type(self, tp: Any) -> str:
        base, _ = split_annotated(tp)
        if is_upload_type(base):
            return MULTIPART_FORM_CONTENT_TYPE
        if is_binary_type(base):
            return OCTET_STREAM_CONTENT_TYPE
        return self._config.DEFAULT_CONTENT_TYPE

    async def _emit(self, event_type: GenerationEventType, **details: Any) -> None:
        await self._emitter.emit(
            GenerationEvent(
                document_name=self.document_name,
                event_type=event_type,
                details=details or None,
            )
        )
