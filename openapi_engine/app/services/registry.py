"""
Per-document ownership.

Each document name owns exactly one DocumentOptions, one SchemaService
(and therefore one schema cache) and one DocumentService. Nothing is
shared across document names.

The configured default document name is always available. Any other
name must be registered with configure() before it can be generated.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from openapi_engine.app.config import DocumentOptions, EngineConfig
from openapi_engine.app.events import GenerationEventEmitter, NullEventEmitter
from openapi_engine.app.schemas.document import OpenApiDocument
from openapi_engine.app.schemas.operations import OperationProvider
from openapi_engine.app.services.document_service import DocumentService
from openapi_engine.app.services.schema_builder import SchemaBuilder
from openapi_engine.app.services.schema_service import SchemaService
from openapi_engine.app.transformers.pipeline import SchemaTransformerPipeline

logger = logging.getLogger(__name__)


class DocumentNotFoundError(KeyError):
    """
    Raised when a document name was never configured.
    """

    def __init__(self, document_name: str) -> None:
        super().__init__(document_name)
        self.document_name = document_name

    def __str__(self) -> str:
        return f"No OpenAPI document named '{self.document_name}' is configured"


class DocumentRegistry:
    def __init__(
        self,
        config: EngineConfig,
        operation_provider: OperationProvider,
        *,
        application_services: Optional[Any] = None,
        emitter: Optional[GenerationEventEmitter] = None,
    ) -> None:
        self._config = config
        self._operation_provider = operation_provider
        self._application_services = application_services
        self._emitter = emitter or NullEventEmitter()

        self._options: Dict[str, DocumentOptions] = {}
        self._schema_services: Dict[str, SchemaService] = {}
        self._document_services: Dict[str, DocumentService] = {}

        self.configure(config.DEFAULT_DOCUMENT_NAME)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, document_name: str) -> DocumentOptions:
        """
        Register a document name, or return its existing options.
        """
        options = self._options.get(document_name)
        if options is None:
            options = DocumentOptions(document_name=document_name)
            self._options[document_name] = options
            logger.debug("configured document %s", document_name)
        return options

    @property
    def document_names(self) -> List[str]:
        return list(self._options)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def get_schema_service(self, document_name: str) -> SchemaService:
        self._require(document_name)
        service = self._schema_services.get(document_name)
        if service is None:
            options = self._options[document_name]
            service = SchemaService(
                document_name=document_name,
                builder=SchemaBuilder(naming_policy=self._config.property_naming_policy),
                transformers=SchemaTransformerPipeline(options.schema_transformers),
                application_services=self._application_services,
                emitter=self._emitter,
            )
            self._schema_services[document_name] = service
        return service

    def get_document_service(self, document_name: str) -> DocumentService:
        self._require(document_name)
        service = self._document_services.get(document_name)
        if service is None:
            service = DocumentService(
                config=self._config,
                options=self._options[document_name],
                schema_service=self.get_schema_service(document_name),
                operation_provider=self._operation_provider,
                application_services=self._application_services,
                emitter=self._emitter,
            )
            self._document_services[document_name] = service
        return service

    async def generate(self, document_name: Optional[str] = None) -> OpenApiDocument:
        name = document_name or self._config.DEFAULT_DOCUMENT_NAME
        return await self.get_document_service(name).generate()

    def _require(self, document_name: str) -> None:
        if document_name not in self._options:
            raise DocumentNotFoundError(document_name)
