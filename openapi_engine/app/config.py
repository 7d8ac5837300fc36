"""
Runtime configuration for the OpenAPI engine.

This module centralizes environment-driven settings that shape every
generated document: the emitted OpenAPI version, how property names are
derived from Python attribute names, document metadata, and server URLs.

Configuration is read-only at runtime. Per-document behaviour (schema and
document transformers) lives in DocumentOptions, owned by the registry
for each document name.
"""

from __future__ import annotations

import os
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_pascal, to_snake

from openapi_engine.app.constants import DEFAULT_DOCUMENT_NAME, JSON_CONTENT_TYPE


PROPERTY_NAMING_POLICIES: dict[str, Callable[[str], str]] = {
    "camel": to_camel,
    "pascal": to_pascal,
    "snake": to_snake,
    "preserve": lambda name: name,
}


class EngineConfig(BaseModel):
    """
    Runtime configuration for document generation.

    Configuration is environment-driven and immutable once loaded.
    """

    # ------------------------------------------------------------------
    # Document shape
    # ------------------------------------------------------------------

    OPENAPI_VERSION: str = Field(
        "3.0.1",
        description="OpenAPI specification version written to every document",
    )

    APPLICATION_NAME: str = Field(
        "Application",
        description="Application name used to build document titles",
    )

    DEFAULT_DOCUMENT_NAME: str = Field(
        DEFAULT_DOCUMENT_NAME,
        description="Document name used when callers do not supply one",
    )

    DOCUMENT_VERSION: str = Field(
        "1.0.0",
        description="Value written to info.version",
    )

    SERVER_URLS: List[str] = Field(
        default_factory=list,
        description="Server base URLs published in the document's servers list",
    )

    DEFAULT_CONTENT_TYPE: str = Field(
        JSON_CONTENT_TYPE,
        description="Content type used when an operation declares none",
    )

    # ------------------------------------------------------------------
    # Schema generation
    # ------------------------------------------------------------------

    PROPERTY_NAMING: str = Field(
        "camel",
        description=(
            "Naming policy applied to object members without an explicit "
            "alias. One of: camel, pascal, snake, preserve."
        ),
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("PROPERTY_NAMING")
    @classmethod
    def validate_property_naming(cls, v: str) -> str:
        if v not in PROPERTY_NAMING_POLICIES:
            raise ValueError(
                f"Unsupported PROPERTY_NAMING '{v}'. "
                f"Allowed values: {sorted(PROPERTY_NAMING_POLICIES)}"
            )
        return v

    @field_validator("OPENAPI_VERSION")
    @classmethod
    def validate_openapi_version(cls, v: str) -> str:
        if not v.startswith("3.0."):
            raise ValueError(
                f"Unsupported OPENAPI_VERSION '{v}'. "
                "Only OpenAPI 3.0.x documents are produced."
            )
        return v

    @field_validator("SERVER_URLS")
    @classmethod
    def strip_server_urls(cls, v: List[str]) -> List[str]:
        return [url.strip() for url in v if url.strip()]

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def property_naming_policy(self) -> Callable[[str], str]:
        return PROPERTY_NAMING_POLICIES[self.PROPERTY_NAMING]

    def document_title(self, document_name: str) -> str:
        return f"{self.APPLICATION_NAME} | {document_name}"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Load configuration from environment variables.

        All values are parsed once at startup and must remain immutable.
        """

        server_urls = os.getenv("OPENAPI_ENGINE_SERVER_URLS", "")

        return cls(
            OPENAPI_VERSION=os.getenv(
                "OPENAPI_ENGINE_OPENAPI_VERSION", "3.0.1"
            ),
            APPLICATION_NAME=os.getenv(
                "OPENAPI_ENGINE_APPLICATION_NAME", "Application"
            ),
            DEFAULT_DOCUMENT_NAME=os.getenv(
                "OPENAPI_ENGINE_DEFAULT_DOCUMENT_NAME", DEFAULT_DOCUMENT_NAME
            ),
            DOCUMENT_VERSION=os.getenv(
                "OPENAPI_ENGINE_DOCUMENT_VERSION", "1.0.0"
            ),
            SERVER_URLS=server_urls.split(",") if server_urls else [],
            DEFAULT_CONTENT_TYPE=os.getenv(
                "OPENAPI_ENGINE_DEFAULT_CONTENT_TYPE", JSON_CONTENT_TYPE
            ),
            PROPERTY_NAMING=os.getenv(
                "OPENAPI_ENGINE_PROPERTY_NAMING", "camel"
            ),
        )

    model_config = ConfigDict(frozen=True)


class DocumentOptions(BaseModel):
    """
    Per-document options.

    One instance exists per document name. Transformers are kept in
    registration order; that order is part of the public contract.
    """

    document_name: str = Field(
        DEFAULT_DOCUMENT_NAME,
        description="Name of the document these options configure",
    )

    title: Optional[str] = Field(
        None,
        description="Overrides the generated info.title",
    )

    schema_transformers: List[Any] = Field(
        default_factory=list,
        description="Schema transformers, applied in registration order",
    )

    document_transformers: List[Any] = Field(
        default_factory=list,
        description="Document transformers, applied after reference resolution",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def add_schema_transformer(self, transformer: Any) -> "DocumentOptions":
        self.schema_transformers.append(transformer)
        return self

    def add_document_transformer(self, transformer: Any) -> "DocumentOptions":
        self.document_transformers.append(transformer)
        return self
