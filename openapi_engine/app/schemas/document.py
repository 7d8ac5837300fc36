"""
OpenAPI document model.

These models form the finished document handed back to the document
assembler. Shape:

    {
        openapi, info, servers,
        paths: {path: {operationType: Operation}},
        components: {schemas: {referenceName: Schema}},
        tags: [{name}],
    }

The component table (components.schemas) is populated exclusively by the
reference resolver.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from openapi_engine.app.schemas.schema import Schema


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class OperationType(str, Enum):
    """
    HTTP operation kinds, in the order they are laid out within a path.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


# ---------------------------------------------------------------------------
# Document parts
# ---------------------------------------------------------------------------


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Info(_DocumentModel):
    title: str
    version: str
    description: Optional[str] = None


class Server(_DocumentModel):
    url: str
    description: Optional[str] = None


class Tag(_DocumentModel):
    name: str
    description: Optional[str] = None


class MediaType(_DocumentModel):
    schema_: Optional[Schema] = Field(None, alias="schema")


class Parameter(_DocumentModel):
    name: str
    in_: ParameterLocation = Field(..., alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[Schema] = Field(None, alias="schema")


class RequestBody(_DocumentModel):
    description: Optional[str] = None
    required: bool = True
    content: Dict[str, MediaType] = Field(default_factory=dict)


class Response(_DocumentModel):
    description: str
    content: Dict[str, MediaType] = Field(default_factory=dict)


class Operation(_DocumentModel):
    operation_id: Optional[str] = Field(None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    parameters: List[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = Field(None, alias="requestBody")
    responses: Dict[str, Response] = Field(default_factory=dict)


class Components(_DocumentModel):
    schemas: Dict[str, Schema] = Field(default_factory=dict)


class OpenApiDocument(_DocumentModel):
    openapi: str = "3.0.1"
    info: Info
    servers: List[Server] = Field(default_factory=list)
    paths: Dict[str, Dict[OperationType, Operation]] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    tags: List[Tag] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    def get_operation(self, path: str, operation_type: OperationType) -> Operation:
        return self.paths[path][operation_type]

    def dereference(self, schema: Schema) -> Schema:
        """
        Return the component a reference schema points at, or the schema
        itself when it is inline.
        """
        if schema.reference is None:
            return schema
        return self.components.schemas[schema.reference.id]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
