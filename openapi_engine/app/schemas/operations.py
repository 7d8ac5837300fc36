"""
Operation metadata consumed by the document assembler.

These descriptors are the boundary with the endpoint-metadata collector.
They describe what an operation accepts and returns in terms of Python
types; turning those types into schemas is the engine's job.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from openapi_engine.app.schemas.document import OperationType


class ParameterSource(str, Enum):
    """
    Where a parameter is bound from.
    """

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


class ParameterDescription(BaseModel):
    """
    A single bound parameter of an operation.
    """

    name: str
    type: Any
    source: ParameterSource = ParameterSource.QUERY
    required: Optional[bool] = Field(
        None,
        description="Explicit requiredness; inferred from default and nullability when omitted",
    )
    description: Optional[str] = None
    default: Optional[Any] = None
    metadata: Tuple[Any, ...] = Field(
        default_factory=tuple,
        description="Validation metadata (annotated_types constraints, pydantic FieldInfo, ...)",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def has_binding_constraints(self) -> bool:
        """
        True when the schema for this binding differs from the bare type's.
        """
        return bool(self.metadata) or self.description is not None or self.default is not None


class RequestBodyDescription(BaseModel):
    type: Any
    content_types: List[str] = Field(default_factory=list)
    required: bool = True
    description: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class ResponseDescription(BaseModel):
    type: Any = None
    content_types: List[str] = Field(default_factory=list)
    description: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class OperationDescription(BaseModel):
    """
    Everything the assembler needs to lay out one operation.
    """

    path: str
    method: OperationType
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    parameters: List[ParameterDescription] = Field(default_factory=list)
    request_body: Optional[RequestBodyDescription] = None
    responses: Dict[str, ResponseDescription] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def identity(self) -> str:
        return self.operation_id or f"{self.method.value.upper()} {self.path}"


# ---------------------------------------------------------------------------
# Provider boundary
# ---------------------------------------------------------------------------


class OperationProvider(Protocol):
    """
    Source of the operations that belong to a document.
    """

    def get_operations(self, document_name: str) -> Sequence[OperationDescription]:
        ...


class StaticOperationProvider:
    """
    Serves a fixed list of operations to every document.
    """

    def __init__(self, operations: Sequence[OperationDescription]) -> None:
        self._operations = list(operations)

    def get_operations(self, document_name: str) -> Sequence[OperationDescription]:
        return list(self._operations)
