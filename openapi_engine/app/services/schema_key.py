"""
Schema cache identity.

A cache key is (type, reference id, parameter context). The reference id
is part of the key rather than derived on lookup, so hosting code can
pre-seed well-known types under a fixed name.

A parameter context is attached only when the binding site contributes
something that must be embedded in the schema itself (validation
constraints, a description or a default). Two plain bindings of the same
type share one cache entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from openapi_engine.app.introspection.reference_ids import get_schema_reference_id
from openapi_engine.app.introspection.type_shapes import is_shareable_type, split_annotated
from openapi_engine.app.schemas.operations import ParameterSource


@dataclass(frozen=True)
class ParameterContext:
    """
    The binding site of a parameter.

    Identity is (name, source, operation). The remaining fields carry what
    the binding adds to the schema and do not take part in equality.
    """

    name: str
    source: ParameterSource
    operation_id: str
    metadata: Tuple[Any, ...] = field(default=(), compare=False)
    description: Optional[str] = field(default=None, compare=False)
    default: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class SchemaCacheKey:
    type: Any
    reference_id: str
    parameter: Optional[ParameterContext] = None

    @classmethod
    def for_type(
        cls,
        tp: Any,
        parameter: Optional[ParameterContext] = None,
    ) -> "SchemaCacheKey":
        base, metadata = split_annotated(tp)
        if metadata and not is_shareable_type(base):
            # constraints on an inline type are part of its schema
            base = tp
        return cls(type=base, reference_id=get_schema_reference_id(base), parameter=parameter)

    def should_use_ref(self) -> bool:
        """
        Whether this entry is published as a named component.

        Primitives, collections, binary types and binding-specific
        schemas always stay inline.
        """
        return self.parameter is None and is_shareable_type(self.type)
