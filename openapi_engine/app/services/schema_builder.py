"""
Schema builder.

Turns one cache key into a raw schema fragment by walking the type's
shape. Every walked node passes through the generation hooks.

Shareable types (objects, hierarchy roots, enums) met below the root are
not walked. They are short-circuited to a reference placeholder and
reported as dependencies, so the caller can make sure each of them is
built exactly once, under its own cache key. A reference back to the root
type is emitted as the self-reference marker "#" and rewritten to the
root's reference id once the walk completes.

The builder is synchronous and side-effect free: the same key always
produces a structurally identical schema.
"""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from openapi_engine.app.constants import SELF_REFERENCE_ID
from openapi_engine.app.introspection.type_shapes import (
    TypeKind,
    TypeShape,
    inspect_type,
    split_annotated,
)
from openapi_engine.app.schemas.schema import Schema, SchemaPlaceholder
from openapi_engine.app.services.generation_hooks import (
    DEFAULT_GENERATION_HOOKS,
    GenerationHook,
    SchemaGenerationContext,
)
from openapi_engine.app.services.schema_key import SchemaCacheKey

logger = logging.getLogger(__name__)


@dataclass
class BuildScope:
    """
    Per-build state: the root key and the shareable types met on the way.
    """

    key: SchemaCacheKey
    dependencies: Dict[SchemaCacheKey, None] = field(default_factory=dict)


@dataclass(frozen=True)
class SchemaBuildResult:
    schema: Schema
    dependencies: Tuple[SchemaCacheKey, ...]


def _enum_json_type(values: Sequence[Any]) -> Optional[str]:
    if not values:
        return None
    if all(isinstance(value, bool) for value in values):
        return "boolean"
    if all(isinstance(value, int) and not isinstance(value, bool) for value in values):
        return "integer"
    if all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in values):
        return "number"
    if all(isinstance(value, str) for value in values):
        return "string"
    return None


class SchemaBuilder:
    def __init__(
        self,
        *,
        naming_policy: Callable[[str], str] = lambda name: name,
        hooks: Sequence[GenerationHook] = DEFAULT_GENERATION_HOOKS,
    ) -> None:
        self._naming_policy = naming_policy
        self._hooks = tuple(hooks)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, key: SchemaCacheKey) -> SchemaBuildResult:
        scope = BuildScope(key=key)
        parameter = key.parameter

        schema = self._walk(
            key.type,
            scope,
            metadata=parameter.metadata if parameter else (),
            description=parameter.description if parameter else None,
            inline=True,
        )

        if parameter is not None and parameter.default is not None:
            schema.default = parameter.default

        self._resolve_self_references(schema, key.reference_id)

        if key.should_use_ref():
            schema.placeholder = SchemaPlaceholder(reference_id=key.reference_id)

        logger.debug(
            "built schema %s (%d dependencies)",
            key.reference_id,
            len(scope.dependencies),
        )
        return SchemaBuildResult(schema=schema, dependencies=tuple(scope.dependencies))

    def walk_inline(self, tp: Any, scope: BuildScope) -> Schema:
        return self._walk(tp, scope, inline=True)

    # ------------------------------------------------------------------
    # Structural walk
    # ------------------------------------------------------------------

    def _walk(
        self,
        annotation: Any,
        scope: BuildScope,
        metadata: Tuple[Any, ...] = (),
        description: Optional[str] = None,
        *,
        inline: bool = False,
    ) -> Schema:
        tp, annotated_metadata = split_annotated(annotation)
        metadata = annotated_metadata + tuple(metadata)
        shape = inspect_type(tp, self._naming_policy)

        if shape.is_shareable and not inline:
            return self._reference_placeholder(shape.type, scope)

        if shape.kind is TypeKind.NULLABLE:
            return self._nullable(shape, scope, metadata, description)

        schema = self._map_shape(shape, scope)

        context = SchemaGenerationContext(
            shape=shape,
            metadata=metadata,
            description=description,
            builder=self,
            scope=scope,
        )
        for hook in self._hooks:
            hook(context, schema)
        return schema

    def _reference_placeholder(self, tp: Any, scope: BuildScope) -> Schema:
        if scope.key.should_use_ref() and tp == scope.key.type:
            return Schema.placeholder_for(SELF_REFERENCE_ID)

        dependency = SchemaCacheKey.for_type(tp)
        scope.dependencies.setdefault(dependency, None)
        return Schema.placeholder_for(dependency.reference_id)

    def _nullable(
        self,
        shape: TypeShape,
        scope: BuildScope,
        metadata: Tuple[Any, ...],
        description: Optional[str],
    ) -> Schema:
        inner = self._walk(shape.item_type, scope, metadata, description)
        if inner.placeholder is not None:
            # a reference cannot carry siblings; wrap it
            return Schema(nullable=True, all_of=[inner], description=description)
        inner.nullable = True
        return inner

    def _map_shape(self, shape: TypeShape, scope: BuildScope) -> Schema:
        kind = shape.kind

        if kind in (TypeKind.PRIMITIVE, TypeKind.BINARY, TypeKind.ANY):
            return Schema()

        if kind in (TypeKind.ENUM, TypeKind.LITERAL):
            values = list(shape.enum_values)
            return Schema(type=_enum_json_type(values), enum=values)

        if kind is TypeKind.ARRAY:
            return Schema(type="array", items=self._walk(shape.item_type, scope))

        if kind is TypeKind.DICTIONARY:
            value_schema = (
                None
                if shape.value_type is typing.Any
                else self._walk(shape.value_type, scope)
            )
            return Schema(type="object", additional_properties=value_schema)

        if kind is TypeKind.UNION:
            return Schema(any_of=[self._walk(variant, scope) for variant in shape.variants])

        # TypeKind.OBJECT and TypeKind.POLYMORPHIC
        properties: Dict[str, Schema] = {}
        required = []
        for member in shape.members():
            properties[member.name] = self._walk(
                member.annotation,
                scope,
                member.metadata,
                member.description,
            )
            if member.required:
                required.append(member.name)
        return Schema(
            type="object",
            properties=properties,
            required=required or None,
        )

    # ------------------------------------------------------------------
    # Post-processing
    # ------------------------------------------------------------------

    def _resolve_self_references(self, schema: Schema, reference_id: str) -> None:
        pending = list(schema.children())
        while pending:
            child = pending.pop()
            if child.placeholder is not None and child.placeholder.reference_id == SELF_REFERENCE_ID:
                child.placeholder = SchemaPlaceholder(reference_id=reference_id)
            pending.extend(child.children())
