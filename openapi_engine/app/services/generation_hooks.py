"""
Schema generation hooks.

The schema builder invokes every hook, in the fixed order of
DEFAULT_GENERATION_HOOKS, on each node it walks. Hooks rewrite the raw
fragment in place:

1. binary override       stream/file-like types become string/binary
2. primitive formats     language primitives get canonical (type, format)
3. validation            attached constraints become schema keywords
4. polymorphism          hierarchy roots get a discriminator and oneOf

Hooks are not invoked for nodes that were short-circuited to a
reference placeholder.
"""

from __future__ import annotations

import decimal
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import annotated_types
from pydantic.fields import FieldInfo

from openapi_engine.app.constants import component_path, discriminated_reference_id
from openapi_engine.app.introspection.binary_types import (
    is_binary_collection_type,
    is_binary_value_type,
)
from openapi_engine.app.introspection.primitives import primitive_type_and_format
from openapi_engine.app.introspection.reference_ids import get_schema_reference_id
from openapi_engine.app.introspection.type_shapes import (
    TypeKind,
    TypeShape,
    expand_metadata,
)
from openapi_engine.app.schemas.schema import (
    Discriminator,
    Schema,
    SchemaPlaceholder,
)


@dataclass
class SchemaGenerationContext:
    """
    What a hook knows about the node being generated.
    """

    shape: TypeShape
    metadata: Tuple[Any, ...]
    description: Optional[str]
    builder: Any
    scope: Any

    @property
    def type(self) -> Any:
        return self.shape.type

    def build_variant(self, tp: Any) -> Schema:
        """
        Walk a derived type inline, as a full object schema.
        """
        return self.builder.walk_inline(tp, self.scope)


GenerationHook = Callable[[SchemaGenerationContext, Schema], None]


# ---------------------------------------------------------------------------
# 1. Binary override
# ---------------------------------------------------------------------------


def apply_binary_override(context: SchemaGenerationContext, schema: Schema) -> None:
    tp = context.type
    if is_binary_collection_type(tp):
        schema.clear()
        schema.type = "array"
        schema.items = Schema(type="string", format="binary")
    elif is_binary_value_type(tp):
        schema.clear()
        schema.type = "string"
        schema.format = "binary"


# ---------------------------------------------------------------------------
# 2. Primitive type/format normalization
# ---------------------------------------------------------------------------


def apply_primitive_formats(context: SchemaGenerationContext, schema: Schema) -> None:
    if context.shape.kind is not TypeKind.PRIMITIVE:
        return
    type_and_format = primitive_type_and_format(context.type)
    if type_and_format is None:
        return
    schema.type, schema.format = type_and_format


# ---------------------------------------------------------------------------
# 3. Validation constraints
# ---------------------------------------------------------------------------


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, decimal.Decimal):
        return float(value)
    return None


def apply_validation_constraints(context: SchemaGenerationContext, schema: Schema) -> None:
    if context.description and schema.description is None:
        schema.description = context.description

    is_array = schema.type == "array"

    for item in expand_metadata(context.metadata):
        if isinstance(item, FieldInfo):
            if item.description and schema.description is None:
                schema.description = item.description
            continue

        if isinstance(item, annotated_types.Gt) and _number(item.gt) is not None:
            schema.minimum = _number(item.gt)
            schema.exclusive_minimum = True
        elif isinstance(item, annotated_types.Ge) and _number(item.ge) is not None:
            schema.minimum = _number(item.ge)
        elif isinstance(item, annotated_types.Lt) and _number(item.lt) is not None:
            schema.maximum = _number(item.lt)
            schema.exclusive_maximum = True
        elif isinstance(item, annotated_types.Le) and _number(item.le) is not None:
            schema.maximum = _number(item.le)
        elif isinstance(item, annotated_types.MultipleOf) and _number(item.multiple_of) is not None:
            schema.multiple_of = _number(item.multiple_of)
        elif isinstance(item, annotated_types.MinLen):
            if is_array:
                schema.min_items = item.min_length
            else:
                schema.min_length = item.min_length
        elif isinstance(item, annotated_types.MaxLen):
            if is_array:
                schema.max_items = item.max_length
            else:
                schema.max_length = item.max_length
        else:
            pattern = getattr(item, "pattern", None)
            if isinstance(pattern, re.Pattern):
                pattern = pattern.pattern
            if isinstance(pattern, str):
                schema.pattern = pattern


# ---------------------------------------------------------------------------
# 4. Polymorphism
# ---------------------------------------------------------------------------


def apply_polymorphism(context: SchemaGenerationContext, schema: Schema) -> None:
    options = context.shape.polymorphism
    if context.shape.kind is not TypeKind.POLYMORPHIC or options is None:
        return

    property_name = options.property_name
    discriminator = Discriminator(property_name=property_name)
    variants: List[Schema] = []

    for derived in options.derived_types:
        variant = context.build_variant(derived.type)

        properties = {property_name: Schema(enum=[derived.discriminator])}
        properties.update(
            (name, value)
            for name, value in (variant.properties or {}).items()
            if name != property_name
        )
        variant.properties = properties
        variant.required = [property_name] + [
            name for name in (variant.required or []) if name != property_name
        ]

        reference_id = get_schema_reference_id(derived.type)
        variant.placeholder = SchemaPlaceholder(reference_id=reference_id)

        discriminator.mapping[derived.discriminator] = component_path(
            discriminated_reference_id(reference_id)
        )
        variants.append(variant)

    schema.type = "object"
    schema.discriminator = discriminator
    schema.one_of = variants


DEFAULT_GENERATION_HOOKS: Tuple[GenerationHook, ...] = (
    apply_binary_override,
    apply_primitive_formats,
    apply_validation_constraints,
    apply_polymorphism,
)
