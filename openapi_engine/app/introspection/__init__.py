from .polymorphism import (
    PolymorphismConfigurationError,
    derived_type,
    polymorphic,
    register_derived_type,
)
from .primitives import Double, Float32, Int32, Int64
from .binary_types import UploadFileCollection
from .reference_ids import get_schema_reference_id
from .type_shapes import TypeKind, TypeShape, UnsupportedTypeError, inspect_type

__all__ = [
    "PolymorphismConfigurationError",
    "derived_type",
    "polymorphic",
    "register_derived_type",
    "Double",
    "Float32",
    "Int32",
    "Int64",
    "UploadFileCollection",
    "get_schema_reference_id",
    "TypeKind",
    "TypeShape",
    "UnsupportedTypeError",
    "inspect_type",
]
