"""
Type introspection.

Classifies a Python annotation into a closed set of shapes the schema
builder knows how to render, and enumerates the declared members of
object types. Nothing beyond "list the declared members and their
declared types" is assumed of a class.

Supported object kinds are dataclasses and pydantic models, including
generic dataclasses parametrised with concrete types and parametrised
pydantic generic models. Anything unrecognised raises
UnsupportedTypeError; callers never receive a degenerate shape.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import annotated_types
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from openapi_engine.app.introspection.binary_types import is_binary_type
from openapi_engine.app.introspection.polymorphism import (
    PolymorphismOptions,
    get_polymorphism_options,
)
from openapi_engine.app.introspection.primitives import primitive_kind


class UnsupportedTypeError(TypeError):
    """
    Raised when no schema can be generated for a type.
    """

    def __init__(self, tp: Any, reason: str) -> None:
        self.type = tp
        super().__init__(f"Cannot generate a schema for {tp!r}: {reason}")


class TypeKind(str, enum.Enum):
    PRIMITIVE = "primitive"
    BINARY = "binary"
    ENUM = "enum"
    LITERAL = "literal"
    ARRAY = "array"
    DICTIONARY = "dictionary"
    NULLABLE = "nullable"
    UNION = "union"
    OBJECT = "object"
    POLYMORPHIC = "polymorphic"
    ANY = "any"


# Kinds that are published as named components
SHAREABLE_KINDS = frozenset({TypeKind.OBJECT, TypeKind.POLYMORPHIC, TypeKind.ENUM})


@dataclass(frozen=True)
class MemberInfo:
    """
    A declared member of an object type.
    """

    name: str
    attribute: str
    annotation: Any
    required: bool
    metadata: Tuple[Any, ...] = ()
    description: Optional[str] = None


@dataclass
class TypeShape:
    kind: TypeKind
    type: Any
    item_type: Any = None
    value_type: Any = None
    variants: Tuple[Any, ...] = ()
    enum_values: Tuple[Any, ...] = ()
    polymorphism: Optional[PolymorphismOptions] = None
    _members: Optional[Callable[[], List[MemberInfo]]] = field(default=None, repr=False)

    @property
    def is_shareable(self) -> bool:
        return self.kind in SHAREABLE_KINDS

    def members(self) -> List[MemberInfo]:
        if self._members is None:
            return []
        return self._members()


# ---------------------------------------------------------------------------
# Annotation helpers
# ---------------------------------------------------------------------------

_ARRAY_ORIGINS = frozenset(
    {
        list,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.deque,
    }
)

_DICTIONARY_ORIGINS = frozenset(
    {dict, collections.abc.Mapping, collections.abc.MutableMapping}
)

_UNION_ORIGINS = (typing.Union, types.UnionType)

NONE_TYPE = type(None)


def split_annotated(annotation: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """
    Strip typing.Annotated, returning the bare type and its extras.
    """
    metadata: Tuple[Any, ...] = ()
    while typing.get_origin(annotation) is typing.Annotated:
        metadata = tuple(annotation.__metadata__) + metadata
        annotation = annotation.__origin__
    return annotation, metadata


def _substitute(annotation: Any, mapping: Dict[Any, Any]) -> Any:
    """
    Replace TypeVars in `annotation` with concrete types from `mapping`.
    """
    if not mapping:
        return annotation
    if isinstance(annotation, typing.TypeVar):
        return mapping.get(annotation, annotation)

    base, metadata = split_annotated(annotation)
    if metadata:
        return typing.Annotated[(_substitute(base, mapping), *metadata)]

    args = typing.get_args(annotation)
    if not args or typing.get_origin(annotation) is typing.Literal:
        return annotation
    new_args = tuple(_substitute(arg, mapping) for arg in args)
    if new_args == args:
        return annotation
    if isinstance(annotation, types.UnionType):
        return typing.Union[new_args]
    if isinstance(annotation, types.GenericAlias):
        return types.GenericAlias(typing.get_origin(annotation), new_args)
    return annotation.copy_with(new_args)


def _is_pydantic_model(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def _is_object_type(tp: Any) -> bool:
    return isinstance(tp, type) and (dataclasses.is_dataclass(tp) or _is_pydantic_model(tp))


def _unbound_parameters(tp: type) -> Tuple[Any, ...]:
    if _is_pydantic_model(tp):
        metadata = getattr(tp, "__pydantic_generic_metadata__", None) or {}
        return tuple(metadata.get("parameters", ()))
    return tuple(getattr(tp, "__parameters__", ()))


# ---------------------------------------------------------------------------
# Member enumeration
# ---------------------------------------------------------------------------


def _dataclass_members(
    cls: type,
    naming_policy: Callable[[str], str],
    type_arguments: Dict[Any, Any],
) -> List[MemberInfo]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as exc:
        raise UnsupportedTypeError(cls, f"unresolvable annotations ({exc})") from exc

    members = []
    for item in dataclasses.fields(cls):
        annotation = _substitute(hints.get(item.name, Any), type_arguments)
        required = (
            item.default is dataclasses.MISSING
            and item.default_factory is dataclasses.MISSING
        )
        members.append(
            MemberInfo(
                name=item.metadata.get("alias") or naming_policy(item.name),
                attribute=item.name,
                annotation=annotation,
                required=required,
                metadata=tuple(item.metadata.get("constraints", ())),
                description=item.metadata.get("description"),
            )
        )
    return members


def _pydantic_members(
    cls: type,
    naming_policy: Callable[[str], str],
) -> List[MemberInfo]:
    members = []
    for name, info in cls.model_fields.items():
        alias = info.serialization_alias or info.alias
        members.append(
            MemberInfo(
                name=alias or naming_policy(name),
                attribute=name,
                annotation=info.annotation,
                required=info.is_required(),
                metadata=tuple(info.metadata),
                description=info.description,
            )
        )
    return members


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def inspect_type(tp: Any, naming_policy: Callable[[str], str] = lambda name: name) -> TypeShape:
    """
    Classify `tp` (without Annotated wrappers) into a TypeShape.
    """
    if tp is Any or tp is object:
        return TypeShape(kind=TypeKind.ANY, type=tp)

    if tp is None or tp is NONE_TYPE:
        raise UnsupportedTypeError(tp, "None is only valid inside Optional[...]")

    if isinstance(tp, typing.TypeVar):
        raise UnsupportedTypeError(tp, "unbound type variable")

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    # Nullable and unions
    if origin in _UNION_ORIGINS:
        non_null = tuple(arg for arg in args if arg is not NONE_TYPE)
        if len(non_null) < len(args):
            inner = non_null[0] if len(non_null) == 1 else typing.Union[non_null]
            return TypeShape(kind=TypeKind.NULLABLE, type=tp, item_type=inner)
        return TypeShape(kind=TypeKind.UNION, type=tp, variants=non_null)

    if origin is typing.Literal:
        return TypeShape(kind=TypeKind.LITERAL, type=tp, enum_values=tuple(args))

    # Stream and file-like types are checked before any structural match
    if is_binary_type(tp):
        return TypeShape(kind=TypeKind.BINARY, type=tp)

    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return TypeShape(
            kind=TypeKind.ENUM,
            type=tp,
            enum_values=tuple(member.value for member in tp),
        )

    if primitive_kind(tp) is not None:
        return TypeShape(kind=TypeKind.PRIMITIVE, type=tp)

    # Parametrised generics
    if origin is not None:
        if origin in _ARRAY_ORIGINS:
            return TypeShape(kind=TypeKind.ARRAY, type=tp, item_type=args[0] if args else Any)
        if origin is tuple:
            return TypeShape(kind=TypeKind.ARRAY, type=tp, item_type=_tuple_item_type(args))
        if origin in _DICTIONARY_ORIGINS:
            return TypeShape(
                kind=TypeKind.DICTIONARY,
                type=tp,
                value_type=args[1] if len(args) == 2 else Any,
            )
        if dataclasses.is_dataclass(origin):
            parameters = getattr(origin, "__parameters__", ())
            type_arguments = dict(zip(parameters, args))
            return TypeShape(
                kind=TypeKind.OBJECT,
                type=tp,
                _members=lambda: _dataclass_members(origin, naming_policy, type_arguments),
            )
        raise UnsupportedTypeError(tp, f"unsupported generic origin {origin!r}")

    # Bare containers
    if tp in (list, set, frozenset, tuple):
        return TypeShape(kind=TypeKind.ARRAY, type=tp, item_type=Any)
    if tp is dict:
        return TypeShape(kind=TypeKind.DICTIONARY, type=tp, value_type=Any)

    if _is_object_type(tp):
        if _unbound_parameters(tp):
            raise UnsupportedTypeError(tp, "generic type used without type arguments")

        if _is_pydantic_model(tp):
            members = lambda: _pydantic_members(tp, naming_policy)
        else:
            members = lambda: _dataclass_members(tp, naming_policy, {})

        options = get_polymorphism_options(tp)
        if options is not None and options.derived_types:
            # roots keep their own members under the discriminator
            return TypeShape(
                kind=TypeKind.POLYMORPHIC,
                type=tp,
                polymorphism=options,
                _members=members,
            )
        return TypeShape(kind=TypeKind.OBJECT, type=tp, _members=members)

    raise UnsupportedTypeError(
        tp, "only primitives, enums, collections, dataclasses and pydantic models are supported"
    )


def _tuple_item_type(args: Tuple[Any, ...]) -> Any:
    if not args:
        return Any
    if len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    distinct = list(dict.fromkeys(args))
    if len(distinct) == 1:
        return distinct[0]
    return typing.Union[tuple(distinct)]


def is_shareable_type(tp: Any) -> bool:
    base, _ = split_annotated(tp)
    return inspect_type(base).is_shareable


def expand_metadata(metadata: Tuple[Any, ...]) -> Tuple[Any, ...]:
    """
    Flatten grouped metadata (annotated_types.Len, Interval,
    pydantic StringConstraints) and FieldInfo extras into single items.
    """
    expanded: List[Any] = []
    for item in metadata:
        if isinstance(item, FieldInfo):
            expanded.extend(expand_metadata(tuple(item.metadata)))
            expanded.append(item)
        elif isinstance(item, annotated_types.GroupedMetadata):
            expanded.extend(expand_metadata(tuple(item)))
        else:
            expanded.append(item)
    return tuple(expanded)
