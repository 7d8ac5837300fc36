"""
Polymorphism metadata for class hierarchies.

A hierarchy root is marked with @polymorphic; each derived class declares
its discriminator value with @derived_type. The metadata lives on the root
class itself, so it travels with the type rather than with any registry.

    @polymorphic
    @dataclass
    class Shape:
        color: str

    @derived_type("triangle")
    @dataclass
    class Triangle(Shape):
        hypotenuse: int

Discriminator values are str or int. A single hierarchy may mix both, and
values are kept exactly as declared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, TypeVar, Union

from openapi_engine.app.constants import DEFAULT_DISCRIMINATOR_PROPERTY


POLYMORPHISM_ATTRIBUTE = "__openapi_polymorphism__"

T = TypeVar("T", bound=type)


class PolymorphismConfigurationError(TypeError):
    """
    Raised when a hierarchy is declared inconsistently.
    """


@dataclass(frozen=True)
class DerivedType:
    type: type
    discriminator: Union[str, int]


@dataclass
class PolymorphismOptions:
    property_name: str = DEFAULT_DISCRIMINATOR_PROPERTY
    derived_types: List[DerivedType] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Declaration
# ---------------------------------------------------------------------------


def polymorphic(
    cls: Optional[T] = None,
    *,
    discriminator_property: str = DEFAULT_DISCRIMINATOR_PROPERTY,
) -> Union[T, Callable[[T], T]]:
    """
    Mark a class as the root of a discriminated hierarchy.

    Usable bare (@polymorphic) or with a custom discriminator property
    (@polymorphic(discriminator_property="$kind")).
    """

    def decorate(root: T) -> T:
        if POLYMORPHISM_ATTRIBUTE in root.__dict__:
            raise PolymorphismConfigurationError(
                f"{root.__qualname__} is already declared polymorphic"
            )
        setattr(
            root,
            POLYMORPHISM_ATTRIBUTE,
            PolymorphismOptions(property_name=discriminator_property),
        )
        return root

    if cls is not None:
        return decorate(cls)
    return decorate


def register_derived_type(base: type, derived: type, discriminator: Union[str, int]) -> None:
    options = get_polymorphism_options(base)
    if options is None:
        raise PolymorphismConfigurationError(
            f"{base.__qualname__} is not declared polymorphic"
        )
    if not isinstance(derived, type) or not issubclass(derived, base) or derived is base:
        raise PolymorphismConfigurationError(
            f"{derived!r} is not a subclass of {base.__qualname__}"
        )
    if isinstance(discriminator, bool) or not isinstance(discriminator, (str, int)):
        raise PolymorphismConfigurationError(
            f"Discriminator for {derived.__qualname__} must be str or int, "
            f"got {discriminator!r}"
        )
    for existing in options.derived_types:
        if existing.type is derived:
            raise PolymorphismConfigurationError(
                f"{derived.__qualname__} is already registered on {base.__qualname__}"
            )
        # mapping keys are JSON object keys, so 1 and "1" collide
        if str(existing.discriminator) == str(discriminator):
            raise PolymorphismConfigurationError(
                f"Discriminator {discriminator!r} is already used by "
                f"{existing.type.__qualname__}"
            )
    options.derived_types.append(DerivedType(type=derived, discriminator=discriminator))


def derived_type(discriminator: Union[str, int]) -> Callable[[T], T]:
    """
    Register the decorated class on every polymorphic root in its MRO.
    """

    def decorate(derived: T) -> T:
        roots = [
            base
            for base in derived.__mro__[1:]
            if POLYMORPHISM_ATTRIBUTE in base.__dict__
        ]
        if not roots:
            raise PolymorphismConfigurationError(
                f"{derived.__qualname__} has no polymorphic base class"
            )
        for root in roots:
            register_derived_type(root, derived, discriminator)
        return derived

    return decorate


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def get_polymorphism_options(tp: Any) -> Optional[PolymorphismOptions]:
    """
    Options declared on `tp` itself. Inherited options do not count, so
    a derived class is walked as a plain object.
    """
    if not isinstance(tp, type):
        return None
    return tp.__dict__.get(POLYMORPHISM_ATTRIBUTE)
