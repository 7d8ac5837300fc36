"""
Schema fragment model.

A Schema is the recursive, mutable description of a value's shape as it
appears in an OpenAPI 3.0 document. Instances are created once by the
schema builder, mutated in place by schema transformers and by the
reference resolver, and treated as read-only once embedded in a
finished document.

IMPORTANT:
- Property order is declaration order and MUST be preserved.
- A schema with `reference` set MUST NOT carry other structural fields.
- `placeholder` is transient. It marks a fragment that the reference
  resolver will turn into a named reference, and is never serialized.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
)

from openapi_engine.app.constants import component_path


DiscriminatorValue = Union[int, str]


class SchemaReference(BaseModel):
    """
    Pointer to a named entry of the document's component table.
    """

    id: str = Field(..., description="Reference name of the target component")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def path(self) -> str:
        return component_path(self.id)


class SchemaPlaceholder(BaseModel):
    """
    Transient "this fragment should become reference X" marker.

    reference_id is either a concrete reference name or the
    self-reference marker "#" while the owning type is still being walked.
    """

    reference_id: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class Discriminator(BaseModel):
    """
    Discriminator of a polymorphic schema.

    Mapping keys keep the kind they were declared with. A hierarchy may mix
    integer and string values across branches.
    """

    property_name: str = Field(..., alias="propertyName")
    mapping: Dict[DiscriminatorValue, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Schema(BaseModel):
    """
    A single schema fragment.
    """

    # ------------------------------------------------------------------
    # Core keywords
    # ------------------------------------------------------------------
    type: Optional[str] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    nullable: Optional[bool] = None
    default: Optional[Any] = None
    example: Optional[Any] = None
    enum: Optional[List[Any]] = None

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    properties: Optional[Dict[str, "Schema"]] = None
    required: Optional[List[str]] = None
    items: Optional["Schema"] = None
    additional_properties: Optional["Schema"] = Field(
        None, alias="additionalProperties"
    )

    # ------------------------------------------------------------------
    # Combinators and polymorphism
    # ------------------------------------------------------------------
    all_of: Optional[List["Schema"]] = Field(None, alias="allOf")
    one_of: Optional[List["Schema"]] = Field(None, alias="oneOf")
    any_of: Optional[List["Schema"]] = Field(None, alias="anyOf")
    discriminator: Optional[Discriminator] = None

    # ------------------------------------------------------------------
    # Validation constraints
    # ------------------------------------------------------------------
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[bool] = Field(None, alias="exclusiveMinimum")
    exclusive_maximum: Optional[bool] = Field(None, alias="exclusiveMaximum")
    multiple_of: Optional[float] = Field(None, alias="multipleOf")
    min_length: Optional[int] = Field(None, alias="minLength")
    max_length: Optional[int] = Field(None, alias="maxLength")
    pattern: Optional[str] = None
    min_items: Optional[int] = Field(None, alias="minItems")
    max_items: Optional[int] = Field(None, alias="maxItems")

    # ------------------------------------------------------------------
    # References, extensions and transient markers (serialized manually)
    # ------------------------------------------------------------------
    reference: Optional[SchemaReference] = Field(None, exclude=True)
    extensions: Dict[str, Any] = Field(default_factory=dict, exclude=True)
    placeholder: Optional[SchemaPlaceholder] = Field(None, exclude=True)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def reference_to(cls, reference_id: str) -> "Schema":
        return cls(reference=SchemaReference(id=reference_id))

    @classmethod
    def placeholder_for(cls, reference_id: str) -> "Schema":
        return cls(placeholder=SchemaPlaceholder(reference_id=reference_id))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def is_reference(self) -> bool:
        return self.reference is not None

    def children(self) -> Iterator["Schema"]:
        """
        Yield every directly nested schema, in document order.
        """
        if self.properties:
            yield from self.properties.values()
        if self.items is not None:
            yield self.items
        if self.additional_properties is not None:
            yield self.additional_properties
        for combinator in (self.all_of, self.one_of, self.any_of):
            if combinator:
                yield from combinator

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """
        Reset every keyword to its default, in place.
        """
        for name, field in type(self).model_fields.items():
            setattr(self, name, field.get_default(call_default_factory=True))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        if self.reference is not None:
            return {"$ref": self.reference.path}
        data = handler(self)
        for name, value in self.extensions.items():
            data[name if name.startswith("x-") else f"x-{name}"] = value
        return data

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


Schema.model_rebuild()
