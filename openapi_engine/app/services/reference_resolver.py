"""
Reference resolver.

Second pass of document generation. Runs once all schemas of the
document have been generated and transformed:

1. Every cached schema published as a named component is copied into
   components.schemas under its reference id.
2. Operations are walked in path order, then operation-type order. For
   each operation: parameters, then request body content, then response
   content. Any fragment carrying a placeholder is replaced by a
   reference to its component.
3. The same rewrite applies to nested fragments (properties, items,
   additionalProperties, allOf, anyOf) and to every component body.
4. A oneOf branch that still carries a placeholder is a discriminated
   variant. Its full body is published as a new component named
   "Discriminated<ReferenceId>" and the branch becomes a reference to it.
5. Operation tags are collected into the document tag list, deduplicated
   by name in first-seen order.

IMPORTANT:
- A placeholder naming a component that was never populated is an
  internal consistency error and aborts the build.
- Resolution is idempotent. Resolving a resolved document changes nothing.
- Cached schemas are copied, never embedded, so the cache is not mutated.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from openapi_engine.app.constants import (
    COMPONENT_SCHEMA_PATH,
    discriminated_reference_id,
)
from openapi_engine.app.schemas.document import (
    OpenApiDocument,
    Operation,
    OperationType,
    Tag,
)
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.services.schema_key import SchemaCacheKey

logger = logging.getLogger(__name__)


class ReferenceResolutionError(RuntimeError):
    """
    Raised when a placeholder or discriminator mapping names a component
    that does not exist.
    """


class ReferenceResolver:
    def resolve(
        self,
        document: OpenApiDocument,
        schemas: Iterable[Tuple[SchemaCacheKey, Schema]],
    ) -> None:
        components = document.components.schemas

        # ------------------------------------------------------------
        # 1. Publish shared schemas
        # ------------------------------------------------------------
        for key, schema in schemas:
            if key.should_use_ref():
                components.setdefault(key.reference_id, schema.model_copy(deep=True))

        # ------------------------------------------------------------
        # 2. Operations
        # ------------------------------------------------------------
        for path, path_item in document.paths.items():
            for operation_type in OperationType:
                operation = path_item.get(operation_type)
                if operation is not None:
                    self._resolve_operation(operation, components, f"{operation_type.value} {path}")

        # ------------------------------------------------------------
        # 3. Component bodies (synthesized variants are appended as found)
        # ------------------------------------------------------------
        pending = list(components)
        while pending:
            name = pending.pop(0)
            body = components[name]
            body.placeholder = None
            before = set(components)
            self._rewrite_children(body, components, name)
            pending.extend(n for n in components if n not in before)

        self._validate_discriminators(components)

        document.components.schemas = dict(sorted(components.items()))

        # ------------------------------------------------------------
        # 4. Tags
        # ------------------------------------------------------------
        document.tags = self._collect_tags(document)

        logger.debug(
            "resolved %d components, %d tags",
            len(document.components.schemas),
            len(document.tags),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _resolve_operation(
        self,
        operation: Operation,
        components: Dict[str, Schema],
        where: str,
    ) -> None:
        for parameter in operation.parameters:
            if parameter.schema_ is not None:
                parameter.schema_ = self._rewrite(parameter.schema_, components, where)

        if operation.request_body is not None:
            for media_type in operation.request_body.content.values():
                if media_type.schema_ is not None:
                    media_type.schema_ = self._rewrite(media_type.schema_, components, where)

        for response in operation.responses.values():
            for media_type in response.content.values():
                if media_type.schema_ is not None:
                    media_type.schema_ = self._rewrite(media_type.schema_, components, where)

    # ------------------------------------------------------------------
    # Rewrite
    # ------------------------------------------------------------------

    def _rewrite(self, schema: Schema, components: Dict[str, Schema], where: str) -> Schema:
        if schema.is_reference:
            return schema

        if schema.placeholder is not None:
            reference_id = schema.placeholder.reference_id
            if reference_id not in components:
                raise ReferenceResolutionError(
                    f"{where}: placeholder refers to unknown component '{reference_id}'"
                )
            return Schema.reference_to(reference_id)

        self._rewrite_children(schema, components, where)
        return schema

    def _rewrite_children(self, schema: Schema, components: Dict[str, Schema], where: str) -> None:
        if schema.properties:
            schema.properties = {
                name: self._rewrite(child, components, where)
                for name, child in schema.properties.items()
            }
        if schema.items is not None:
            schema.items = self._rewrite(schema.items, components, where)
        if schema.additional_properties is not None:
            schema.additional_properties = self._rewrite(schema.additional_properties, components, where)
        if schema.all_of:
            schema.all_of = [self._rewrite(child, components, where) for child in schema.all_of]
        if schema.any_of:
            schema.any_of = [self._rewrite(child, components, where) for child in schema.any_of]
        if schema.one_of:
            schema.one_of = [self._promote_variant(child, components, where) for child in schema.one_of]

    def _promote_variant(self, branch: Schema, components: Dict[str, Schema], where: str) -> Schema:
        if branch.is_reference or branch.placeholder is None:
            return self._rewrite(branch, components, where)

        name = discriminated_reference_id(branch.placeholder.reference_id)
        branch.placeholder = None
        # component bodies are walked by the caller's work list
        components.setdefault(name, branch)
        return Schema.reference_to(name)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_discriminators(self, components: Dict[str, Schema]) -> None:
        for name, schema in components.items():
            if schema.discriminator is None:
                continue
            for value, target in schema.discriminator.mapping.items():
                target_id = _component_id(target)
                if target_id is None or target_id not in components:
                    raise ReferenceResolutionError(
                        f"{name}: discriminator value {value!r} maps to unknown component '{target}'"
                    )

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def _collect_tags(self, document: OpenApiDocument) -> List[Tag]:
        tags: Dict[str, Tag] = {tag.name: tag for tag in document.tags}
        for path_item in document.paths.values():
            for operation_type in OperationType:
                operation = path_item.get(operation_type)
                if operation is None:
                    continue
                for tag_name in operation.tags:
                    tags.setdefault(tag_name, Tag(name=tag_name))
        return list(tags.values())


def _component_id(path: str) -> Optional[str]:
    if not path.startswith(COMPONENT_SCHEMA_PATH):
        return None
    return path[len(COMPONENT_SCHEMA_PATH):]
