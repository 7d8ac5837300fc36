"""
Schema service for one document name.

Owns the document's schema cache and turns Python types into cached
schemas:

    builder (pure walk) -> schema transformers -> commit -> dependencies

An entry is committed only after its transformers have completed, so a
failed or cancelled generation never leaves a half-transformed schema
behind for a later request to reuse.

Nested shareable types are reported by the builder as dependencies and
requested after the parent commits. Every caller walks the full
dependency closure before returning, so once get_or_create_schema
returns, every component the schema refers to is in the cache.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

import anyio

from openapi_engine.app.events import (
    GenerationEvent,
    GenerationEventEmitter,
    GenerationEventType,
    NullEventEmitter,
)
from openapi_engine.app.introspection.binary_types import seeded_binary_types
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.services.schema_builder import SchemaBuilder
from openapi_engine.app.services.schema_cache import SchemaCache
from openapi_engine.app.services.schema_key import ParameterContext, SchemaCacheKey
from openapi_engine.app.transformers.context import SchemaTransformerContext
from openapi_engine.app.transformers.pipeline import SchemaTransformerPipeline

logger = logging.getLogger(__name__)


def default_seed_schemas() -> Dict[SchemaCacheKey, Schema]:
    """
    Hand-built schemas for stream and file-like types.
    """
    seed: Dict[SchemaCacheKey, Schema] = {}
    for tp in seeded_binary_types():
        key = SchemaCacheKey.for_type(tp)
        result = SchemaBuilder().build(key)
        seed[key] = result.schema
    return seed


class SchemaService:
    def __init__(
        self,
        *,
        document_name: str,
        builder: Optional[SchemaBuilder] = None,
        transformers: Optional[SchemaTransformerPipeline] = None,
        cache: Optional[SchemaCache] = None,
        application_services: Optional[Any] = None,
        emitter: Optional[GenerationEventEmitter] = None,
    ) -> None:
        self.document_name = document_name
        self._builder = builder or SchemaBuilder()
        self._transformers = (
            transformers if transformers is not None else SchemaTransformerPipeline([])
        )
        self._cache = cache if cache is not None else SchemaCache(default_seed_schemas())
        self._application_services = application_services
        self._emitter = emitter or NullEventEmitter()

        self._dependencies: Dict[SchemaCacheKey, Tuple[SchemaCacheKey, ...]] = {}
        # created lazily, inside the event loop
        self._seed_lock: Optional[anyio.Lock] = None
        self._seeded_transformed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_or_create_schema(
        self,
        tp: Any,
        parameter: Optional[ParameterContext] = None,
    ) -> Schema:
        key = SchemaCacheKey.for_type(tp, parameter)
        schema = await self._cache.get_or_create(key, self._create_schema)
        await self._ensure_dependencies(key)
        return schema

    def schemas(self) -> Iterator[Tuple[SchemaCacheKey, Schema]]:
        """
        Snapshot of every committed schema, in commit order.
        """
        return self._cache.items()

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    async def transform_seeded_schemas(self) -> None:
        """
        Run schema transformers once over the pre-seeded entries.

        Seeded entries never pass through the builder, so they are
        transformed before the first document is assembled.
        """
        if self._seeded_transformed:
            return
        if self._seed_lock is None:
            self._seed_lock = anyio.Lock()

        async with self._seed_lock:
            if self._seeded_transformed:
                return
            if len(self._transformers):
                logger.debug(
                    "transforming %d seeded schemas for %s",
                    len(self._cache.seeded_keys),
                    self.document_name,
                )
            for key in self._cache.seeded_keys:
                schema = self._cache.get(key)
                if schema is not None:
                    await self._transformers.run(schema, self._context_for(key))
            self._seeded_transformed = True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context_for(self, key: SchemaCacheKey) -> SchemaTransformerContext:
        return SchemaTransformerContext(
            document_name=self.document_name,
            type=key.type,
            parameter=key.parameter,
            application_services=self._application_services,
        )

    async def _create_schema(self, key: SchemaCacheKey) -> Schema:
        result = self._builder.build(key)
        self._dependencies[key] = result.dependencies

        await self._transformers.run(result.schema, self._context_for(key))

        await self._emitter.emit(
            GenerationEvent(
                document_name=self.document_name,
                event_type=GenerationEventType.SCHEMA_CREATED,
                details={
                    "reference_id": key.reference_id,
                    "shared": key.should_use_ref(),
                    "dependencies": [dependency.reference_id for dependency in result.dependencies],
                },
            )
        )
        return result.schema

    async def _ensure_dependencies(self, key: SchemaCacheKey) -> None:
        seen = {key}
        pending = list(self._dependencies.get(key, ()))
        while pending:
            dependency = pending.pop(0)
            if dependency in seen:
                continue
            seen.add(dependency)
            await self._cache.get_or_create(dependency, self._create_schema)
            pending.extend(self._dependencies.get(dependency, ()))
