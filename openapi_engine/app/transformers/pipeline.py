"""
Transformer pipelines.

Transformers are user-supplied mutation steps. They run strictly in
registration order, each fully awaited before the next starts, so every
transformer observes the cumulative effect of the ones before it.

A transformer is either an object with an async `transform` method or a
plain callable (sync or async) taking the same arguments.

IMPORTANT:
- Transformers never run concurrently for the same target.
- Exceptions propagate unchanged and abort document generation.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Protocol, Sequence

from openapi_engine.app.schemas.document import OpenApiDocument
from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.transformers.context import (
    DocumentTransformerContext,
    SchemaTransformerContext,
)

logger = logging.getLogger(__name__)


class SchemaTransformer(Protocol):
    async def transform(self, schema: Schema, context: SchemaTransformerContext) -> None:
        ...


class DocumentTransformer(Protocol):
    async def transform(
        self,
        document: OpenApiDocument,
        context: DocumentTransformerContext,
    ) -> None:
        ...


async def _invoke(transformer: Any, target: Any, context: Any) -> None:
    method = getattr(transformer, "transform", None)
    call = method if callable(method) else transformer
    result = call(target, context)
    if inspect.isawaitable(result):
        await result


def _describe(transformer: Any) -> str:
    return getattr(transformer, "__qualname__", None) or type(transformer).__qualname__


class SchemaTransformerPipeline:
    """
    Ordered schema transformers for one document.
    """

    def __init__(self, transformers: Sequence[Any]) -> None:
        # live view: transformers registered later still run
        self._transformers = transformers

    def __len__(self) -> int:
        return len(self._transformers)

    async def run(self, schema: Schema, context: SchemaTransformerContext) -> None:
        for transformer in list(self._transformers):
            logger.debug(
                "schema transformer %s on %r",
                _describe(transformer),
                context.type,
            )
            await _invoke(transformer, schema, context)


class DocumentTransformerPipeline:
    """
    Ordered document transformers for one document.
    """

    def __init__(self, transformers: Sequence[Any]) -> None:
        self._transformers = transformers

    def __len__(self) -> int:
        return len(self._transformers)

    async def run(self, document: OpenApiDocument, context: DocumentTransformerContext) -> None:
        for transformer in list(self._transformers):
            logger.debug("document transformer %s", _describe(transformer))
            await _invoke(transformer, document, context)
