"""
Single-flight schema cache.

Maps SchemaCacheKey -> Schema for one document name.

Guarantees:
- at most one builder execution per key at a time; concurrent callers
  await the in-flight result and receive the identical object
- an entry is committed only after its builder returns successfully
- builder failures are delivered to every waiter and nothing is committed
- if the building task is cancelled, nothing is committed and waiters
  retry, one of them becoming the new builder
- the cache never shrinks

IMPORTANT:
Builders must not await other keys of the same cache. Nested types are
requested after the parent commits (see SchemaService), which keeps
mutually recursive types from deadlocking across concurrent requests.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Iterator, Mapping, Optional, Tuple

import anyio

from openapi_engine.app.schemas.schema import Schema
from openapi_engine.app.services.schema_key import SchemaCacheKey

logger = logging.getLogger(__name__)

SchemaFactory = Callable[[SchemaCacheKey], Awaitable[Schema]]


class _InFlight:
    """
    Result slot shared by the builder and its waiters.
    """

    def __init__(self) -> None:
        self.done = anyio.Event()
        self.schema: Optional[Schema] = None
        self.error: Optional[BaseException] = None


class SchemaCache:
    def __init__(self, seed: Optional[Mapping[SchemaCacheKey, Schema]] = None) -> None:
        self._entries: Dict[SchemaCacheKey, Schema] = dict(seed or {})
        self._in_flight: Dict[SchemaCacheKey, _InFlight] = {}
        self._seeded = frozenset(self._entries)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __contains__(self, key: SchemaCacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: SchemaCacheKey) -> Optional[Schema]:
        return self._entries.get(key)

    def items(self) -> Iterator[Tuple[SchemaCacheKey, Schema]]:
        """
        Snapshot of committed entries, in commit order.
        """
        return iter(list(self._entries.items()))

    @property
    def seeded_keys(self) -> frozenset:
        return self._seeded

    # ------------------------------------------------------------------
    # Get or create
    # ------------------------------------------------------------------

    async def get_or_create(self, key: SchemaCacheKey, factory: SchemaFactory) -> Schema:
        cancelled_exc_class = anyio.get_cancelled_exc_class()

        while True:
            existing = self._entries.get(key)
            if existing is not None:
                return existing

            flight = self._in_flight.get(key)
            if flight is None:
                return await self._create(key, factory)

            await flight.done.wait()
            if flight.schema is not None:
                return flight.schema
            if flight.error is not None and not isinstance(flight.error, cancelled_exc_class):
                raise flight.error
            logger.debug("builder for %s was cancelled, retrying", key.reference_id)

    async def _create(self, key: SchemaCacheKey, factory: SchemaFactory) -> Schema:
        flight = _InFlight()
        self._in_flight[key] = flight
        try:
            schema = await factory(key)
        except BaseException as exc:
            flight.error = exc
            raise
        else:
            self._entries[key] = schema
            flight.schema = schema
            return schema
        finally:
            del self._in_flight[key]
            flight.done.set()
