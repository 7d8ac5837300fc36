from __future__ import annotations

import logging
import math
from typing import AsyncIterator

import anyio

from openapi_engine.app.events.models import GenerationEvent, GenerationEventType
from openapi_engine.app.events.emitter import GenerationEventEmitter

logger = logging.getLogger(__name__)

_TERMINAL_EVENTS = frozenset(
    {
        GenerationEventType.DOCUMENT_COMPLETED,
        GenerationEventType.DOCUMENT_FAILED,
    }
)


class MemoryQueueEventEmitter(GenerationEventEmitter):
    """
    Streams generation events to a single in-process consumer.

    The buffer is unbounded, so emitting never waits on the consumer.
    The stream ends after the document completes or fails.
    """

    def __init__(self) -> None:
        self._send, self._receive = anyio.create_memory_object_stream(math.inf)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: GenerationEvent) -> None:
        try:
            self._send.send_nowait(event)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("dropping %s event, stream is closed", event.event_type.value)
            return

        if event.event_type in _TERMINAL_EVENTS:
            await self.close()

    async def close(self) -> None:
        self._closed = True
        self._send.close()

    async def stream(self) -> AsyncIterator[GenerationEvent]:
        """
        Yield emitted events in order until the stream is closed.
        """
        async with self._receive:
            async for event in self._receive:
                yield event
