from __future__ import annotations

from typing import Protocol

from openapi_engine.app.events.models import GenerationEvent


class GenerationEventEmitter(Protocol):
    """
    Interface for broadcasting generation observations.

    Implementations must be:
    - non-blocking (or minimally blocking)
    - fail-safe (emission failures must not abort generation)
    - observational only
    """

    async def emit(self, event: GenerationEvent) -> None:
        ...


class NullEventEmitter:
    """
    A safe no-op emitter.

    Used when nobody is listening, which is the default for every
    document service.
    """

    async def emit(self, event: GenerationEvent) -> None:
        return
