from .models import GenerationEvent, GenerationEventType
from .emitter import GenerationEventEmitter, NullEventEmitter
from .memory_emitter import MemoryQueueEventEmitter

__all__ = [
    "GenerationEvent",
    "GenerationEventType",
    "GenerationEventEmitter",
    "NullEventEmitter",
    "MemoryQueueEventEmitter",
]
