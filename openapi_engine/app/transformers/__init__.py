from .context import DocumentTransformerContext, SchemaTransformerContext
from .pipeline import (
    DocumentTransformer,
    DocumentTransformerPipeline,
    SchemaTransformer,
    SchemaTransformerPipeline,
)

__all__ = [
    "DocumentTransformerContext",
    "SchemaTransformerContext",
    "DocumentTransformer",
    "DocumentTransformerPipeline",
    "SchemaTransformer",
    "SchemaTransformerPipeline",
]
