"""Query string and chunk decorators."""

from .chunk import (
    BUILTIN_DECORATORS,
    ChunkDecorator,
    MessageDecoratorChain,
    MessageDecoratorFn,
    NoopChunkDecorator,
)
from .query_string import (
    NoopQueryStringDecorator,
    ParameterQueryStringDecorator,
    QueryStringDecorator,
)

__all__ = [
    "BUILTIN_DECORATORS",
    "ChunkDecorator",
    "MessageDecoratorChain",
    "MessageDecoratorFn",
    "NoopChunkDecorator",
    "NoopQueryStringDecorator",
    "ParameterQueryStringDecorator",
    "QueryStringDecorator",
]
