"""Request interception pipeline for abacgate.

Maps requests to resources and applies input and output filtering around
the handler.
"""

from .states import PipelineState, VALID_TRANSITIONS
from .mapper import PathResourceMapper, ResourceRoute, DEFAULT_ROUTES
from .machine import Interception, InterceptionPipeline, RawBody

__all__ = [
    "DEFAULT_ROUTES",
    "Interception",
    "InterceptionPipeline",
    "PathResourceMapper",
    "PipelineState",
    "RawBody",
    "ResourceRoute",
    "VALID_TRANSITIONS",
]
