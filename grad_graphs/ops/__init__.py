from .atomic_types import OpType
from .registry import (
    OpDef,
    OpRegistry,
    DEFAULT_REGISTRY,
    register_op,
    register_gradient,
    get_op_metadata,
)

# Registers the built-in operators and gradient rules in DEFAULT_REGISTRY
from . import atomic

__all__ = [
    "OpType",
    "OpDef",
    "OpRegistry",
    "DEFAULT_REGISTRY",
    "register_op",
    "register_gradient",
    "get_op_metadata",
]
