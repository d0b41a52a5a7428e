# Expose main components for easy access
from .ir.node import Node, NodeEntry
from .ir.graph import Graph, GraphBuilder
from .ops.atomic_types import OpType
from .ops.registry import OpRegistry, DEFAULT_REGISTRY
from .passes.gradient import gradient, gradients
from .errors import (
    GradientPassError,
    MissingAttributeError,
    SizeMismatchError,
    NoGradientRuleError,
    ArityMismatchError,
)
