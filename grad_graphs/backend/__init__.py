from .registry import KernelRegistry
from .reference import evaluate_graph

__all__ = ["KernelRegistry", "evaluate_graph"]
