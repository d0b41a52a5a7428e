"""
File: grad_graphs/backend/reference.py

Numpy reference evaluator. The Gradient pass never computes values; this is
what hosts and tests use to check the graphs it produces.
"""

import numpy as np
from typing import Dict, List, Sequence, Tuple, Union
from .. import config
from ..ir.graph import Graph, topological_sort
from ..ir.node import Node, NodeEntry
from .registry import KernelRegistry
from . import kernels  # noqa: F401  registers the numpy kernels


def _run_node(node: Node, cache: Dict[Node, Tuple[np.ndarray, ...]], inputs):
    if node.is_variable:
        if "value" in node.attrs:
            return (np.asarray(node.attrs["value"]),)
        if node.name not in inputs:
            raise ValueError(f"Missing input data for variable: {node.name}")
        return (np.asarray(inputs[node.name]),)

    kernel = KernelRegistry.get_kernel(node.op)
    if kernel is None:
        raise NotImplementedError(f"No registered kernel for op '{node.op}'")

    input_vals = [cache[e.node][e.index] for e in node.inputs]
    result = kernel(input_vals, node.attrs)
    outputs = result if isinstance(result, tuple) else (result,)
    if len(outputs) != node.num_outputs:
        raise RuntimeError(
            f"Kernel for '{node.op}' produced {len(outputs)} outputs, "
            f"node '{node.name}' declares {node.num_outputs}"
        )
    return outputs


def evaluate_graph(
    graph: Union[Graph, Sequence[NodeEntry]],
    inputs: Dict[str, np.ndarray],
) -> List[np.ndarray]:
    """Evaluates every output of `graph`, feeding variables by name."""
    outputs = graph.outputs if isinstance(graph, Graph) else list(graph)
    cache: Dict[Node, Tuple[np.ndarray, ...]] = {}

    for node in topological_sort(outputs):
        if config.DEBUG_EXECUTION:
            print(f"[Reference] Evaluating node: {node}")
        cache[node] = _run_node(node, cache, inputs)

    return [cache[e.node][e.index] for e in outputs]
