"""
File: grad_graphs/ops/registry.py
"""

from dataclasses import dataclass
from typing import Dict, Any, Callable, List, Optional, Union

# (node, ordered output gradients) -> ordered input gradients
GradientRule = Callable[[Any, List[Any]], List[Any]]


@dataclass
class OpDef:
    name: str
    # -1 means variadic
    num_inputs: int = 1
    # Either a constant or a function of the node attributes
    num_outputs: Union[int, Callable[[Dict[str, Any]], int]] = 1
    description: str = ""
    gradient: Optional[GradientRule] = None

    def outputs_for(self, attrs: Dict[str, Any]) -> int:
        if callable(self.num_outputs):
            return int(self.num_outputs(attrs))
        return self.num_outputs


class OpRegistry:
    """
    Operator tag -> operator metadata, including the gradient rule used by the
    Gradient pass. Constructed once by the host and handed to passes.
    """

    def __init__(self):
        self._ops: Dict[str, OpDef] = {}

    def register(
        self,
        name: str,
        num_inputs: int = 1,
        num_outputs: Union[int, Callable[[Dict[str, Any]], int]] = 1,
        description: str = "",
    ) -> OpDef:
        if name in self._ops:
            raise ValueError(f"Operator '{name}' is already registered")
        op_def = OpDef(name, num_inputs, num_outputs, description)
        self._ops[name] = op_def
        return op_def

    def set_gradient(self, name: str):
        """Decorator attaching a gradient rule to an already registered op."""

        def decorator(func: GradientRule):
            op_def = self._ops.get(name)
            if op_def is None:
                raise ValueError(
                    f"Cannot set gradient of unregistered operator '{name}'"
                )
            op_def.gradient = func
            return func

        return decorator

    def get(self, name: str) -> Optional[OpDef]:
        return self._ops.get(name, None)

    def lookup_gradient_rule(self, name: str) -> Optional[GradientRule]:
        op_def = self._ops.get(name)
        return op_def.gradient if op_def else None

    def list_ops(self) -> List[OpDef]:
        return list(self._ops.values())

    def __contains__(self, name: str) -> bool:
        return name in self._ops


DEFAULT_REGISTRY = OpRegistry()


def register_op(
    name: str,
    num_inputs: int = 1,
    num_outputs: Union[int, Callable[[Dict[str, Any]], int]] = 1,
    description: str = "",
) -> OpDef:
    return DEFAULT_REGISTRY.register(name, num_inputs, num_outputs, description)


def register_gradient(name: str):
    return DEFAULT_REGISTRY.set_gradient(name)


def get_op_metadata(name: str) -> Optional[OpDef]:
    return DEFAULT_REGISTRY.get(name)
