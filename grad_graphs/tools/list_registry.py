from typing import Optional
from grad_graphs.ops.registry import DEFAULT_REGISTRY, OpRegistry
from grad_graphs.passes.registry import PassRegistry
from grad_graphs.backend.registry import KernelRegistry

# Ensure kernels are registered
import grad_graphs.backend.kernels


def check(registry: Optional[OpRegistry] = None):
    registry = registry or DEFAULT_REGISTRY
    for op_def in registry.list_ops():
        arity = "variadic" if op_def.num_inputs < 0 else op_def.num_inputs
        print(f"Op: {op_def.name}")
        print(f"    Inputs: {arity}")
        print(f"    Gradient: {'yes' if op_def.gradient else 'MISSING'}")
        print(f"    Kernel: {'yes' if KernelRegistry.has_kernel(op_def.name) else 'MISSING'}")
    for entry in PassRegistry.list_passes():
        deps = ", ".join(entry.depend_graph_attrs) or "-"
        print(f"Pass: {entry.name}")
        print(f"    Depends: {deps}")
        print(f"    Changes Graph: {entry.change_graph}")


if __name__ == "__main__":
    check()
