# grad_graphs/backend/registry.py
from typing import Callable, Dict, Optional


class KernelRegistry:
    # OpType -> numpy kernel(inputs, attrs) -> array or tuple of arrays
    _kernels: Dict[str, Callable] = {}

    @classmethod
    def has_kernel(cls, op_type: str) -> bool:
        return op_type in cls._kernels

    @classmethod
    def get_kernel(cls, op_type: str) -> Optional[Callable]:
        return cls._kernels.get(op_type, None)

    @classmethod
    def register(cls, op_type: str):
        def decorator(func):
            if op_type in cls._kernels:
                raise ValueError(f"Kernel for '{op_type}' is already registered")
            cls._kernels[op_type] = func
            return func

        return decorator
