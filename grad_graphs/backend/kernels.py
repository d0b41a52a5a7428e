import numpy as np
from .registry import KernelRegistry
from ..ops.atomic_types import OpType


@KernelRegistry.register(OpType.ADD)
def add_kernel(inputs, attrs=None):
    return np.add(inputs[0], inputs[1])


@KernelRegistry.register(OpType.MUL)
def mul_kernel(inputs, attrs=None):
    return np.multiply(inputs[0], inputs[1])


@KernelRegistry.register(OpType.DIVIDE)
def divide_kernel(inputs, attrs=None):
    return np.divide(inputs[0], inputs[1])


@KernelRegistry.register(OpType.NEGATE)
def negate_kernel(inputs, attrs=None):
    return np.negative(inputs[0])


@KernelRegistry.register(OpType.EXP)
def exp_kernel(inputs, attrs=None):
    return np.exp(inputs[0])


@KernelRegistry.register(OpType.SIN)
def sin_kernel(inputs, attrs=None):
    return np.sin(inputs[0])


@KernelRegistry.register(OpType.COS)
def cos_kernel(inputs, attrs=None):
    return np.cos(inputs[0])


@KernelRegistry.register(OpType.SQRT)
def sqrt_kernel(inputs, attrs=None):
    return np.sqrt(inputs[0])


@KernelRegistry.register(OpType.MUL_SCALAR)
def mul_scalar_kernel(inputs, attrs=None):
    return inputs[0] * attrs["scalar"]


@KernelRegistry.register(OpType.IDENTITY)
def identity_kernel(inputs, attrs=None):
    return np.array(inputs[0], copy=True)


@KernelRegistry.register(OpType.SUM)
def sum_kernel(inputs, attrs=None):
    return np.asarray(np.sum(inputs[0]))


@KernelRegistry.register(OpType.BROADCAST_LIKE)
def broadcast_like_kernel(inputs, attrs=None):
    a, like = inputs
    return np.broadcast_to(a, np.shape(like)).copy()


@KernelRegistry.register(OpType.SUM_LIKE)
def sum_like_kernel(inputs, attrs=None):
    g, like = np.asarray(inputs[0]), inputs[1]
    shape = np.shape(like)
    if g.ndim < len(shape):
        g = np.broadcast_to(g, shape)
    # Leading broadcast dims, then dims the target holds at size 1
    lead = g.ndim - len(shape)
    if lead > 0:
        g = g.sum(axis=tuple(range(lead)))
    axes = tuple(i for i, d in enumerate(shape) if d == 1 and g.shape[i] != 1)
    if axes:
        g = g.sum(axis=axes, keepdims=True)
    return np.array(g, copy=True).reshape(shape)


@KernelRegistry.register(OpType.SPLIT)
def split_kernel(inputs, attrs=None):
    return tuple(np.split(inputs[0], attrs["sections"], axis=0))


@KernelRegistry.register(OpType.SPLIT_LIKE)
def split_like_kernel(inputs, attrs=None):
    x, likes = inputs[0], inputs[1:]
    bounds = np.cumsum([np.shape(like)[0] for like in likes])[:-1]
    return tuple(np.split(x, bounds, axis=0))


@KernelRegistry.register(OpType.CONCAT)
def concat_kernel(inputs, attrs=None):
    return np.concatenate(inputs, axis=0)


@KernelRegistry.register(OpType.ZEROS_LIKE)
def zeros_like_kernel(inputs, attrs=None):
    return np.zeros_like(inputs[0])


@KernelRegistry.register(OpType.ZERO)
def zero_kernel(inputs, attrs=None):
    # 0-d so it broadcasts against whatever it is combined with
    return np.zeros((), dtype=np.float32)


@KernelRegistry.register(OpType.EWISE_SUM)
def ewise_sum_kernel(inputs, attrs=None):
    if not inputs:
        return np.zeros((), dtype=np.float32)
    out = np.array(inputs[0], copy=True)
    for val in inputs[1:]:
        out = out + val
    return out
