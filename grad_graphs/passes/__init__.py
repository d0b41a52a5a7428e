from .registry import PassRegistry, PassEntry
from .gradient import (
    GradEntry,
    gradient,
    gradients,
    default_aggregate_gradient,
    pairwise_aggregate_gradient,
    build_mirror_map,
    force_mirroring,
)

__all__ = [
    "PassRegistry",
    "PassEntry",
    "GradEntry",
    "gradient",
    "gradients",
    "default_aggregate_gradient",
    "pairwise_aggregate_gradient",
    "build_mirror_map",
    "force_mirroring",
]
