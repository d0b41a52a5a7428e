class GradientPassError(RuntimeError):
    """Base class for failures raised while building a gradient graph."""


class MissingAttributeError(GradientPassError):
    """Raised when a graph attribute required by a pass is absent."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(message or f"Gradient requires graph attribute '{key}'")


class SizeMismatchError(GradientPassError, ValueError):
    """Raised when grad_ys and grad_ys_out_grad differ in length."""


class NoGradientRuleError(GradientPassError, NotImplementedError):
    """Raised when a node reached in the backward pass has no gradient rule."""

    def __init__(self, op: str, node_name: str = ""):
        self.op = op
        self.node_name = node_name
        where = f" (node '{node_name}')" if node_name else ""
        super().__init__(f"No gradient rule registered for operator '{op}'{where}")


class ArityMismatchError(GradientPassError, ValueError):
    """Raised when a gradient rule returns the wrong number of input gradients."""


class GradientProtocolError(GradientPassError):
    """Raised when a contribution arrives after its entry was already aggregated."""
