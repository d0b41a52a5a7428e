class OpType:
    # --- Math ---
    ADD = "Add"
    MUL = "Mul"
    DIVIDE = "Divide"
    NEGATE = "Negate"
    EXP = "Exp"
    SIN = "Sin"
    COS = "Cos"
    SQRT = "Sqrt"
    MUL_SCALAR = "MulScalar"
    IDENTITY = "Identity"

    # --- Reduction ---
    SUM = "Sum"
    BROADCAST_LIKE = "BroadcastLike"
    SUM_LIKE = "SumLike"

    # --- Manipulation ---
    SPLIT = "Split"
    SPLIT_LIKE = "SplitLike"
    CONCAT = "Concat"
    ZEROS_LIKE = "ZerosLike"

    # --- Gradient aggregation ---
    ZERO = "__zero__"
    EWISE_SUM = "__ewise_sum__"

    @classmethod
    def is_atomic(cls, op_type: str) -> bool:
        """Returns True if the op_type is one of the built-in operators."""
        return op_type in [
            v
            for k, v in cls.__dict__.items()
            if not k.startswith("_") and isinstance(v, str)
        ]
