# grad_graphs/passes/registry.py
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence
from ..errors import MissingAttributeError


def _accepted_kwargs(func: Callable, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    params = inspect.signature(func).parameters
    if any(p.kind == p.VAR_KEYWORD for p in params.values()):
        return kwargs
    return {k: v for k, v in kwargs.items() if k in params}


@dataclass
class PassEntry:
    name: str
    body: Callable
    description: str = ""
    # True when the pass returns a graph with a different structure
    change_graph: bool = False
    depend_graph_attrs: List[str] = field(default_factory=list)
    provide_graph_attrs: List[str] = field(default_factory=list)


class PassRegistry:
    # Pass name -> entry
    _passes: Dict[str, PassEntry] = {}

    @classmethod
    def register(
        cls,
        name: str,
        description: str = "",
        change_graph: bool = False,
        depend_graph_attrs: Sequence[str] = (),
        provide_graph_attrs: Sequence[str] = (),
    ):
        def decorator(func):
            if name in cls._passes:
                raise ValueError(f"Pass '{name}' is already registered")
            cls._passes[name] = PassEntry(
                name,
                func,
                description,
                change_graph,
                list(depend_graph_attrs),
                list(provide_graph_attrs),
            )
            return func

        return decorator

    @classmethod
    def get(cls, name: str) -> PassEntry:
        entry = cls._passes.get(name)
        if entry is None:
            raise ValueError(f"Cannot find pass '{name}' in the registry")
        return entry

    @classmethod
    def list_passes(cls) -> List[PassEntry]:
        return list(cls._passes.values())

    @classmethod
    def apply_passes(cls, graph, names: Sequence[str], **kwargs):
        """
        Runs the named passes in order. Each pass receives the graph returned
        by the previous one. Extra keyword arguments go to each pass whose
        signature accepts them.
        """
        for name in names:
            entry = cls.get(name)
            for key in entry.depend_graph_attrs:
                if not graph.has_attr(key):
                    raise MissingAttributeError(
                        key,
                        f"Graph attr dependency '{key}' is missing in pass '{name}'",
                    )
            graph = entry.body(graph, **_accepted_kwargs(entry.body, kwargs))
        return graph
