from .node import Node, NodeEntry, make_entry
from .graph import Graph, GraphBuilder, dfs_visit, topological_sort, get_variables

__all__ = [
    "Node",
    "NodeEntry",
    "make_entry",
    "Graph",
    "GraphBuilder",
    "dfs_visit",
    "topological_sort",
    "get_variables",
]
