"""Root set resolution and reachability over the call graph."""

from collections import deque
from collections.abc import Iterable

from noirlint.core.call_graph import CallGraph
from noirlint.core.models import FunctionSymbol


def resolve_roots(symbols: Iterable[FunctionSymbol]) -> frozenset[str]:
    """Ids of symbols that are used from outside the package: public functions and entry points."""
    return frozenset(symbol.id for symbol in symbols if symbol.is_root)


def compute_reachable(graph: CallGraph, roots: Iterable[str]) -> frozenset[str]:
    """Every node reachable from `roots` by following edges, roots included.

    Each node is expanded at most once, so cycles and self-calls terminate and
    the cost is linear in the size of the graph.
    """
    reachable: set[str] = set()
    queue: deque[str] = deque(root for root in roots if root in graph.nodes)
    while queue:
        node = queue.popleft()
        if node in reachable:
            continue
        reachable.add(node)
        for target in graph.successors(node):
            if target not in reachable:
                queue.append(target)
    return frozenset(reachable)
