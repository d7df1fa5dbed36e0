"""Traversals over the flow call graph and screen navigation.

The ``calls`` relation is cyclic by nature (mutual recursion), so every
algorithm here tracks an explicit visited set and none of them recurse.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Iterable

from ..flows.models import CodeFlow
from ..screens.models import Screen
from .models import AnalysisRecord


def _adjacency(flows: Iterable[CodeFlow]) -> dict[str, list[str]]:
    return {f.id: list(f.calls) for f in flows}


def reachable_flows(flows: Iterable[CodeFlow], start_ids: Iterable[str]) -> list[str]:
    """Flow ids reachable from ``start_ids`` over ``calls`` (BFS order).

    Start ids that are not in ``flows`` are ignored.
    """
    adjacency = _adjacency(flows)
    visited: set[str] = set()
    order: list[str] = []
    queue: deque[str] = deque()
    for start in start_ids:
        if start in adjacency and start not in visited:
            visited.add(start)
            queue.append(start)

    while queue:
        node = queue.popleft()
        order.append(node)
        for neighbor in adjacency[node]:
            if neighbor in adjacency and neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)
    return order


def find_call_cycles(flows: Iterable[CodeFlow]) -> list[list[str]]:
    """Call cycles: strongly connected components of size > 1 and self loops.

    Tarjan's algorithm with an explicit call stack. Each cycle is returned
    sorted, and the list of cycles is sorted, so output is deterministic.
    """
    adjacency = _adjacency(flows)
    all_nodes = sorted(adjacency)

    counter = 0
    scc_stack: list[str] = []
    on_stack: set[str] = set()
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    components: list[set[str]] = []

    for root in all_nodes:
        if root in index:
            continue

        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        call_stack = [(root, iter([w for w in adjacency[root] if w in adjacency]))]

        while call_stack:
            v, it = call_stack[-1]
            pushed = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    call_stack.append((w, iter([n for n in adjacency[w] if n in adjacency])))
                    pushed = True
                    break
                elif w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if not pushed:
                call_stack.pop()
                if call_stack:
                    caller = call_stack[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[v])

                if lowlink[v] == index[v]:
                    component: set[str] = set()
                    while True:
                        w = scc_stack.pop()
                        on_stack.discard(w)
                        component.add(w)
                        if w == v:
                            break
                    components.append(component)

    cycles = []
    for component in components:
        if len(component) > 1:
            cycles.append(sorted(component))
        else:
            (node,) = component
            if node in adjacency[node]:
                cycles.append([node])
    return sorted(cycles)


def _route_pattern(route: str) -> re.Pattern:
    parts = []
    for segment in route.strip("/").split("/"):
        if segment.startswith(":") and segment.endswith("*"):
            parts.append(r"(?:/.*)?")
            continue
        if segment.startswith(":"):
            parts.append(r"/[^/]+")
        elif segment:
            parts.append("/" + re.escape(segment))
    return re.compile("^" + ("".join(parts) or "/") + "/?$")


def resolve_navigation(screens: Iterable[Screen]) -> dict[str, list[str]]:
    """Map each screen id to the ids of the screens it navigates to.

    Literal routes win over parameterized ones; a target that matches no
    screen is left out. Self navigation is ignored.
    """
    screens = list(screens)
    literal: dict[str, list[str]] = {}
    patterns: list[tuple[re.Pattern, str]] = []
    for screen in screens:
        if not screen.route_path.startswith("/"):
            continue
        if ":" in screen.route_path:
            patterns.append((_route_pattern(screen.route_path), screen.id))
        else:
            literal.setdefault(screen.route_path, []).append(screen.id)

    edges: dict[str, list[str]] = {}
    for screen in screens:
        targets: set[str] = set()
        for route in screen.navigates_to:
            matched = literal.get(route)
            if matched is None:
                matched = [sid for pattern, sid in patterns if pattern.match(route)]
            targets.update(matched)
        targets.discard(screen.id)
        edges[screen.id] = sorted(targets)
    return edges


def validate_integrity(record: AnalysisRecord) -> list[dict[str, Any]]:
    """Dangling ``flowIds`` and ``calls`` references in ``record``."""
    known = {f.id for f in record.flows}
    problems = []
    for screen in record.screens:
        for fid in screen.flow_ids:
            if fid not in known:
                problems.append({"owner": screen.id, "target": fid, "field": "flowIds"})
    for flow in record.flows:
        for target in flow.calls:
            if target not in known:
                problems.append({"owner": flow.id, "target": target, "field": "calls"})
    return problems
