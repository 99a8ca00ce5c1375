from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping, Sequence

from .kernel_errors import InvalidInputError
from .logging_utils import log_event
from .settings import settings

Adjacency = Mapping[int, Iterable[int]]


def adjacency_from_friendships(
    user_ids: Iterable[int],
    friendships: Iterable[tuple[int, int]],
) -> dict[int, tuple[int, ...]]:
    """Build a symmetric adjacency snapshot from a friendship list.

    Neighbours keep the order in which friendships were listed; repeated
    pairs collapse into one edge.
    """
    neighbours: dict[int, dict[int, None]] = {int(uid): {} for uid in user_ids}
    for a, b in friendships:
        a, b = int(a), int(b)
        if a == b:
            raise InvalidInputError(
                reason_code="malformed_adjacency",
                message=f"user {a} cannot befriend itself",
                details={"node": a},
            )
        if a not in neighbours or b not in neighbours:
            raise InvalidInputError(
                reason_code="malformed_adjacency",
                message=f"friendship ({a}, {b}) references an unknown user",
                details={"edge": (a, b)},
            )
        neighbours[a][b] = None
        neighbours[b][a] = None
    return {uid: tuple(friends) for uid, friends in neighbours.items()}


def validate_adjacency(*, nodes: Sequence[int], adjacency: Adjacency) -> None:
    node_set = set(nodes)
    for node in nodes:
        for friend in adjacency.get(node, ()):
            if friend == node:
                raise InvalidInputError(
                    reason_code="malformed_adjacency",
                    message=f"self-loop on node {node}",
                    details={"node": node},
                )
            if friend not in node_set:
                raise InvalidInputError(
                    reason_code="malformed_adjacency",
                    message=f"node {node} references unknown node {friend}",
                    details={"edge": (node, friend)},
                )
            if node not in adjacency.get(friend, ()):
                raise InvalidInputError(
                    reason_code="malformed_adjacency",
                    message=f"edge ({node}, {friend}) is not symmetric",
                    details={"edge": (node, friend)},
                )


def _dfs_collect(start: int, adjacency: Adjacency, visited: set[int]) -> tuple[int, ...]:
    members: list[int] = []
    stack = [start]
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        members.append(node)
        # Reversed so neighbours are explored in adjacency order, as a recursive walk would.
        for friend in reversed(tuple(adjacency.get(node, ()))):
            if friend not in visited:
                stack.append(friend)
    return tuple(members)


def connected_components(
    *,
    nodes: Sequence[int],
    adjacency: Adjacency,
    validate: bool = True,
) -> tuple[tuple[int, ...], ...]:
    """Partition ``nodes`` into communities, in discovery order."""
    if validate:
        validate_adjacency(nodes=nodes, adjacency=adjacency)
    visited: set[int] = set()
    components: list[tuple[int, ...]] = []
    for node in nodes:
        if node in visited:
            continue
        components.append(_dfs_collect(node, adjacency, visited))
    return tuple(components)


def component_count(*, nodes: Sequence[int], adjacency: Adjacency, validate: bool = True) -> int:
    return len(connected_components(nodes=nodes, adjacency=adjacency, validate=validate))


def _bfs_distances(start: int, adjacency: Adjacency, *, goal: int | None = None) -> dict[int, int]:
    # Stops as soon as ``goal`` gets its distance, when one is given.
    distances = {start: 0}
    if start == goal:
        return distances
    queue: deque[int] = deque([start])
    while queue:
        current = queue.popleft()
        for friend in adjacency.get(current, ()):
            if friend not in distances:
                distances[friend] = distances[current] + 1
                if friend == goal:
                    return distances
                queue.append(friend)
    return distances


def bfs_shortest_path(*, adjacency: Adjacency, start: int, goal: int) -> int | None:
    """Number of edges on a shortest path from start to goal, None if unreachable."""
    return _bfs_distances(start, adjacency, goal=goal).get(goal)


def diameter(*, component: Sequence[int], adjacency: Adjacency) -> int:
    """Longest shortest path between any two members of a connected component.

    Brute force: one BFS per member, O(V * (V + E)). Fine for friendship
    graphs of a few thousand users, not meant for anything larger.
    """
    if len(component) < 2:
        return 0
    if len(component) > settings.diameter_warn_nodes:
        log_event(
            "diameter_large_component",
            level=logging.WARNING,
            component_nodes=len(component),
            warn_nodes=int(settings.diameter_warn_nodes),
        )
    longest = 0
    for idx, source in enumerate(component):
        distances = _bfs_distances(source, adjacency)
        # Each unordered pair is measured once, from its earlier member.
        for target in component[idx + 1 :]:
            hops = distances.get(target)
            if hops is not None:
                longest = max(longest, hops)
    return longest


def most_connected_community_with_stats(
    *,
    nodes: Sequence[int],
    adjacency: Adjacency,
    validate: bool = True,
) -> tuple[tuple[int, ...], dict[str, int]]:
    components = connected_components(nodes=nodes, adjacency=adjacency, validate=validate)
    best: tuple[int, ...] = ()
    best_diameter = -1
    for component in components:
        current = diameter(component=component, adjacency=adjacency)
        if current > best_diameter:
            best_diameter = current
            best = component
    stats = {
        "component_count": len(components),
        "diameter": max(0, best_diameter),
        "community_size": len(best),
    }
    log_event("community_analysis_complete", **stats)
    return best, stats


def most_connected_community(
    *,
    nodes: Sequence[int],
    adjacency: Adjacency,
    validate: bool = True,
) -> tuple[int, ...]:
    community, _stats = most_connected_community_with_stats(
        nodes=nodes,
        adjacency=adjacency,
        validate=validate,
    )
    return community
