from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkx as nx

from .models import Activity, ScheduleNode

logger = logging.getLogger(__name__)

CYCLE_WARNING = "The network contains a cycle{detail}. Remove circular dependencies and try again."


@dataclass
class ActivityNetwork:
    """Validated nodes in input order plus the predecessor -> successor edge list."""

    nodes: Dict[str, ScheduleNode] = field(default_factory=dict)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def node_ids(self) -> List[str]:
        return list(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


def _coerce(record: Any) -> Optional[Activity]:
    try:
        return Activity.from_record(record)
    except (AttributeError, TypeError, ValueError, OverflowError):
        return None


def build_network(activities: Iterable[Any], log: Optional[List[str]] = None) -> Optional[ActivityNetwork]:
    """
    Validate raw activities and build the working network.

    Invalid records (empty name, non-finite or non-positive duration) and
    repeated ids are dropped without a signal. Self references are removed
    silently; references to ids that did not survive validation are removed
    with one warning per affected activity.

    Returns:
        The network, or None when fewer than two activities survive.
    """
    log = log if log is not None else []
    valid: List[Activity] = []
    seen: set[str] = set()
    for record in activities:
        activity = _coerce(record)
        if activity is None or not activity.is_valid or activity.id in seen:
            continue
        seen.add(activity.id)
        valid.append(activity)

    log.append(f"Validated activities: {len(valid)}")
    if len(valid) < 2:
        log.append("Insufficient input: at least two valid activities are required.")
        return None

    network = ActivityNetwork()
    for activity in valid:
        preds = [p for p in activity.predecessor_ids if p != activity.id]
        unknown = [p for p in preds if p not in seen]
        if unknown:
            preds = [p for p in preds if p in seen]
            message = f"Activity {activity.id}: removed unknown predecessors ({', '.join(unknown)})."
            network.warnings.append(message)
            log.append(message)
            logger.debug("Pruned predecessors %s from %s", unknown, activity.id)
        network.nodes[activity.id] = ScheduleNode(
            id=activity.id,
            name=activity.name,
            duration=activity.duration,
            predecessor_ids=preds,
        )

    for node in network.nodes.values():
        for pred_id in node.predecessor_ids:
            network.edges.append((pred_id, node.id))
            network.nodes[pred_id].successor_ids.append(node.id)

    log.append(f"Dependency edges: {len(network.edges)}")
    return network


def topological_order(network: ActivityNetwork) -> Tuple[List[str], bool]:
    """
    Order nodes so predecessors come before successors (Kahn's algorithm).

    The queue is seeded in input order and successors are released in the
    order they were declared, so the result is deterministic.

    Returns:
        Tuple of (order, has_cycle)
    """
    in_degree = {node_id: len(node.predecessor_ids) for node_id, node in network.nodes.items()}
    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)
        for succ_id in network.nodes[node_id].successor_ids:
            in_degree[succ_id] -= 1
            if in_degree[succ_id] == 0:
                queue.append(succ_id)

    return order, len(order) < len(network.nodes)


def describe_cycle(network: ActivityNetwork, order: List[str]) -> str:
    """Build the cycle warning, naming one loop among the nodes left unsorted."""
    placed = set(order)
    remaining = nx.DiGraph()
    remaining.add_nodes_from(node_id for node_id in network.nodes if node_id not in placed)
    remaining.add_edges_from(
        (u, v) for u, v in network.edges if u not in placed and v not in placed
    )
    try:
        cycle = nx.find_cycle(remaining)
    except nx.NetworkXNoCycle:
        return CYCLE_WARNING.format(detail="")
    path = [edge[0] for edge in cycle] + [cycle[0][0]]
    return CYCLE_WARNING.format(detail=f" ({' -> '.join(path)})")
