from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from .graph import ActivityNetwork, build_network, describe_cycle, topological_order
from .models import ScheduleNode, ScheduleResult
from .report import format_result

logger = logging.getLogger(__name__)

EPSILON = 1e-9
DEFAULT_MAX_ACTIVITIES = 5000


class CPMEngine:
    """
    Critical Path Method engine (activity-on-node, finish-to-start, no lags).

    Holds configuration only. Every call to ``calculate`` builds its own
    network from the given activities and discards it afterwards.
    """

    def __init__(
        self,
        epsilon: float = EPSILON,
        relative_tolerance: float = 0.0,
        max_activities: Optional[int] = DEFAULT_MAX_ACTIVITIES,
    ):
        if not epsilon > 0:
            raise ValueError("epsilon must be positive.")
        if not relative_tolerance >= 0:
            raise ValueError("relative_tolerance must be non-negative.")
        if max_activities is not None and max_activities < 1:
            raise ValueError("max_activities must be at least 1.")
        self.epsilon = epsilon
        self.relative_tolerance = relative_tolerance
        self.max_activities = max_activities

    def tolerance(self, project_duration: float) -> float:
        return max(self.epsilon, self.relative_tolerance * abs(project_duration))

    def calculate(self, activities: Iterable[Any]) -> ScheduleResult:
        """
        Compute the full schedule for an activity list.

        Never raises for bad data: invalid activities are dropped, unknown
        predecessors are pruned with a warning, and a cycle yields an empty
        result carrying a single warning.
        """
        log: List[str] = []
        log.append("=" * 70)
        log.append("CPM CALCULATION")
        log.append("Critical Path Method (Activity-on-Node)")
        log.append("=" * 70)

        try:
            records = list(activities) if activities is not None else []
        except TypeError:
            records = []
        if self.max_activities is not None and len(records) > self.max_activities:
            message = (
                f"Too many activities ({len(records)}); the limit is {self.max_activities}."
            )
            log.append(f"ERROR: {message}")
            logger.debug(message)
            return ScheduleResult.empty(warnings=[message], calculation_log=log)

        network = build_network(records, log)
        if network is None:
            return ScheduleResult.empty(calculation_log=log)

        order, has_cycle = topological_order(network)
        if has_cycle:
            message = describe_cycle(network, order)
            log.append(f"ERROR: {message}")
            logger.debug("Cycle detected among %d activities", len(network) - len(order))
            return ScheduleResult.empty(warnings=[message], calculation_log=log)

        project_duration = self._forward_pass(network, order, log)
        self._backward_pass(network, order, project_duration, log)
        tol = self.tolerance(project_duration)
        self._calculate_floats(network, order, project_duration, tol, log)
        critical_path = self._build_critical_path(network, tol, log)

        log.append("")
        log.append("=" * 70)
        log.append("CALCULATION COMPLETE")
        log.append(f"Project Duration: {project_duration:g}")
        log.append(f"Critical Path: {' -> '.join(critical_path) if critical_path else '(none)'}")
        log.append("=" * 70)
        logger.debug(
            "Scheduled %d activities, duration %s, critical path %s",
            len(order),
            project_duration,
            critical_path,
        )

        return format_result(network, order, critical_path, project_duration, network.warnings, log)

    def _forward_pass(self, network: ActivityNetwork, order: List[str], log: List[str]) -> float:
        """Forward pass to determine Early Start (ES) and Early Finish (EF)."""
        log.append("")
        log.append("FORWARD PASS (Calculating ES and EF)")
        log.append("-" * 50)

        nodes = network.nodes
        for node_id in order:
            node = nodes[node_id]
            if node.predecessor_ids:
                node.earliest_start = max(nodes[p].earliest_finish for p in node.predecessor_ids)
                log.append(
                    f"{node_id}: ES = max(EF of {', '.join(node.predecessor_ids)}) = {node.earliest_start:g}"
                )
            else:
                node.earliest_start = 0.0
                log.append(f"{node_id} (no predecessors): ES = 0")
            node.earliest_finish = node.earliest_start + node.duration
            log.append(
                f"  EF = ES + Duration = {node.earliest_start:g} + {node.duration:g} = {node.earliest_finish:g}"
            )

        project_duration = max((nodes[n].earliest_finish for n in order), default=0.0)
        log.append(f"Project Finish = max(all EF values) = {project_duration:g}")
        return project_duration

    def _backward_pass(
        self, network: ActivityNetwork, order: List[str], project_duration: float, log: List[str]
    ) -> None:
        """Backward pass to determine Late Start (LS) and Late Finish (LF)."""
        log.append("")
        log.append("BACKWARD PASS (Calculating LS and LF)")
        log.append("-" * 50)

        nodes = network.nodes
        for node_id in reversed(order):
            node = nodes[node_id]
            if node.is_sink:
                node.latest_finish = project_duration
                log.append(f"{node_id} (no successors): LF = Project Finish = {project_duration:g}")
            else:
                node.latest_finish = min(nodes[s].latest_start for s in node.successor_ids)
                log.append(
                    f"{node_id}: LF = min(LS of {', '.join(node.successor_ids)}) = {node.latest_finish:g}"
                )
            node.latest_start = node.latest_finish - node.duration
            log.append(
                f"  LS = LF - Duration = {node.latest_finish:g} - {node.duration:g} = {node.latest_start:g}"
            )

    def _calculate_floats(
        self,
        network: ActivityNetwork,
        order: List[str],
        project_duration: float,
        tol: float,
        log: List[str],
    ) -> None:
        """Total Float (TF), Free Float (FF) and criticality for every node."""
        log.append("")
        log.append("FLOAT CALCULATIONS")
        log.append("-" * 50)

        nodes = network.nodes
        for node_id in order:
            node = nodes[node_id]
            node.total_float = node.latest_finish - node.earliest_finish
            if node.is_sink:
                node.free_float = max(0.0, project_duration - node.earliest_finish)
            else:
                next_start = min(nodes[s].earliest_start for s in node.successor_ids)
                node.free_float = max(0.0, next_start - node.earliest_finish)
            node.is_critical = abs(node.total_float) < tol
            log.append(
                f"{node_id}: TF = LF - EF = {node.latest_finish:g} - {node.earliest_finish:g} = "
                f"{node.total_float:g}, FF = {node.free_float:g} -> "
                f"{'CRITICAL' if node.is_critical else 'Not critical'}"
            )

    def _build_critical_path(self, network: ActivityNetwork, tol: float, log: List[str]) -> List[str]:
        """
        Follow critical successors in time order to produce one critical path.

        The start is the critical node with ES = 0 and the smallest EF; each
        step takes the critical successor starting when the current node
        finishes, again preferring the smallest EF. Ties go to the earlier
        node in input or declaration order. Parallel critical paths are not
        enumerated.
        """
        log.append("")
        log.append("CRITICAL PATH IDENTIFICATION")
        log.append("-" * 50)

        nodes = network.nodes
        starts = [n for n in nodes.values() if n.is_critical and abs(n.earliest_start) < tol]
        current: Optional[ScheduleNode] = _first_by_finish(starts)
        path: List[str] = []
        while current is not None:
            path.append(current.id)
            candidates = [
                nodes[s]
                for s in current.successor_ids
                if nodes[s].is_critical
                and abs(nodes[s].earliest_start - current.earliest_finish) < tol
            ]
            current = _first_by_finish(candidates)

        log.append(f"Critical Path: {' -> '.join(path) if path else '(none)'}")
        return path


def _first_by_finish(candidates: List[ScheduleNode]) -> Optional[ScheduleNode]:
    # min() keeps the first of equal keys, so ties resolve by list order.
    if not candidates:
        return None
    return min(candidates, key=lambda node: node.earliest_finish)


def compute_schedule(activities: Iterable[Any], **options: Any) -> ScheduleResult:
    """Compute the schedule with a fresh ``CPMEngine`` built from ``options``."""
    return CPMEngine(**options).calculate(activities)
