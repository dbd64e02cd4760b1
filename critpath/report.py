from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .graph import ActivityNetwork
from .models import Activity, ActivityMetrics, ScheduleResult

RESULT_COLUMNS = ["ID", "Name", "Duration", "ES", "EF", "LS", "LF", "TF", "FF", "Critical"]


def format_result(
    network: ActivityNetwork,
    order: List[str],
    critical_path: List[str],
    project_duration: float,
    warnings: Iterable[str],
    calculation_log: Iterable[str] = (),
) -> ScheduleResult:
    """Assemble the report, listing activities in topological order."""
    return ScheduleResult(
        activities=tuple(ActivityMetrics.from_node(network.nodes[node_id]) for node_id in order),
        critical_path_ids=tuple(critical_path),
        project_duration=project_duration,
        warnings=tuple(warnings),
        calculation_log=tuple(calculation_log),
    )


def results_dataframe(result: ScheduleResult) -> pd.DataFrame:
    """Get calculation results as a pandas DataFrame."""
    data = []
    for row in result.activities:
        data.append(
            {
                "ID": row.id,
                "Name": row.name,
                "Duration": row.duration,
                "ES": row.earliest_start,
                "EF": row.earliest_finish,
                "LS": row.latest_start,
                "LF": row.latest_finish,
                "TF": row.total_float,
                "FF": row.free_float,
                "Critical": "Yes" if row.is_critical else "No",
            }
        )
    return pd.DataFrame(data, columns=RESULT_COLUMNS)


def _is_missing(value: object) -> bool:
    try:
        return value is None or bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _safe_str(value: object) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def activities_from_dataframe(df: pd.DataFrame) -> List[Activity]:
    """
    Read an activity table with columns ID, Name, Duration and Predecessors.

    Predecessors are a delimited string such as "A;B". Blank cells become empty
    values and are left for the engine to drop; nothing is validated here.
    """
    activities: List[Activity] = []
    has_preds = "Predecessors" in df.columns
    for record in df.to_dict(orient="records"):
        duration = record.get("Duration")
        activities.append(
            Activity(
                id=_safe_str(record.get("ID")),
                name=_safe_str(record.get("Name")),
                duration=None if _is_missing(duration) else duration,
                predecessor_ids=_safe_str(record.get("Predecessors")) if has_preds else (),
            )
        )
    return activities
