from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError

from app.schemas import QueryEnvelope

ViewKind = Literal["empty", "loading", "unparsable", "error", "table", "chart", "no_data"]

PARSE_ERROR_TITLE = "Could not parse the result as JSON:"
NO_DATA_MESSAGE = "Query executed successfully, but no data was returned."
MIN_CHART_WIDTH_PX = 800
PX_PER_BAR = 80

_PLACEHOLDER_EXAMPLES = {
    "table": "'get all users'",
    "chart": "'show user count by month'",
}


@dataclass(frozen=True)
class ViewState:
    kind: ViewKind
    message: str = ""
    raw_output: str = ""
    result: QueryEnvelope | None = None


@dataclass(frozen=True)
class ChartSeries:
    x_key: str
    y_key: str
    names: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    @property
    def min_width_px(self) -> int:
        return max(MIN_CHART_WIDTH_PX, len(self.names) * PX_PER_BAR)


def _unwrap_code_fence(text: str) -> str:
    stripped = (text or "").strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        lines = stripped.splitlines()
        if len(lines) >= 2:
            lines = lines[1:-1]
            if lines and lines[0].strip().lower() == "json":
                lines = lines[1:]
            return "\n".join(lines).strip()
    return stripped


def parse_result(text: str) -> QueryEnvelope | None:
    """Parse the endpoint body; None means it is not a JSON object."""
    try:
        parsed = json.loads(_unwrap_code_fence(text))
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict):
        return None
    try:
        return QueryEnvelope.model_validate(parsed)
    except ValidationError:
        return None


def select_view(
    result: QueryEnvelope | None,
    raw_output: str,
    active_tab: str,
    loading: bool = False,
) -> ViewState:
    if loading:
        return ViewState(kind="loading")

    if result is None:
        if raw_output:
            return ViewState(kind="unparsable", message=PARSE_ERROR_TITLE, raw_output=raw_output)
        return ViewState(kind="empty")

    if not result.success:
        return ViewState(kind="error", message=result.error or "", raw_output=raw_output, result=result)

    # an empty row list still renders (headers only); missing keys do not
    if result.data is None or not result.columns:
        return ViewState(kind="no_data", message=NO_DATA_MESSAGE, raw_output=raw_output, result=result)

    kind: ViewKind = "chart" if active_tab == "chart" else "table"
    return ViewState(kind=kind, raw_output=raw_output, result=result)


def format_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def table_rows(result: QueryEnvelope) -> list[list[str]]:
    columns = result.columns or []
    return [[format_cell(row.get(column)) for column in columns] for row in result.data or []]


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def _axis_label(value: Any) -> str:
    if value is None:
        return "null"
    return format_cell(value)


def chart_series(result: QueryEnvelope) -> ChartSeries:
    columns = result.columns or []
    if not columns:
        raise ValueError("Chart needs at least one column.")

    x_key = result.xAxis if result.xAxis in columns else columns[0]
    if result.yAxis in columns:
        y_key = result.yAxis
    else:
        y_key = columns[1] if len(columns) > 1 else columns[0]

    rows = result.data or []
    return ChartSeries(
        x_key=x_key,
        y_key=y_key,
        names=[_axis_label(row.get(x_key)) for row in rows],
        values=[_to_number(row.get(y_key)) for row in rows],
    )


def placeholder_for(tab: str) -> str:
    key = "chart" if tab == "chart" else "table"
    return f"Enter your {key} query (e.g., {_PLACEHOLDER_EXAMPLES[key]})"
