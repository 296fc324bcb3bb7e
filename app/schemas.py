from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ViewType = Literal["table", "chart"]

GENERIC_ERROR_MESSAGE = "Something went wrong with your query. Please try again."


class CompletionRequest(BaseModel):
    prompt: str = Field(..., description="Natural language question about the database")
    type: ViewType = "table"


class QueryEnvelope(BaseModel):
    """JSON object the model is instructed to answer with."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    type: str | None = None
    data: list[dict[str, Any]] | None = None
    columns: list[str] | None = None
    chartType: str | None = None
    xAxis: str | None = None
    yAxis: str | None = None
    error: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str = GENERIC_ERROR_MESSAGE
