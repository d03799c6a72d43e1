"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# --- Chat ---

class ChatBody(BaseModel):
    query: str = Field(..., min_length=1)
    sessionId: Optional[str] = Field(default=None, min_length=1)

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value


class ToolCallOut(BaseModel):
    name: str
    args: dict[str, Any]


class StepTimingOut(BaseModel):
    step: str
    ms: int


class PerformanceOut(BaseModel):
    totalMs: int
    iterations: int
    timings: list[StepTimingOut]


class ChatOut(BaseModel):
    answer: str
    sessionId: str
    toolCalls: list[ToolCallOut]
    performance: PerformanceOut
