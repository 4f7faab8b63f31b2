"""Pydantic response schemas for the non-GraphQL endpoints."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="ok | starting")
    version: str = ""
    engine_started: bool = False


class ErrorResponse(BaseModel):
    error: str
    message: str
