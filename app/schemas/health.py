"""Pydantic schema for the health probe (served outside the response envelope)."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether a trivial query against the store succeeded",
    )
    timestamp: datetime = Field(description="Server time (UTC) when the probe ran")
