"""
api/schemas.py — Pydantic request & response models
=====================================================
Centralises all data-transfer objects so that FastAPI can auto-generate
OpenAPI docs and perform input validation for free.
"""

from pydantic import BaseModel, Field
from typing import Optional


# ── Request Models ───────────────────────────────────────────────────────────


class AnalyzeRequest(BaseModel):
    """
    One RR-interval series plus optional overrides of the preset.
    Anything not overridden keeps the preset's value.
    """
    intervals: list[float] = Field(..., min_length=1, description="RR intervals in seconds.")
    times: Optional[list[float]] = Field(
        None, description="Onset time of every interval (s). Defaults to the cumulative sum."
    )
    preset: str = Field("human", pattern="^(human|canine)$")
    rules: Optional[list[str]] = Field(
        None, description="Outlier rules: range, moving_average, quotient, poincare."
    )
    methods: Optional[list[str]] = Field(
        None, description="Spectral estimators: lomb, ar, welch, fft."
    )
    mse_max_scale: Optional[int] = Field(None, ge=1, le=100)


# ── Response Models ──────────────────────────────────────────────────────────


class MetricData(BaseModel):
    name: str
    value: Optional[float] = None        # null when undefined
    unit: str
    description: str
    reason: Optional[str] = None


class AnalyzeResponse(BaseModel):
    """Full metrics payload of one analysis."""
    metrics: list[MetricData]
    num_rr: int
    num_nn: int
    outliers: dict[str, int]             # rule → number of flagged intervals
    warnings: list[str]
    errors: dict[str, str]               # component → error message
