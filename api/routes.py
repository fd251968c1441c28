"""
api/routes.py — FastAPI route definitions
==========================================
All HTTP endpoints are defined here and wired into the app via
`app.include_router(router)` in `api/app.py`.

Endpoint summary
----------------
    GET  /health              — Liveness probe
    GET  /defaults            — Parameters of every preset
    POST /analyze             — Filter an RR series and return every HRV metric
    GET  /docs                — Auto-generated Swagger UI (FastAPI built-in)
"""

from dataclasses import asdict, replace

from fastapi import APIRouter, HTTPException
from api.schemas import AnalyzeRequest, AnalyzeResponse, MetricData
from config import AnalysisConfig
from metrics.analysis import analyze
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()


def build_config(request: AnalyzeRequest) -> AnalysisConfig:
    """Preset plus the overrides carried by the request (raises ValueError)."""
    config = AnalysisConfig.from_preset(request.preset)
    sections = {}
    if request.rules is not None:
        sections["filtering"] = replace(config.filtering, rules=tuple(request.rules))
    if request.methods is not None:
        sections["spectral"] = replace(config.spectral, methods=tuple(request.methods), power_method=None)
    if request.mse_max_scale is not None:
        sections["mse"] = replace(config.mse, max_scale=request.mse_max_scale)
    return config.with_overrides(**sections) if sections else config


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    """Simple liveness check."""
    return {"status": "ok", "service": "HRV Feature Extraction"}


# ── Defaults ──────────────────────────────────────────────────────────────────

@router.get("/defaults")
async def defaults():
    """Every parameter of the human and canine presets."""
    return {
        name: asdict(AnalysisConfig.from_preset(name))
        for name in ("human", "canine")
    }


# ── Analysis ──────────────────────────────────────────────────────────────────

@router.post("/analyze")
def analyze_series(request: AnalyzeRequest) -> AnalyzeResponse:
    """
    Run the full analysis on one RR-interval series.

    Body (JSON):
        intervals      : list[float]   RR intervals in seconds
        times          : list[float]   (optional) onset times in seconds
        preset         : "human" | "canine"   (default "human")
        rules          : list[str]     (optional) outlier rules
        methods        : list[str]     (optional) spectral estimators
        mse_max_scale  : int           (optional) largest MSE scale

    Returns 422 for an invalid series or invalid parameters.  Metrics that
    cannot be computed are returned with `value = null` and a reason.
    """
    try:
        config = build_config(request)
        result = analyze(request.intervals, request.times, config)
    except ValueError as e:
        logger.warning("Rejected analysis request: %s", e)
        raise HTTPException(status_code=422, detail=str(e))

    return AnalyzeResponse(
        metrics=[
            MetricData(name=m.name, value=m.value, unit=m.unit,
                       description=m.description, reason=m.reason)
            for m in result.record.values()
        ],
        num_rr=int(result.record.value("RR")),
        num_nn=int(result.record.value("NN")),
        outliers={rule: len(mask) for rule, mask in result.outliers.items()},
        warnings=list(result.warnings),
        errors=dict(result.errors),
    )
