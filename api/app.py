"""
api/app.py — FastAPI application factory
==========================================
Builds the HRV service: metadata, CORS for browser clients, and the routes
of `api/routes.py`.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from api.routes import router
from config import API_CORS_ORIGINS, API_TITLE, API_VERSION
from utils.logger import get_logger

logger = get_logger("api.app")


def create_app(cors_origins=API_CORS_ORIGINS) -> FastAPI:
    """
    Return a new FastAPI instance serving the HRV analysis routes.

    Parameters
    ----------
    cors_origins : iterable[str]   Origins allowed by the CORS middleware.
    """
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Heart-rate-variability feature extraction: outlier filtering, time, "
            "frequency and nonlinear metrics of an RR-interval series."
        ),
    )

    origins = list(cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)

    logger.debug("API v%s created (CORS origins: %s)", API_VERSION, ", ".join(origins))
    return app
