"""API middleware for CORS"""
import logging
from fastapi.middleware.cors import CORSMiddleware

from mission_engine.config import CORS_ORIGINS

logger = logging.getLogger(__name__)


def setup_cors(app):
    """Configure CORS middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(f"CORS configured for origins: {CORS_ORIGINS}")
