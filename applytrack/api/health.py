"""
Health check and system status API endpoints.
"""
import logging
from datetime import datetime
from typing import Dict, Any
from fastapi import APIRouter
from ..config.settings import get_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/detailed", summary="Detailed Health Check")
def detailed_health_check() -> Dict[str, Any]:
    """
    Health check with configuration status. No secrets are included.
    """
    settings = get_settings()
    health_status = {
        "status": "ok",
        "configuration": {
            "log_level": settings.log_level,
            "database_type": "sqlite" if settings.database_url.startswith("sqlite") else "other",
            "cors_enabled": settings.cors_enabled,
            "api_docs_enabled": settings.api_docs_enabled,
            "max_resume_size": settings.max_resume_size,
        },
        "external_apis": {
            "gemini_configured": bool(settings.gemini_api_key),
        },
    }

    config_issues = settings.validate_required_settings()
    if config_issues:
        health_status["status"] = "degraded"
        health_status["configuration_issues"] = config_issues
        logger.warning("Configuration issues found: %s", config_issues)

    return health_status
