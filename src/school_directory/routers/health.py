from fastapi import APIRouter, Depends

from school_directory.config.settings import Settings
from school_directory.database import QueryExecutor
from school_directory.dependencies import get_query_executor, get_settings_from_app

router = APIRouter()

@router.get("/health")
def health_check(
    settings: Settings = Depends(get_settings_from_app),
    executor: QueryExecutor = Depends(get_query_executor),
):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API and database along with the active image storage backend.
    """
    health_status = {
        "status": "ok",
        "storage_backend": settings.storage_backend,
        "components": {
            "api": "ready",
            "database": "initializing",
        },
        "ready": False
    }

    # Check database status
    try:
        executor.execute("SELECT 1")
        health_status["components"]["database"] = "ready"
    except Exception as e:
        health_status["components"]["database"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Overall ready status
    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )

    return health_status
