from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

router = APIRouter()

@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of API, database and object store components.
    """
    health_status = {
        "status": "ok",
        "components": {
            "api": "ready",
            "database": "initializing",
            "object_store": "initializing"
        },
        "ready": False
    }

    # Check database status
    try:
        await run_in_threadpool(request.app.state.pool.ping)
        health_status["components"]["database"] = "ready"
    except Exception as e:
        health_status["components"]["database"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # The object store client is created once at startup; its presence is enough
    if getattr(request.app.state, "s3_client", None) is not None:
        health_status["components"]["object_store"] = "ready"
    else:
        health_status["components"]["object_store"] = "error: client not configured"
        health_status["status"] = "degraded"

    # Overall ready status
    components_ready = all(
        health_status["components"][comp] == "ready"
        for comp in ["api", "database", "object_store"]
    )

    if components_ready:
        health_status["ready"] = True

    return health_status
