from fastapi import APIRouter, Request

from config.workflow_config import WorkflowConfig

router = APIRouter(prefix="", tags=["Status"])


@router.get("/status")
async def status(request: Request):
    """Liveness plus a summary of the workflow engine"""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return {"status": "ok", "engine": "stopped"}

    return {
        "status": "ok",
        "engine": "running",
        "state_backend": type(engine.state_manager).__name__,
        "active_executions": len(engine.scheduler.active_ids()),
        "max_concurrent_executions": engine.scheduler.max_concurrent,
        "default_backend": WorkflowConfig.STATE_BACKEND,
    }
