from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/live")
def live():
    return {"status": "alive"}


@router.get("/ready")
def ready(request: Request):
    ready = getattr(request.app.state, "pqrs_repo", None) is not None
    return {"status": "ready" if ready else "degraded"}
