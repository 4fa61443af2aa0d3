from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/healthcheck")
def healthcheck():
    return {"status": "ok"}
