from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/ping")
async def ping():
    """Liveness check"""
    return {"ok": True}
