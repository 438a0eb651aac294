# shop/api/routers/health.py
from fastapi import APIRouter

from shop.utils.settings import SERVICE_NAME

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "service": SERVICE_NAME}
