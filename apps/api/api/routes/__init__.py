from fastapi import APIRouter

from .pricing import router as pricing_router

router = APIRouter()
router.include_router(pricing_router)
