from fastapi import APIRouter

from journal_feedback.api.routes import feedback, health


router = APIRouter()

router.include_router(feedback.router, prefix="/v1")
router.include_router(health.router)
