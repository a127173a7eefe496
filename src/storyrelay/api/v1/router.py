"""API router aggregator."""

from fastapi import APIRouter

from storyrelay.api.v1.chat import router as chat_router

router = APIRouter(prefix="/api")
router.include_router(chat_router)
