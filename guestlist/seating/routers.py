from fastapi import APIRouter

from .features.public_seating.router import router as public_seating_router

router = APIRouter()

router.include_router(public_seating_router)
