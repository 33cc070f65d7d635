from fastapi import APIRouter

from .features.submit_rsvp.router import router as submit_rsvp_router
from .features.view_rsvp.router import router as view_rsvp_router

router = APIRouter()

router.include_router(view_rsvp_router)
router.include_router(submit_rsvp_router)
