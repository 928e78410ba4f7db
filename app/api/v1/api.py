from fastapi import APIRouter
from app.api.v1.routes.bids import router as bids_router
from app.api.v1.routes.bookings import router as bookings_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bids_router)
api_router.include_router(bookings_router)
