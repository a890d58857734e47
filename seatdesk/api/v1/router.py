from fastapi import APIRouter

# Auth
from seatdesk.api.v1.public.auth import router as auth_router

# Admin
from seatdesk.api.v1.admin.seats import router as seats_router
from seatdesk.api.v1.admin.plans import router as plans_router
from seatdesk.api.v1.admin.dashboard import router as dashboard_router
from seatdesk.api.v1.admin.subscribers import router as subscribers_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Admin ---
api_router.include_router(seats_router)
api_router.include_router(plans_router)
api_router.include_router(dashboard_router)
api_router.include_router(subscribers_router)
