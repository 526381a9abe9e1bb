"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from gearhub.api.routes import allocations, event_requests, events, reservations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events.router)
api_router.include_router(reservations.router)
api_router.include_router(allocations.router)
api_router.include_router(event_requests.router)
