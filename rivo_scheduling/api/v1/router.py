"""
API v1 router setup
Organized into: public, homeowner (JWT) and provider (JWT + provider role) routes
"""
from fastapi import APIRouter

from rivo_scheduling.api.v1.public import slots
from rivo_scheduling.api.v1.homeowner import bookings as homeowner_bookings
from rivo_scheduling.api.v1.provider import availability, holidays, bookings as provider_bookings

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(slots.router)

# ============================================================================
# HOMEOWNER ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(
    homeowner_bookings.router,
    # No prefix needed - router already has "/bookings" prefix
    tags=["Bookings"]
)

# ============================================================================
# PROVIDER ROUTES (JWT authentication + provider role required)
# ============================================================================
api_v1_router.include_router(
    availability.router,
    prefix="/provider",
    tags=["Provider"]
)

api_v1_router.include_router(
    provider_bookings.router,
    prefix="/provider",
    tags=["Provider"]
)

api_v1_router.include_router(
    holidays.router,
    prefix="/provider",
    tags=["Provider"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information grouped by authentication type."""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required",
            "homeowner": "JWT Bearer token required",
            "provider": "JWT Bearer token + provider role required",
        }
    }
