"""Main API router for DDD architecture"""

from fastapi import APIRouter

from .routes import orders, payments, webhooks, promos, membership, users, admin

# Main API router
api_router = APIRouter()

# Include all routes
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(promos.router, prefix="/promos", tags=["promos"])
api_router.include_router(membership.router, prefix="/membership", tags=["membership"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
