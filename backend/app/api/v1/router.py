"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, users, companies, support_requests, donations, admin
)

router = APIRouter()

router.include_router(auth.router)
router.include_router(users.router)
router.include_router(companies.router)
router.include_router(support_requests.router)

# Donation ledger
router.include_router(donations.router)

router.include_router(admin.router)
