from fastapi import APIRouter

from storefront.domains.discounts.api import router as discounts_router

api_router = APIRouter()

# API routes (all have /api/v1 prefix from the app factory)
api_router.include_router(discounts_router)
