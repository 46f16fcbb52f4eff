"""Main API router that includes versioned routers."""

from fastapi import APIRouter

from api.v1 import categories, health, products, slugs, urls

# Main API router
api_router = APIRouter()

# Include v1 routers
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(health.router, tags=["health"])
v1_router.include_router(categories.router, tags=["categories"])
v1_router.include_router(products.router, tags=["products"])
v1_router.include_router(urls.router, tags=["urls"])
v1_router.include_router(slugs.router, tags=["slugs"])

api_router.include_router(v1_router)
