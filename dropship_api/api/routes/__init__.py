"""API routes."""

from fastapi import APIRouter

from dropship_api.api.routes import admins, auth, products

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(admins.router, prefix="/admins", tags=["admins"])
