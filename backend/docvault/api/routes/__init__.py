"""API route registration."""

from fastapi import APIRouter

from docvault.api.routes import documents, folders, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(folders.router, prefix="/folders", tags=["folders"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
