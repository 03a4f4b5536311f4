"""
Health check endpoint.
"""
from fastapi import APIRouter

from ..version import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "version": __version__}
