"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.partnermap.api.v1 import auth, directory, health, imports, search

router = APIRouter(prefix="/api/v1")

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(directory.router)
router.include_router(imports.router)
router.include_router(search.router)
