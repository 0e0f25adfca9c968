"""API v1 router aggregator."""

from fastapi import APIRouter

from lexidiff.api.v1 import analysis, compare, documents, reports

router = APIRouter(prefix="/api/v1")
router.include_router(compare.router)
router.include_router(documents.router)
router.include_router(analysis.router)
router.include_router(reports.router)
