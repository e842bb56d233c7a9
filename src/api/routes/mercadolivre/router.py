"""Router do canal Mercado Livre."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.mercadolivre.recovery import router as recovery_router
from api.routes.mercadolivre.webhook import router as webhook_router

router = APIRouter()

router.include_router(webhook_router, prefix="/api/webhook/mercado-livre")
router.include_router(recovery_router, prefix="/api/recovery/missed-feeds")
