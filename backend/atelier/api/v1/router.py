"""API v1 router aggregating all sub-routers."""

from fastapi import APIRouter, Depends

from atelier.api.v1.collections import router as collections_router
from atelier.api.v1.materials import router as materials_router
from atelier.api.v1.orders import router as orders_router
from atelier.api.v1.production import router as production_router
from atelier.api.v1.products import router as products_router
from atelier.core.rate_limit import rate_limit_default

api_v1_router = APIRouter()


@api_v1_router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint returning 200 OK."""
    return {"status": "ok"}


# Default rate limiting on everything but health. Stage moves, holds and
# dispatches additionally enforce the mutation limit.
_limited = APIRouter(dependencies=[Depends(rate_limit_default)])
_limited.include_router(production_router)
_limited.include_router(orders_router)
_limited.include_router(products_router)
_limited.include_router(materials_router)
_limited.include_router(collections_router)

api_v1_router.include_router(_limited)
