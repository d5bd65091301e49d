import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from mermanager.errors import OptimizationError
from mermanager.models.listing import OptimizeRequest
from mermanager.routers.auth_router import get_current_user
from mermanager.services.listing_optimizer import ListingOptimizer, OptimizationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["AI Listing Optimizer"])


@lru_cache
def get_optimizer() -> ListingOptimizer:
    return ListingOptimizer()


@router.post("/optimize", response_model=OptimizationResult, response_model_by_alias=True)
async def optimize_listing(
    data: OptimizeRequest,
    user=Depends(get_current_user),
    optimizer: ListingOptimizer = Depends(get_optimizer),
):
    if not data.title.strip() or not data.description.strip():
        raise HTTPException(status_code=400, detail="Title and description are required")
    try:
        return await optimizer.optimize(data.title, data.description, data.category)
    except OptimizationError as e:
        logger.warning("Optimization for %s failed: %s", user, e)
        raise HTTPException(status_code=502, detail=str(e))
