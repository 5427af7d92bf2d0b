"""
System management endpoints.

Handles stats, provider usage reset and cache maintenance.
"""

from fastapi import APIRouter, Depends, HTTPException
from finsight.api.dependencies import rate_limited
from finsight.api.models import StatsResponse, MessageResponse
from finsight.api.services import pipeline_service
from finsight.core.ratelimit import DEFAULT_PROFILE
from finsight.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/system", tags=["system"], dependencies=[Depends(rate_limited(DEFAULT_PROFILE))])


@router.get("/stats", response_model=StatsResponse)
async def get_stats():
    """Get usage, cache and provider statistics."""
    try:
        stats = await pipeline_service.get_stats()
        return StatsResponse(**stats)

    except Exception as e:
        logger.error(f"❌ Failed to get stats: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get stats: {str(e)}")


@router.post("/providers/reset", response_model=MessageResponse)
async def reset_provider_usage():
    """Reset daily provider usage counters."""
    try:
        pipeline_service.reset_provider_usage()
        return MessageResponse(message="Provider usage reset")

    except Exception as e:
        logger.error(f"❌ Failed to reset provider usage: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to reset provider usage: {str(e)}")


@router.post("/cache/flush", response_model=MessageResponse)
async def flush_cache():
    """Remove every cache entry."""
    try:
        await pipeline_service.flush_cache()
        return MessageResponse(message="Cache flushed")

    except Exception as e:
        logger.error(f"❌ Failed to flush cache: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to flush cache: {str(e)}")
