"""Home recommendation and cache-maintenance routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from homerecs.api.schemas import (
    CacheStatusResponse,
    ClearCacheResponse,
    HomeRecommendationsResponse,
    InvalidateRequest,
    InvalidateResponse,
)
from homerecs.ports.recommender import RecommenderPort

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recommendations"])


def get_recommender(request: Request) -> RecommenderPort:
    return request.app.state.recommender


def parse_user_id(raw: Any) -> int:
    """Accept a non-negative integer or its decimal string form."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise HTTPException(status_code=400, detail="userId is required")
    if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
        return raw
    if isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        return int(raw.strip())
    raise HTTPException(status_code=400, detail="userId must be numeric")


@router.get("/home", response_model=HomeRecommendationsResponse)
async def get_home(
    user_id: str | None = Query(default=None, alias="userId"),
    recommender: RecommenderPort = Depends(get_recommender),
) -> HomeRecommendationsResponse:
    """Two lists of twelve books: close to the user's taste, and further out."""
    uid = parse_user_id(user_id)
    result = await recommender.get_home_recommendations(uid)
    return HomeRecommendationsResponse.from_result(result)


@router.post("/invalidate", response_model=InvalidateResponse)
@router.post("/clear-cache", response_model=InvalidateResponse, include_in_schema=False)
async def invalidate(
    body: InvalidateRequest,
    recommender: RecommenderPort = Depends(get_recommender),
) -> InvalidateResponse:
    """Drop one user's cached recommendations (called on logout)."""
    uid = parse_user_id(body.user_id)
    cleared = recommender.invalidate(uid)
    return InvalidateResponse(
        message="Cache invalidated" if cleared else "No cache entry for user",
        user_id=uid,
        cleared=cleared,
    )


@router.get(
    "/cache-status",
    response_model=CacheStatusResponse,
    response_model_exclude_none=True,
)
async def cache_status(
    user_id: str | None = Query(default=None, alias="userId"),
    recommender: RecommenderPort = Depends(get_recommender),
) -> CacheStatusResponse:
    uid = parse_user_id(user_id)
    return CacheStatusResponse.model_validate(recommender.cache_status(uid))


@router.post("/cache/clear", response_model=ClearCacheResponse)
async def clear_cache(
    recommender: RecommenderPort = Depends(get_recommender),
) -> ClearCacheResponse:
    cleared = recommender.clear()
    logger.info("Full cache clear requested: %d entries removed", cleared)
    return ClearCacheResponse(cleared=cleared)
