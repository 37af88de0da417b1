from __future__ import annotations
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from distribution_hub.cache import QueryCache, build_query_cache
from distribution_hub.database import get_session
from distribution_hub.services.facade import DistributionFacade
from distribution_hub.settings import settings


def get_query_cache(request: Request) -> QueryCache:
    cache = getattr(request.app.state, "query_cache", None)
    if cache is None:
        cache = request.app.state.query_cache = build_query_cache(settings)
    return cache


def get_facade(
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_query_cache),
) -> DistributionFacade:
    return DistributionFacade(db, cache)
