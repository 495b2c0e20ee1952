"""Product search, suggestion and filter-option endpoints."""

from fastapi import APIRouter, BackgroundTasks, Request

from storefront.core.auth import user_id_from_token
from storefront.core.deps import (
    BearerToken,
    EventSink,
    Filters,
    SessionFactory,
    StoreTextIndex,
)
from storefront.core.rate_limit import SEARCH_LIMIT, SUGGESTIONS_LIMIT, limiter
from storefront.schemas.common import ApiResponse
from storefront.schemas.search import FacetResult, SearchData
from storefront.schemas.suggestions import SuggestionsData
from storefront.services.analytics_service import SearchAnalyticsService
from storefront.services.facet_service import FacetService
from storefront.services.filter_normalizer import parse_limit
from storefront.services.search_service import SearchService
from storefront.services.suggestion_service import (
    DEFAULT_SUGGESTION_LIMIT,
    MAX_SUGGESTION_LIMIT,
    SuggestionService,
)

router = APIRouter()


async def record_search_event(
    analytics: SearchAnalyticsService,
    query: str,
    result_count: int,
    token: str | None,
) -> None:
    """Background job: attribute the search to the token's user, then record it."""
    user_id = await user_id_from_token(token)
    await analytics.record_search(query, result_count, user_id)


@router.get("/search", response_model=ApiResponse[SearchData])
@limiter.limit(SEARCH_LIMIT)
async def search_products(
    request: Request,  # noqa: ARG001 - required by slowapi
    background_tasks: BackgroundTasks,
    filters: Filters,
    session_factory: SessionFactory,
    text_index: StoreTextIndex,
    sink: EventSink,
    token: BearerToken,
) -> ApiResponse[SearchData]:
    """Search active products with filters, sorting, pagination and facets.

    Query parameters are normalized leniently: malformed values are ignored
    rather than rejected.
    """
    service = SearchService(session_factory, text_index)
    data = await service.search(filters)
    total = data.pagination.total_results

    if filters.has_query:
        analytics = SearchAnalyticsService(sink, session_factory)
        background_tasks.add_task(
            record_search_event,
            analytics,
            filters.query,
            total,
            token,
        )

    message = f"Found {total} products"
    if filters.query:
        message += f' for "{filters.query}"'
    return ApiResponse(data=data, message=message)


@router.get(
    "/search/suggestions",
    response_model=ApiResponse[SuggestionsData],
    response_model_exclude_none=True,
)
@limiter.limit(SUGGESTIONS_LIMIT)
async def get_search_suggestions(
    request: Request,
    session_factory: SessionFactory,
) -> ApiResponse[SuggestionsData]:
    """Autocomplete suggestions for a partial query (at least 2 characters)."""
    query = request.query_params.get("q", "")
    limit = parse_limit(
        request.query_params.get("limit"),
        default=DEFAULT_SUGGESTION_LIMIT,
        cap=MAX_SUGGESTION_LIMIT,
    )
    service = SuggestionService(session_factory)
    data = await service.suggest(query, limit=limit)
    return ApiResponse(data=data)


@router.get("/search/filters", response_model=ApiResponse[FacetResult])
@limiter.limit(SEARCH_LIMIT)
async def get_filter_options(
    request: Request,  # noqa: ARG001 - required by slowapi
    filters: Filters,
    session_factory: SessionFactory,
    text_index: StoreTextIndex,
) -> ApiResponse[FacetResult]:
    """Filter values available for the given query and filters."""
    service = FacetService(session_factory, text_index)
    return ApiResponse(data=await service.filter_options(filters))
