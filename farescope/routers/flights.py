"""
Flight Search, Filter & Price Trend Endpoints
"""
from fastapi import APIRouter, Depends, Query
import logging

from farescope.config import settings
from farescope.schemas.flight import (
    AirlineFacet,
    FacetsResponse,
    FilterSpec,
    FlightResultsPage,
    PriceTrendResponse,
    SearchContext,
    SearchStateResponse,
)
from farescope.services.result_filter import (
    available_airlines,
    paginate,
    price_range,
    stop_buckets,
)
from farescope.services.search_orchestrator import SearchOrchestrator
from farescope.utils.airlines import format_airline_display
from farescope.utils.dependencies import get_orchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


def _currency(orchestrator: SearchOrchestrator):
    return orchestrator.offers[0].price.currency if orchestrator.offers else None


@router.post("/search", response_model=SearchStateResponse)
async def search_flights(
    context: SearchContext,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Search for flights between two airports.
    Resets filters; a failed search is reported in the ``error`` field.
    """
    context = context.model_copy(update={
        "origin": context.origin.upper(),
        "destination": context.destination.upper(),
    })
    await orchestrator.submit_search(context)
    return orchestrator.snapshot()


@router.put("/filters", response_model=SearchStateResponse)
async def update_filters(
    spec: FilterSpec,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Replace the filter selection and recompute the price trend.
    """
    logger.info(f"Applying filters: stops={spec.stops} max_price={spec.max_price} airlines={sorted(spec.airlines)}")
    await orchestrator.change_filters(spec)
    return orchestrator.snapshot()


@router.get("/state", response_model=SearchStateResponse)
async def get_state(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """Current search state"""
    return orchestrator.snapshot()


@router.get("/results", response_model=FlightResultsPage)
async def get_results(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    page_size: int = Query(settings.RESULTS_PAGE_SIZE, ge=1, le=100),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Filtered offers, one page at a time.
    """
    offers, total_pages = paginate(orchestrator.filtered_offers, page, page_size)
    return FlightResultsPage(
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        total_results=len(orchestrator.filtered_offers),
        offers=offers,
    )


@router.get("/price-trend", response_model=PriceTrendResponse)
async def get_price_trend(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """
    Daily average prices for the filtered offers.
    Days without data have a null price.
    """
    return PriceTrendResponse(
        price_loading=orchestrator.price_loading,
        currency=_currency(orchestrator),
        prices=orchestrator.price_series,
    )


@router.get("/facets", response_model=FacetsResponse)
async def get_facets(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """
    Filter choices available for the current (unfiltered) results.
    """
    offers = orchestrator.offers
    min_price, max_price = price_range(offers)
    return FacetsResponse(
        airlines=[
            AirlineFacet(code=code, display_name=format_airline_display(code))
            for code in available_airlines(offers)
        ],
        min_price=min_price,
        max_price=max_price,
        currency=_currency(orchestrator),
        stops=stop_buckets(offers),
    )
