"""
Search Orchestrator - Owns the current search, its filters and the price trend
"""
from typing import List, Optional, Sequence
import logging

from farescope.schemas.flight import (
    FilterSpec,
    FlightOffer,
    PriceDataPoint,
    SearchContext,
    SearchState,
    SearchStateResponse,
)
from farescope.services.price_trend import PriceTrendAggregator
from farescope.services.providers.base import FlightProvider, ProviderError
from farescope.services.result_filter import filter_offers

logger = logging.getLogger(__name__)

GENERIC_SEARCH_ERROR = "Failed to search flights"


class SearchOrchestrator:
    """
    State machine behind the search screen.

    IDLE -> SEARCHING -> READY, with ``price_loading`` set while a price trend
    is being computed. Every search and every price recompute takes a new
    generation number; a result is committed only if its generation is still
    the latest, so a slow run can never overwrite a newer one.
    """

    def __init__(self, provider: FlightProvider, aggregator: Optional[PriceTrendAggregator] = None):
        self.provider = provider
        self.aggregator = aggregator or PriceTrendAggregator(provider)

        self.state = SearchState.IDLE
        self.context: Optional[SearchContext] = None
        self.offers: List[FlightOffer] = []
        self.filtered_offers: List[FlightOffer] = []
        self.filters = FilterSpec()
        self.price_series: List[PriceDataPoint] = []
        self.price_loading = False
        self.error: Optional[str] = None

        self._search_generation = 0
        self._price_generation = 0

    @property
    def loading(self) -> bool:
        return self.state == SearchState.SEARCHING

    @property
    def generation(self) -> int:
        return self._price_generation

    async def submit_search(self, context: SearchContext):
        """Run a new search, replacing every result of the previous one"""
        self._search_generation += 1
        generation = self._search_generation
        # Invalidate any price run still in flight for the old results
        self._price_generation += 1

        self.state = SearchState.SEARCHING
        self.context = context
        self.offers = []
        self.filtered_offers = []
        self.filters = FilterSpec()
        self.price_series = []
        self.price_loading = False
        self.error = None

        logger.info(
            f"Searching flights {context.origin}->{context.destination} "
            f"on {context.departure_date} for {context.passengers} passenger(s)"
        )

        try:
            offers = await self.provider.search(
                context.origin,
                context.destination,
                context.departure_date,
                context.return_date,
                context.passengers,
            )
        except ProviderError as e:
            self._search_failed(generation, e.message)
            return
        except Exception:
            logger.exception("Flight search failed unexpectedly")
            self._search_failed(generation, GENERIC_SEARCH_ERROR)
            return

        if generation != self._search_generation:
            logger.debug(f"Discarding results of superseded search #{generation}")
            return

        self.offers = list(offers)
        self.filtered_offers = filter_offers(self.offers, self.filters)
        self.state = SearchState.READY
        logger.info(f"Search #{generation} returned {len(self.offers)} offers")

        await self._refresh_prices()

    async def change_filters(self, spec: FilterSpec):
        """Apply a new filter selection and recompute the price trend"""
        self.filters = spec
        self.filtered_offers = filter_offers(self.offers, spec)
        await self._refresh_prices()

    def _search_failed(self, generation: int, message: str):
        if generation != self._search_generation:
            logger.debug(f"Ignoring failure of superseded search #{generation}: {message}")
            return
        logger.warning(f"Search #{generation} failed: {message}")
        self.state = SearchState.READY
        self.offers = []
        self.filtered_offers = []
        self.price_series = []
        self.error = message

    async def _refresh_prices(self):
        self._price_generation += 1
        generation = self._price_generation

        if not self.filtered_offers:
            self.price_series = []
            self.price_loading = False
            return

        self.price_loading = True
        try:
            series = await self._aggregate(self.filtered_offers, self.context)
        finally:
            if generation == self._price_generation:
                self.price_loading = False

        if generation != self._price_generation:
            logger.debug(f"Discarding price trend of superseded run #{generation}")
            return

        if series is not None:
            self.price_series = series

    async def _aggregate(
        self,
        offers: Sequence[FlightOffer],
        context: Optional[SearchContext],
    ) -> Optional[List[PriceDataPoint]]:
        """Aggregate with gap-fill, falling back to offers-only once"""
        try:
            return await self.aggregator.aggregate(offers, context)
        except Exception as e:
            logger.error(f"Price trend aggregation failed, retrying without gap-fill: {e}")

        try:
            return await self.aggregator.aggregate(offers, None)
        except Exception as e:
            logger.error(f"Price trend aggregation failed, keeping previous series: {e}")
            return None

    def snapshot(self) -> SearchStateResponse:
        """Current state for the display layer"""
        return SearchStateResponse(
            state=self.state,
            loading=self.loading,
            price_loading=self.price_loading,
            error=self.error,
            context=self.context,
            filters=self.filters,
            total_results=len(self.offers),
            filtered_results=len(self.filtered_offers),
            prices=self.price_series,
        )
