"""
Price Trend Aggregator - Builds a continuous daily price series from offers

Dates covered by the offers get the average offer price. Every other day in
the window is looked up from the flight provider in small throttled batches.
"""
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
import asyncio
import logging

from farescope.config import settings
from farescope.schemas.flight import FlightOffer, PriceDataPoint, SearchContext
from farescope.services.providers.base import FlightProvider

logger = logging.getLogger(__name__)


def round_price(value: Decimal) -> int:
    """Round to whole currency units, halves away from zero"""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class PriceTrendAggregator:
    """
    Turns a set of offers into a gap-free, date-ordered price series.

    The series runs from the earliest outbound departure date to
    ``trailing_days`` after the latest one. Gap-fill is best-effort: a date
    whose lookup fails simply stays unknown.
    """

    def __init__(
        self,
        provider: Optional[FlightProvider] = None,
        batch_size: Optional[int] = None,
        inter_batch_delay: Optional[float] = None,
        trailing_days: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.batch_size = settings.PRICE_TREND_BATCH_SIZE if batch_size is None else batch_size
        self.inter_batch_delay = (
            settings.PRICE_TREND_BATCH_DELAY if inter_batch_delay is None else inter_batch_delay
        )
        self.trailing_days = (
            settings.PRICE_TREND_TRAILING_DAYS if trailing_days is None else trailing_days
        )
        if self.batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        if self.inter_batch_delay < 0:
            raise ValueError("inter_batch_delay must not be negative")
        self._sleep = sleep

    async def aggregate(
        self,
        offers: Sequence[FlightOffer],
        context: Optional[SearchContext] = None,
    ) -> List[PriceDataPoint]:
        """
        Build the price series for ``offers``.

        Without a search context (or a provider) days without offers are
        left unknown instead of being looked up.
        """
        if not offers:
            return []

        points = self.build_series(offers)

        if context is None or self.provider is None:
            return points

        return await self._fill_gaps(points, context)

    def local_averages(self, offers: Sequence[FlightOffer]) -> Dict[date, Tuple[int, int]]:
        """Map each outbound departure date to (rounded average price, offer count)"""
        totals: Dict[date, Decimal] = defaultdict(Decimal)
        counts: Dict[date, int] = defaultdict(int)

        for offer in offers:
            day = offer.departure_date
            totals[day] += offer.total_price
            counts[day] += 1

        return {
            day: (round_price(totals[day] / counts[day]), counts[day])
            for day in totals
        }

    def build_series(self, offers: Sequence[FlightOffer]) -> List[PriceDataPoint]:
        """One point per calendar day, unknown where no offer departs"""
        averages = self.local_averages(offers)
        earliest = min(averages)
        end = max(averages) + timedelta(days=self.trailing_days)

        points = []
        day = earliest
        while day <= end:
            if day in averages:
                price, count = averages[day]
                points.append(PriceDataPoint(date=day, price=price, sample_count=count))
            else:
                points.append(PriceDataPoint(date=day, price=None, sample_count=0))
            day += timedelta(days=1)

        return points

    async def _fill_gaps(
        self,
        points: List[PriceDataPoint],
        context: SearchContext,
    ) -> List[PriceDataPoint]:
        points = list(points)
        missing = [index for index, point in enumerate(points) if point.price is None]
        filled = 0

        for start in range(0, len(missing), self.batch_size):
            batch = missing[start:start + self.batch_size]

            # Each lookup handles its own failure, so the batch always settles
            prices = await asyncio.gather(
                *[self._fetch_price(points[index].date, context) for index in batch]
            )

            for index, price in zip(batch, prices):
                if price is not None:
                    points[index] = PriceDataPoint(
                        date=points[index].date,
                        price=round_price(price),
                        sample_count=1,
                    )
                    filled += 1

            if start + self.batch_size < len(missing):
                await self._sleep(self.inter_batch_delay)

        if missing:
            logger.info(
                f"Price trend {context.origin}->{context.destination}: "
                f"filled {filled} of {len(missing)} missing dates"
            )

        return points

    async def _fetch_price(self, day: date, context: SearchContext) -> Optional[Decimal]:
        try:
            return await self.provider.min_price_for_date(
                context.origin,
                context.destination,
                day,
                context.passengers,
            )
        except Exception as e:
            logger.warning(f"Failed to fetch price for {day.isoformat()}: {e}")
            return None
