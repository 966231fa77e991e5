"""
Mock Flight Provider - Deterministic offers for development without API keys
"""
from typing import List, Optional
from datetime import date, datetime, time, timedelta
from decimal import Decimal
import logging
import random

from farescope.schemas.flight import FlightOffer, FlightSegment, Itinerary, Money
from .base import FlightProvider

logger = logging.getLogger(__name__)

AIRLINES = ["FR", "EI", "BA", "LH", "IB", "VY", "AF"]
STOPOVERS = ["LHR", "CDG", "AMS", "FRA", "MAD"]
BASE_PRICES = [49, 79, 99, 129, 159, 199, 249]


class MockProvider(FlightProvider):
    """
    Generates plausible offers so the app works offline.

    Results are seeded from the route and date, so the same query always
    returns the same offers.
    """

    name = "mock"

    async def search(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date] = None,
        passengers: int = 1,
    ) -> List[FlightOffer]:
        rng = random.Random(f"{origin}-{destination}-{departure_date.isoformat()}")
        offers = []

        # Weekends are more expensive
        surcharge = 30 if departure_date.weekday() >= 5 else 0

        for i, base_price in enumerate(BASE_PRICES):
            airline = rng.choice(AIRLINES)
            itineraries = [self._itinerary(rng, airline, origin, destination, departure_date)]
            if return_date:
                itineraries.append(self._itinerary(rng, airline, destination, origin, return_date))

            fare = (base_price + surcharge + rng.randint(-20, 50)) * len(itineraries)
            offers.append(FlightOffer(
                id=f"mock-{departure_date.isoformat()}-{i}",
                price=Money(total=Decimal(fare * passengers), currency="EUR"),
                itineraries=itineraries,
                number_of_bookable_seats=rng.randint(1, 9),
                validating_airline_codes=[airline],
                source=self.name,
            ))

        logger.info(f"Generated {len(offers)} mock offers for {origin}->{destination} on {departure_date}")
        return offers

    def _itinerary(
        self,
        rng: random.Random,
        airline: str,
        origin: str,
        destination: str,
        day: date,
    ) -> Itinerary:
        departure = datetime.combine(day, time(hour=rng.randint(6, 20)))

        if rng.random() > 0.3:
            duration = rng.randint(90, 180)
            segments = [self._segment(rng, airline, origin, destination, departure, duration)]
        else:
            stopover = rng.choice(STOPOVERS)
            first = self._segment(rng, airline, origin, stopover, departure, 120)
            second = self._segment(
                rng, airline, stopover, destination, first.arrival_time + timedelta(hours=2), 120
            )
            segments = [first, second]

        total = (segments[-1].arrival_time - segments[0].departure_time).total_seconds() // 60
        return Itinerary(segments=segments, duration_minutes=int(total))

    def _segment(
        self,
        rng: random.Random,
        airline: str,
        origin: str,
        destination: str,
        departure: datetime,
        duration: int,
    ) -> FlightSegment:
        return FlightSegment(
            departure_airport=origin,
            departure_time=departure,
            arrival_airport=destination,
            arrival_time=departure + timedelta(minutes=duration),
            carrier_code=airline,
            flight_number=f"{airline}{rng.randint(100, 999)}",
            duration_minutes=duration,
        )
