from datetime import date, datetime, timedelta
from decimal import Decimal

from farescope.schemas.flight import FlightOffer, FlightSegment, Itinerary, Money
from farescope.services.providers.base import FlightProvider


def make_segment(origin, destination, departure, stops=0, carrier="AA"):
    departure = datetime.fromisoformat(departure) if isinstance(departure, str) else departure
    return FlightSegment(
        departure_airport=origin,
        departure_time=departure,
        arrival_airport=destination,
        arrival_time=departure + timedelta(hours=2),
        carrier_code=carrier,
        flight_number=f"{carrier}100",
        number_of_stops=stops,
        duration_minutes=120,
    )


def make_offer(
    offer_id,
    price,
    departure="2024-06-01T09:00:00",
    stops=0,
    return_stops=None,
    airlines=("AA",),
    currency="USD",
):
    """Offer with one outbound segment and an optional return segment"""
    itineraries = [Itinerary(
        segments=[make_segment("JFK", "LAX", departure, stops, airlines[0] if airlines else "AA")],
        duration_minutes=120,
    )]
    if return_stops is not None:
        itineraries.append(Itinerary(
            segments=[make_segment("LAX", "JFK", "2024-06-10T09:00:00", return_stops)],
            duration_minutes=120,
        ))
    return FlightOffer(
        id=str(offer_id),
        price=Money(total=Decimal(str(price)), currency=currency),
        itineraries=itineraries,
        number_of_bookable_seats=4,
        validating_airline_codes=list(airlines),
        source="test",
    )


class FakeProvider(FlightProvider):
    """In-memory provider recording every call"""

    name = "fake"

    def __init__(self, offers=None, prices=None, error=None):
        super().__init__()
        self.offers = list(offers or [])
        self.prices = dict(prices or {})
        self.error = error
        self.searches = []
        self.price_requests = []

    async def search(self, origin, destination, departure_date, return_date=None, passengers=1):
        self.searches.append((origin, destination, departure_date, return_date, passengers))
        if self.error:
            raise self.error
        return list(self.offers)

    async def min_price_for_date(self, origin, destination, departure_date, passengers=1):
        self.price_requests.append(departure_date)
        value = self.prices.get(departure_date)
        if isinstance(value, Exception):
            raise value
        return value


class FakeSleep:
    """Records requested pauses instead of sleeping"""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)


def day(value: str) -> date:
    return date.fromisoformat(value)


def price(value) -> Decimal:
    return Decimal(str(value))
