"""
Flight Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, FrozenSet
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class Money(BaseModel):
    """An amount in a single currency"""
    model_config = ConfigDict(frozen=True)

    total: Decimal
    currency: str = "EUR"


class FlightSegment(BaseModel):
    """A single flight segment"""
    model_config = ConfigDict(frozen=True)

    departure_airport: str
    departure_time: datetime
    arrival_airport: str
    arrival_time: datetime
    carrier_code: str
    flight_number: str
    number_of_stops: int = Field(0, ge=0)
    duration_minutes: int = 0
    aircraft: Optional[str] = None


class Itinerary(BaseModel):
    """One directional trip made of one or more segments"""
    model_config = ConfigDict(frozen=True)

    segments: List[FlightSegment] = Field(..., min_length=1)
    duration_minutes: int = 0

    @property
    def max_stops(self) -> int:
        return max(seg.number_of_stops for seg in self.segments)


class FlightOffer(BaseModel):
    """
    A complete flight offer as returned by a provider.

    Holds the outbound itinerary and, for round trips, the return itinerary.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    price: Money
    itineraries: List[Itinerary] = Field(..., min_length=1, max_length=2)
    number_of_bookable_seats: int = 0
    validating_airline_codes: List[str] = Field(default_factory=list)
    source: str = "amadeus"

    @property
    def outbound(self) -> Itinerary:
        return self.itineraries[0]

    @property
    def return_itinerary(self) -> Optional[Itinerary]:
        return self.itineraries[1] if len(self.itineraries) > 1 else None

    @property
    def departure_date(self) -> date:
        """Calendar date of the first outbound departure"""
        return self.outbound.segments[0].departure_time.date()

    @property
    def max_stops(self) -> int:
        """Highest stop count over every segment of every itinerary"""
        return max(itinerary.max_stops for itinerary in self.itineraries)

    @property
    def total_price(self) -> Decimal:
        return self.price.total


class FilterSpec(BaseModel):
    """
    User filter selection. Unset fields mean "no constraint".

    ``stops`` is an exact bucket (0 = non-stop, 1 = one stop, ...), not a ceiling.
    """
    model_config = ConfigDict(frozen=True)

    stops: Optional[int] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    airlines: FrozenSet[str] = Field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return self.stops is None and self.max_price is None and not self.airlines


class SearchContext(BaseModel):
    """Route and passengers of one search, needed to fetch prices for other dates"""
    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., min_length=3, max_length=3)
    destination: str = Field(..., min_length=3, max_length=3)
    departure_date: date
    return_date: Optional[date] = None
    passengers: int = Field(1, ge=1, le=9)


class PriceDataPoint(BaseModel):
    """A single day of the price trend"""
    model_config = ConfigDict(frozen=True)

    date: date
    price: Optional[int] = None
    sample_count: int = Field(0, ge=0)


class SearchState(str, Enum):
    """Lifecycle of the current search"""
    IDLE = "idle"
    SEARCHING = "searching"
    READY = "ready"


class AirlineFacet(BaseModel):
    """An airline available in the current results"""
    code: str
    display_name: str


class FacetsResponse(BaseModel):
    """Filter choices derived from the unfiltered results"""
    airlines: List[AirlineFacet]
    min_price: Decimal
    max_price: Decimal
    currency: Optional[str] = None
    stops: List[int]


class PriceTrendResponse(BaseModel):
    """Price trend series for the current filtered results"""
    price_loading: bool
    currency: Optional[str] = None
    prices: List[PriceDataPoint]


class SearchStateResponse(BaseModel):
    """Snapshot of the search orchestrator"""
    state: SearchState
    loading: bool
    price_loading: bool
    error: Optional[str] = None
    context: Optional[SearchContext] = None
    filters: FilterSpec
    total_results: int
    filtered_results: int
    prices: List[PriceDataPoint]


class FlightResultsPage(BaseModel):
    """One page of filtered offers"""
    page: int
    page_size: int
    total_pages: int
    total_results: int
    offers: List[FlightOffer]
