"""
Result Filter Engine - Narrows a result set down to the user's filter selection
"""
from typing import List, Sequence, Tuple
from decimal import Decimal
import math

from farescope.schemas.flight import FlightOffer, FilterSpec


def matches(offer: FlightOffer, spec: FilterSpec) -> bool:
    """Check a single offer against every active filter"""
    if spec.stops is not None and offer.max_stops != spec.stops:
        return False

    if spec.max_price is not None and offer.total_price > spec.max_price:
        return False

    if spec.airlines and spec.airlines.isdisjoint(offer.validating_airline_codes):
        return False

    return True


def filter_offers(offers: Sequence[FlightOffer], spec: FilterSpec) -> List[FlightOffer]:
    """
    Return the offers passing all filters, in their original order.

    The offers themselves are returned as-is, never copied or modified.
    """
    if spec.is_empty:
        return list(offers)
    return [offer for offer in offers if matches(offer, spec)]


def available_airlines(offers: Sequence[FlightOffer]) -> List[str]:
    """Sorted validating airline codes present in the results"""
    codes = set()
    for offer in offers:
        codes.update(offer.validating_airline_codes)
    return sorted(codes)


def price_range(offers: Sequence[FlightOffer]) -> Tuple[Decimal, Decimal]:
    """Cheapest and most expensive total price, (0, 0) without offers"""
    if not offers:
        return Decimal(0), Decimal(0)
    prices = [offer.total_price for offer in offers]
    return min(prices), max(prices)


def stop_buckets(offers: Sequence[FlightOffer]) -> List[int]:
    """Distinct max-stop counts present in the results"""
    return sorted({offer.max_stops for offer in offers})


def paginate(offers: Sequence[FlightOffer], page: int, page_size: int) -> Tuple[List[FlightOffer], int]:
    """
    Slice out a 1-based page.

    Returns the page and the total page count. Pages past the end are empty.
    """
    total_pages = math.ceil(len(offers) / page_size) if offers else 0
    start = (page - 1) * page_size
    return list(offers[start:start + page_size]), total_pages
