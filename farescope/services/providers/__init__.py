"""
Flight Offer Providers - Data sources for flight searches
"""
from .base import (
    FlightProvider,
    ProviderStatus,
    ProviderError,
    AuthError,
    TokenExpiredError,
    RequestError,
)
from .amadeus import AmadeusProvider, TokenCache
from .mock import MockProvider


def create_provider() -> FlightProvider:
    """Amadeus when credentials are configured, mock data otherwise"""
    amadeus = AmadeusProvider()
    if amadeus.is_configured:
        return amadeus
    return MockProvider()


__all__ = [
    "FlightProvider",
    "ProviderStatus",
    "ProviderError",
    "AuthError",
    "TokenExpiredError",
    "RequestError",
    "AmadeusProvider",
    "TokenCache",
    "MockProvider",
    "create_provider",
]
