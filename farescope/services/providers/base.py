"""
Base Flight Provider - Abstract interface for flight offer sources
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from datetime import date
from decimal import Decimal
from enum import Enum
import logging

from farescope.schemas.flight import FlightOffer

logger = logging.getLogger(__name__)


class ProviderStatus(Enum):
    """Provider health status"""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class ProviderError(Exception):
    """Exception raised when a provider fails"""
    def __init__(self, provider_name: str, message: str, original_error: Optional[Exception] = None):
        self.provider_name = provider_name
        self.message = message
        self.original_error = original_error
        super().__init__(f"{provider_name}: {message}")


class AuthError(ProviderError):
    """Credentials are missing or were rejected by the token endpoint"""


class TokenExpiredError(AuthError):
    """A data request was rejected with 401; a fresh token may succeed"""


class RequestError(ProviderError):
    """The provider rejected the request or could not be reached"""
    def __init__(
        self,
        provider_name: str,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        parameter: Optional[str] = None,
    ):
        self.status_code = status_code
        self.parameter = parameter
        super().__init__(provider_name, message, original_error)


class FlightProvider(ABC):
    """
    Abstract base class for flight offer providers.

    Implementations supply priced offers for a route and date. Price lookups
    for single dates are built on top of ``search``.
    """

    name: str = "base"

    _max_failures_before_degraded: int = 3
    _max_failures_before_unavailable: int = 10

    def __init__(self):
        self._status = ProviderStatus.HEALTHY
        self._consecutive_failures = 0

    @property
    def status(self) -> ProviderStatus:
        """Get current provider status"""
        return self._status

    @property
    def is_available(self) -> bool:
        """Check if provider is available for requests"""
        return self._status != ProviderStatus.UNAVAILABLE

    @property
    def is_configured(self) -> bool:
        """Check if provider has required configuration (API keys, etc.)"""
        return True

    def record_success(self):
        """Record a successful request"""
        self._consecutive_failures = 0
        self._status = ProviderStatus.HEALTHY

    def record_failure(self, error: Exception):
        """Record a failed request"""
        self._consecutive_failures += 1
        logger.warning(f"{self.name} provider failure #{self._consecutive_failures}: {error}")

        if self._consecutive_failures >= self._max_failures_before_unavailable:
            self._status = ProviderStatus.UNAVAILABLE
            logger.error(f"{self.name} provider marked as UNAVAILABLE after {self._consecutive_failures} failures")
        elif self._consecutive_failures >= self._max_failures_before_degraded:
            self._status = ProviderStatus.DEGRADED

    @abstractmethod
    async def search(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date] = None,
        passengers: int = 1,
    ) -> List[FlightOffer]:
        """
        Search for flights.

        Args:
            origin: Origin airport IATA code (e.g., "DUB")
            destination: Destination airport IATA code (e.g., "BCN")
            departure_date: Departure date
            return_date: Return date (optional for one-way)
            passengers: Number of adult passengers

        Returns:
            List of flight offers, possibly empty

        Raises:
            AuthError: If credentials are missing or rejected
            RequestError: If the search is rejected or the provider is unreachable
        """

    async def min_price_for_date(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        passengers: int = 1,
    ) -> Optional[Decimal]:
        """
        Cheapest one-way total for a single date.

        Returns None when the provider has no offers for that date.
        """
        offers = await self.search(origin, destination, departure_date, None, passengers)
        if not offers:
            return None
        return min(offer.total_price for offer in offers)

    async def health_check(self) -> bool:
        """
        Check if the provider is healthy and responsive.

        Default implementation reports configuration only.
        """
        return self.is_configured
