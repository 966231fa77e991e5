"""
Amadeus Flight Provider - Primary flight data source
https://developers.amadeus.com/
"""
from typing import List, Optional
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
import httpx
import logging
import re
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from farescope.config import settings
from farescope.schemas.flight import FlightOffer, FlightSegment, Itinerary, Money
from .base import FlightProvider, ProviderError, AuthError, TokenExpiredError, RequestError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to search flights. Please check your API credentials and try again."


@dataclass
class TokenCache:
    """OAuth access token and its expiry, owned by a single provider instance"""
    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def get(self, now: Optional[datetime] = None) -> Optional[str]:
        """Return the cached token while it is still valid"""
        now = now or datetime.now(timezone.utc)
        if self.token and self.expires_at and now < self.expires_at:
            return self.token
        return None

    def store(self, token: str, expires_in: int, margin: int = 0):
        self.token = token
        self.expires_at = datetime.now(timezone.utc) + timedelta(seconds=max(expires_in - margin, 0))

    def invalidate(self):
        # Safe to call repeatedly; concurrent callers just refresh twice
        self.token = None
        self.expires_at = None


class AmadeusProvider(FlightProvider):
    """
    Amadeus flight search provider.

    Requires API key and secret from https://developers.amadeus.com/.
    The access token lives in ``token_cache``; a request rejected with 401 is
    replayed with a fresh token up to ``auth_retries`` times.
    """

    name = "amadeus"

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        auth_retries: Optional[int] = None,
        token_cache: Optional[TokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__()
        self.api_key = settings.AMADEUS_API_KEY if api_key is None else api_key
        self.api_secret = settings.AMADEUS_API_SECRET if api_secret is None else api_secret
        self.base_url = (base_url or settings.AMADEUS_BASE_URL).rstrip("/")
        self.auth_retries = settings.AMADEUS_AUTH_RETRIES if auth_retries is None else auth_retries
        self.timeout = settings.AMADEUS_REQUEST_TIMEOUT if timeout is None else timeout
        self.token_expiry_margin = settings.AMADEUS_TOKEN_EXPIRY_MARGIN
        self.max_results = settings.AMADEUS_MAX_RESULTS
        self.token_cache = token_cache or TokenCache()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        """Check if Amadeus credentials are configured"""
        return bool(self.api_key and self.api_secret)

    @property
    def token_url(self) -> str:
        return self.base_url.replace("/v2", "/v1/security/oauth2/token")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _fetch_token(self) -> str:
        """Request a new OAuth access token and cache it"""
        async with self._client() as client:
            response = await client.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.api_key,
                    "client_secret": self.api_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )

        if response.status_code != 200:
            raise AuthError(self.name, f"Failed to authenticate with Amadeus API (HTTP {response.status_code})")

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise AuthError(self.name, "Failed to get access token from Amadeus API")

        expires_in = int(data.get("expires_in", 1799))
        self.token_cache.store(token, expires_in, self.token_expiry_margin)
        logger.info(f"Amadeus token acquired, expires in {expires_in}s")
        return token

    async def _get_token(self) -> str:
        """Get the cached access token or fetch a new one"""
        if not self.is_configured:
            raise AuthError(
                self.name,
                "Amadeus API credentials not configured. Set AMADEUS_API_KEY and AMADEUS_API_SECRET",
            )

        token = self.token_cache.get()
        if token:
            return token

        try:
            return await self._fetch_token()
        except httpx.TransportError as e:
            raise RequestError(self.name, f"Amadeus authentication request failed: {e}", e)

    async def _send(self, path: str, params: dict, token: str) -> dict:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}{path}",
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TransportError as e:
            raise RequestError(self.name, f"Amadeus request failed: {e}", e)

        if response.status_code == 401:
            self.token_cache.invalidate()
            raise TokenExpiredError(self.name, "Amadeus access token expired or invalid")

        if response.status_code >= 400:
            raise self._request_error(response)

        return response.json()

    async def _get_json(self, path: str, params: dict) -> dict:
        """GET an API path, replaying it with a fresh token after a 401"""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TokenExpiredError),
            stop=stop_after_attempt(self.auth_retries + 1),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        ):
            with attempt:
                token = await self._get_token()
                data = await self._send(path, params, token)
        return data

    def _request_error(self, response: httpx.Response) -> RequestError:
        """Build a RequestError from the Amadeus error payload"""
        message = DEFAULT_ERROR_MESSAGE
        parameter = None

        try:
            payload = response.json()
        except ValueError:
            payload = None

        errors = payload.get("errors") if isinstance(payload, dict) else None
        first = errors[0] if isinstance(errors, list) and errors else None

        if isinstance(first, dict):
            message = first.get("detail") or message
            source = first.get("source")
            parameter = source.get("parameter") if isinstance(source, dict) else None
            if parameter:
                message += f" (Parameter: {parameter})"

        return RequestError(self.name, message, status_code=response.status_code, parameter=parameter)

    async def search(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date] = None,
        passengers: int = 1,
    ) -> List[FlightOffer]:
        """Search flights using Amadeus Flight Offers Search API"""
        params = {
            "originLocationCode": origin.upper(),
            "destinationLocationCode": destination.upper(),
            "departureDate": departure_date.isoformat(),
            "adults": passengers,
            "max": self.max_results,
        }

        if return_date:
            params["returnDate"] = return_date.isoformat()

        try:
            data = await self._get_json("/shopping/flight-offers", params)
        except ProviderError as e:
            self.record_failure(e)
            raise

        offers = self._parse_response(data)
        self.record_success()
        logger.info(f"Amadeus returned {len(offers)} offers for {origin}->{destination} on {departure_date}")
        return offers

    def _parse_response(self, data: dict) -> List[FlightOffer]:
        """Parse Amadeus API response"""
        offers = []

        for offer_data in data.get("data") or []:
            try:
                itineraries = [
                    self._parse_itinerary(itinerary)
                    for itinerary in offer_data.get("itineraries", [])
                ]
                if not itineraries:
                    continue

                offers.append(FlightOffer(
                    id=str(offer_data["id"]),
                    price=Money(
                        total=Decimal(str(offer_data["price"]["total"])),
                        currency=offer_data["price"].get("currency", "EUR"),
                    ),
                    itineraries=itineraries,
                    number_of_bookable_seats=int(offer_data.get("numberOfBookableSeats", 0)),
                    validating_airline_codes=list(offer_data.get("validatingAirlineCodes", [])),
                    source=self.name,
                ))

            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                logger.warning(f"Failed to parse Amadeus offer: {e}")
                continue

        return offers

    def _parse_itinerary(self, itinerary_data: dict) -> Itinerary:
        segments = self._parse_segments(itinerary_data.get("segments", []))
        duration = itinerary_data.get("duration")
        return Itinerary(
            segments=segments,
            duration_minutes=(
                self._parse_duration(duration) if duration
                else sum(s.duration_minutes for s in segments)
            ),
        )

    def _parse_segments(self, segments_data: list) -> List[FlightSegment]:
        """Parse flight segments"""
        segments = []
        for seg in segments_data:
            segments.append(FlightSegment(
                departure_airport=seg["departure"]["iataCode"],
                departure_time=datetime.fromisoformat(seg["departure"]["at"].replace("Z", "+00:00")),
                arrival_airport=seg["arrival"]["iataCode"],
                arrival_time=datetime.fromisoformat(seg["arrival"]["at"].replace("Z", "+00:00")),
                carrier_code=seg["carrierCode"],
                flight_number=f"{seg['carrierCode']}{seg['number']}",
                number_of_stops=int(seg.get("numberOfStops", 0)),
                duration_minutes=self._parse_duration(seg.get("duration", "PT0H0M")),
                aircraft=(seg.get("aircraft") or {}).get("code"),
            ))
        return segments

    def _parse_duration(self, duration_str: str) -> int:
        """Parse ISO 8601 duration to minutes"""
        match = re.match(r'P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?', duration_str)
        if match:
            days = int(match.group(1) or 0)
            hours = int(match.group(2) or 0)
            minutes = int(match.group(3) or 0)
            return days * 24 * 60 + hours * 60 + minutes
        return 0

    async def health_check(self) -> bool:
        """Check Amadeus API connectivity"""
        if not self.is_configured:
            return False

        try:
            await self._get_token()
            return True
        except ProviderError:
            return False
