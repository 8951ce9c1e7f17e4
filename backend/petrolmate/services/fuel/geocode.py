"""
Geocode enrichment through OpenStreetMap Nominatim
"""
import logging
from typing import Dict, Optional, Protocol

import httpx

from petrolmate.schemas.fuel import Coordinates

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"


class Geocoder(Protocol):
    """Address to coordinates lookup used by the extractor"""

    async def geocode(self, address: str) -> Optional[Coordinates]: ...


class GeocodeEnricher:
    """
    Resolves full addresses to coordinates.

    lookup() is the raw collaborator call and may raise; geocode() is what
    the pipeline uses and never raises. Successful lookups are cached per
    address when use_cache is set; failures are not cached.

    Usage:
        async with GeocodeEnricher(country='AU') as geocoder:
            coordinates = await geocoder.geocode("12 Main St, Exampletown, 5000")
    """

    def __init__(
        self,
        base_url: str = NOMINATIM_SEARCH_URL,
        country: str = "AU",
        timeout: float = 10.0,
        user_agent: str = "petrolmate-crawler/1.0",
        use_cache: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.country = country
        self.use_cache = use_cache
        self._cache: Dict[str, Coordinates] = {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={'User-Agent': user_agent},
        )

    async def __aenter__(self) -> 'GeocodeEnricher':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def lookup(self, address: str, country: str) -> Optional[Coordinates]:
        """
        Query the search endpoint and return the best match.

        Raises:
            httpx.HTTPError: On network failure, timeout or non-2xx status
            ValueError: If the payload is not valid JSON
        """
        response = await self._client.get(
            self.base_url,
            params={
                'q': address,
                'format': 'json',
                'countrycodes': country,
                'limit': 1,
            },
        )
        response.raise_for_status()

        results = response.json()
        if not isinstance(results, list) or not results:
            return None

        best = results[0]
        if not isinstance(best, dict):
            return None

        latitude = best.get('lat')
        longitude = best.get('lon')
        if latitude in (None, '') or longitude in (None, ''):
            return None

        return Coordinates(latitude=float(latitude), longitude=float(longitude))

    async def geocode(self, address: str) -> Optional[Coordinates]:
        """Coordinates for address, or None on no match or any error"""
        if not address:
            return None

        if self.use_cache and address in self._cache:
            return self._cache[address]

        try:
            coordinates = await self.lookup(address, self.country)
        except httpx.TimeoutException:
            logger.warning(f"Geocode timeout for '{address}'")
            return None
        except Exception as e:
            logger.warning(f"Geocode failed for '{address}': {e}")
            return None

        if coordinates is None:
            logger.info(f"No geocode match for '{address}'")
            return None

        if self.use_cache:
            self._cache[address] = coordinates
        return coordinates
