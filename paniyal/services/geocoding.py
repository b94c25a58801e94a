# paniyal/services/geocoding.py
import logging
from typing import Optional

import requests

from paniyal.config.settings import settings

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """The upstream geocoder could not be reached or answered garbage"""


class GeocodingService:
    """Free-text place search against a Nominatim-compatible endpoint"""

    def __init__(self, search_url: str = settings.GEOCODING['search_url'],
                 timeout: float = settings.GEOCODING['timeout'],
                 user_agent: str = settings.GEOCODING['user_agent']):
        self.search_url = search_url
        self.timeout = timeout
        self.user_agent = user_agent

    def search(self, query: str) -> Optional[dict]:
        """
        Look up a place and return the first hit

        Returns:
            {"lat", "lng", "name", "coordinates"} or None when nothing matched
        """
        try:
            response = requests.get(
                self.search_url,
                params={"format": "json", "q": query, "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Geocoding request for '{query}' failed: {e}")
            raise GeocodingError(str(e))

        if not isinstance(results, list):
            logger.error(f"Unexpected geocoding response for '{query}': {results!r}")
            raise GeocodingError(f"Unexpected geocoding response: {results!r}")

        if not results:
            logger.info(f"No geocoding results for '{query}'")
            return None

        first = results[0]
        try:
            lat, lng = float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Malformed geocoding result: {e}")

        return {
            "lat": lat,
            "lng": lng,
            "name": first.get("display_name") or query,
            "coordinates": f"{lat},{lng}",
        }


geocoder = GeocodingService()
