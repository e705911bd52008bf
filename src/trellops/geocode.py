"""Query to coordinates lookups through Nominatim (geopy)."""

import asyncio
import logging

import requests
from geopy.exc import GeocoderServiceError, GeopyError
from geopy.geocoders import Nominatim

from trellops import address
from trellops.models import Coordinates

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "trellops/0.3 (operational dashboard)"
TIMEOUT = 10


class GeocodeError(Exception):
    """The lookup service could not be reached or refused the request."""


def resolve_short_link(url: str, session: requests.Session | None = None) -> str:
    """Follow redirects of a shortened link and return the final URL."""
    http = session or requests
    try:
        response = http.head(url, allow_redirects=True, timeout=TIMEOUT)
    except requests.RequestException as exc:
        raise GeocodeError(f"Could not resolve {url}: {exc}") from exc
    return response.url


class Geocoder:
    """Resolves extracted queries to coordinates.

    Coordinate queries never touch the network. Short links are expanded
    and re-extracted before a Nominatim search.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, backend=None, session: requests.Session | None = None):
        self.backend = backend or Nominatim(user_agent=user_agent, timeout=TIMEOUT)
        self.session = session
        self.calls = 0

    def lookup(self, query: str) -> Coordinates | None:
        """Coordinates for query, or None when nothing is found.

        Raises GeocodeError on transport failures.
        """
        coords = address.parse_coordinates(query)
        if coords is not None:
            return coords

        if address.is_short_link(query):
            expanded = resolve_short_link(query, self.session)
            query = address.extract(expanded)
            if not query or address.is_short_link(query):
                logger.debug("short link %s expanded to nothing usable", expanded)
                return None
            coords = address.parse_coordinates(query)
            if coords is not None:
                return coords

        self.calls += 1
        try:
            location = self.backend.geocode(query, exactly_one=True)
        except GeocoderServiceError as exc:
            raise GeocodeError(f"Geocoder failed for {query!r}: {exc}") from exc
        except GeopyError as exc:
            raise GeocodeError(str(exc)) from exc
        if location is None:
            return None
        return Coordinates(float(location.latitude), float(location.longitude))

    async def async_lookup(self, query: str) -> Coordinates | None:
        return await asyncio.to_thread(self.lookup, query)
