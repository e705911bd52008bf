"""Geocodable query extraction from free-text card descriptions.

Each matcher is a pure function from description to query (or None).
They run in the order of MATCHERS and the first answer wins.
"""

import re
from urllib.parse import parse_qs, unquote_plus, urlparse

from trellops.models import Coordinates

SHORT_LINK_DOMAINS = ("maps.app.goo.gl", "goo.gl", "bit.ly", "t.co")

_URL = re.compile(r"https?://[^\s<>\"')\]]+", re.IGNORECASE)
_AT_COORDS = re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")
_PAIR = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")
_BARE_PAIR = re.compile(r"(?<![\d.])(-?\d{1,3}\.\d+)\s*,\s*(-?\d{1,3}\.\d+)(?![\d.])")
_PLACE = re.compile(r"/place/([^/?#]+)")

_STREET = re.compile(
    r"^[ \t]*\d+[A-Za-z]?(?:[-/]\d+)?[ \t]+[A-Za-z \t'.]+"
    r"\b(?:St|Street|Ave|Avenue|Rd|Road|Ln|Lane|Dr|Drive|Way|Court|Ct|Place|Pl|Parkway"
    r"|Crescent|Cres|Boulevard|Blvd)\b[^\n]*",
    re.IGNORECASE | re.MULTILINE,
)
_CORNER = re.compile(
    r"^.*\b(?:CNR|Corner(?:[ \t]+of)?)[ \t]+[A-Za-z \t]+[&/][ \t]*[A-Za-z \t]+.*$",
    re.IGNORECASE | re.MULTILINE,
)
_SUBURB = re.compile(r"^.*[A-Za-z],?[ \t]+(?:VIC|NSW|QLD|SA|WA|TAS|ACT|NT)[ \t]+\d{4}\b.*$", re.MULTILINE)
_REFERENCE = re.compile(r"^(?:S\d+|[A-Z]{2}\d+)")

MIN_QUERY_LENGTH = 6


def _urls(description: str) -> list[str]:
    return _URL.findall(description)


def _valid_pair(lat: float, lng: float) -> bool:
    return abs(lat) <= 90 and abs(lng) <= 180


def parse_coordinates(text: str | None) -> Coordinates | None:
    """Parse text that is exactly a "lat,lng" pair within range."""
    if not text:
        return None
    match = _PAIR.match(text)
    if not match:
        return None
    lat, lng = float(match.group(1)), float(match.group(2))
    if not _valid_pair(lat, lng):
        return None
    return Coordinates(lat, lng)


def is_short_link(text: str | None) -> bool:
    """Check if text is a URL on a link-shortener domain."""
    if not text:
        return False
    host = (urlparse(text.strip()).hostname or "").lower()
    return any(host == domain or host.endswith("." + domain) for domain in SHORT_LINK_DOMAINS)


def match_at_coordinates(description: str) -> str | None:
    """Map links carrying "@lat,lng" in their path."""
    match = _AT_COORDS.search(description)
    if match:
        return f"{match.group(1)},{match.group(2)}"
    return None


def match_query_parameter(description: str) -> str | None:
    """URLs with a q or query parameter, either coordinates or place text."""
    for url in _urls(description):
        params = parse_qs(urlparse(url).query)
        values = params.get("q") or params.get("query")
        if not values:
            continue
        value = values[0].strip()
        coords = parse_coordinates(value)
        if coords is not None:
            return value.replace(" ", "")
        if value:
            return value
    return None


def match_place_path(description: str) -> str | None:
    """URLs whose path names a place: /maps/place/<name>/."""
    for url in _urls(description):
        match = _PLACE.search(urlparse(url).path + "/")
        if match:
            name = unquote_plus(match.group(1)).strip()
            if name:
                return name
    return None


def match_short_link(description: str) -> str | None:
    """Shortened map links, returned as-is for redirect resolution."""
    for url in _urls(description):
        if is_short_link(url):
            return url
    return None


def match_bare_coordinates(description: str) -> str | None:
    """A plain "lat,lng" pair anywhere in the text."""
    for match in _BARE_PAIR.finditer(description):
        lat, lng = float(match.group(1)), float(match.group(2))
        if _valid_pair(lat, lng):
            return f"{match.group(1)},{match.group(2)}"
    return None


def match_street_address(description: str) -> str | None:
    """Street, corner and suburb/state/postcode shapes. The whole line is returned."""
    for pattern in (_STREET, _CORNER, _SUBURB):
        for match in pattern.finditer(description):
            line = match.group(0).strip()
            if len(line) >= MIN_QUERY_LENGTH:
                return line
    return None


def match_first_line(description: str) -> str | None:
    """The first non-empty line, unless it is a reference code or a link."""
    for line in description.splitlines():
        line = line.strip()
        if not line:
            continue
        if len(line) < MIN_QUERY_LENGTH:
            return None
        if _REFERENCE.match(line) or line.lower().startswith("http"):
            return None
        return line
    return None


MATCHERS = (
    match_at_coordinates,
    match_query_parameter,
    match_place_path,
    match_short_link,
    match_bare_coordinates,
    match_street_address,
    match_first_line,
)


def extract(description: str | None) -> str | None:
    """Extract a geocodable query from a description, or None."""
    if not description or not description.strip():
        return None
    for matcher in MATCHERS:
        query = matcher(description)
        if query:
            return query
    return None
