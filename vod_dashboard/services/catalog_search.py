"""Catalog Search, Filter and Sort

Pure functions over lists of CatalogItem already fetched from a server.
None of them touch the network or storage, none of them mutate their input,
and none of them raise on bad item data: unparseable dates and ratings
degrade to "excluded" (date filter) or "zero" (sorting).

Typical order used by the movies endpoint:
    filter_by_category -> search_movies -> filter_by_date -> sort_movies
"""

import logging
import re
import unicodedata
from datetime import date, datetime, timezone
from typing import Optional, Sequence, List, Union

from rapidfuzz import fuzz, utils

from vod_dashboard.models.catalog import CatalogItem

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.4

# Searched fields and their relative weight
SEARCH_KEYS = (
    ("name", 0.7),
    ("title", 0.7),
    ("plot", 0.3),
    ("genre", 0.2),
    ("director", 0.2),
    ("actors", 0.2),
)
_TOTAL_WEIGHT = sum(weight for _, weight in SEARCH_KEYS)

# Floor for a perfect match so it still ranks by weight in the product
_MIN_DISTANCE = 0.001

SORT_FIELDS = ("name", "added", "rating")
SORT_ORDERS = ("asc", "desc")

_NUMERIC = re.compile(r'^-?\d+(\.\d+)?$')
_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d-%m-%Y",
)

DateLike = Union[str, int, float, date, datetime, None]


# ============================================================================
# Value parsing
# ============================================================================

def parse_timestamp(value: DateLike) -> Optional[float]:
    """Parse an "added" value into Unix seconds

    Accepts Unix seconds (int or numeric string, the usual Xtream form),
    ISO-8601 dates/datetimes and datetime objects. Naive values are UTC.

    Returns:
        Seconds since epoch, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if _NUMERIC.match(text):
            return float(text)
        dt = _parse_datetime_text(text)
        if dt is None:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def parse_date_filter(value: DateLike) -> Optional[float]:
    """Parse a caller-supplied "from" date into Unix seconds

    Only ISO-8601 dates/datetimes and date objects are accepted. Bare numbers
    are rejected, so "2023" is not read as 2023 seconds after the epoch.

    Returns:
        Seconds since epoch, or None if the value is not a date
    """
    if value is None or isinstance(value, (bool, int, float)):
        return None
    if isinstance(value, date):
        return parse_timestamp(value)

    text = str(value).strip()
    if not text or _NUMERIC.match(text):
        return None
    return parse_timestamp(text)


def _parse_datetime_text(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_rating(value: Optional[str]) -> float:
    """Parse a rating string, 0.0 when missing or not a number"""
    if value is None:
        return 0.0
    try:
        rating = float(str(value).strip())
    except ValueError:
        return 0.0
    if rating != rating:  # NaN
        return 0.0
    return rating


def _collation_key(name: str):
    # Accent- and case-insensitive first, raw string to order the rest
    decomposed = unicodedata.normalize("NFKD", name or "")
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), name or "")


# ============================================================================
# Search
# ============================================================================

def _field_distance(query: str, value: str) -> float:
    """Fuzzy distance between a processed query and a field, 0.0 = identical"""
    processed = utils.default_process(value)
    if not processed:
        return 1.0
    # Short fields are compared whole so a long query does not match "Drama"
    if len(processed) < len(query):
        score = fuzz.ratio(query, processed)
    else:
        score = fuzz.partial_ratio(query, processed)
    return 1.0 - score / 100.0


def _match_score(item: CatalogItem, query: str, threshold: float) -> Optional[float]:
    """Weighted match score for one item, lower is better

    Only fields within the threshold contribute; returns None when no field does.
    """
    score = None
    for key, weight in SEARCH_KEYS:
        value = getattr(item, key, None)
        if not value:
            continue
        distance = _field_distance(query, value)
        if distance > threshold:
            continue
        factor = max(distance, _MIN_DISTANCE) ** (weight / _TOTAL_WEIGHT)
        score = factor if score is None else score * factor
    return score


def search_movies(
    items: Sequence[CatalogItem],
    query: Optional[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[CatalogItem]:
    """Fuzzy search over name, title, plot, genre, director and actors

    Args:
        items: Catalog items to search
        query: Search text; blank returns every item in its original order
        threshold: Maximum fuzzy distance (0.0-1.0) for a field to count as a match

    Returns:
        Matching items, best match first (ties keep input order)
    """
    if query is None or not query.strip():
        return list(items)

    processed_query = utils.default_process(query)
    if not processed_query:
        return []

    scored = []
    for item in items:
        score = _match_score(item, processed_query, threshold)
        if score is not None:
            scored.append((score, item))

    scored.sort(key=lambda pair: pair[0])
    logger.debug(f"Search '{query}' matched {len(scored)} of {len(items)} items")
    return [item for _, item in scored]


# ============================================================================
# Filters
# ============================================================================

def filter_by_date(items: Sequence[CatalogItem], from_date: DateLike = None) -> List[CatalogItem]:
    """Keep items added on or after from_date

    Items whose "added" is missing or unparseable are dropped while a date
    filter is active. A from_date that is not a date matches nothing.
    """
    if from_date is None or from_date == "":
        return list(items)

    threshold = parse_date_filter(from_date)
    if threshold is None:
        logger.warning(f"Unparseable date filter {from_date!r} matches no items")
        return []

    kept = []
    for item in items:
        added = parse_timestamp(item.added)
        if added is not None and added >= threshold:
            kept.append(item)
    return kept


def filter_by_category(items: Sequence[CatalogItem], category_id: Optional[str] = None) -> List[CatalogItem]:
    """Keep items whose category id equals category_id (string comparison)"""
    if category_id is None or category_id == "":
        return list(items)
    category_id = str(category_id)
    return [item for item in items if item.category_id == category_id]


# ============================================================================
# Sort
# ============================================================================

def sort_movies(
    items: Sequence[CatalogItem],
    sort_by: str = "name",
    sort_order: str = "asc",
) -> List[CatalogItem]:
    """Return a new list sorted by name, added date or rating

    Missing or unparseable dates and ratings sort as zero. The sort is stable
    in both directions, so equal keys keep their relative order.
    """
    reverse = sort_order == "desc"

    if sort_by == "name":
        key = lambda item: _collation_key(item.name)
    elif sort_by == "added":
        key = lambda item: parse_timestamp(item.added) or 0.0
    elif sort_by == "rating":
        key = lambda item: parse_rating(item.rating)
    else:
        logger.warning(f"Unknown sort field {sort_by!r}, leaving order unchanged")
        return list(items)

    return sorted(items, key=key, reverse=reverse)


def apply_pipeline(
    items: Sequence[CatalogItem],
    query: Optional[str] = None,
    category_id: Optional[str] = None,
    from_date: DateLike = None,
    sort_by: Optional[str] = None,
    sort_order: str = "asc",
    threshold: float = DEFAULT_THRESHOLD,
) -> List[CatalogItem]:
    """Category filter, then search, then date filter, then sort (if sort_by is given)"""
    result = filter_by_category(items, category_id)
    result = search_movies(result, query, threshold)
    result = filter_by_date(result, from_date)
    if sort_by:
        result = sort_movies(result, sort_by, sort_order or "asc")
    return result
