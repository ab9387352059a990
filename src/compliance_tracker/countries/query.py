"""
Compliance Tracker — Query Layer

Filtriranje i paginacija spojene liste država u memoriji.
Svi filtri se kombiniraju s AND.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from compliance_tracker.core.types import CHANNELS, Country

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100


@dataclass
class CountryFilter:
    continent: Optional[str] = None
    region: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None
    updated_since: Optional[Union[date, datetime]] = None


@dataclass
class Page:
    items: List[Country]
    total: int
    page: int
    limit: int


def parse_timestamp(value: str) -> Optional[datetime]:
    """ISO datum/vrijeme → aware datetime (UTC ako nema zone). None ako ne valja."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def matches(country: Country, flt: CountryFilter) -> bool:
    if flt.continent and country.continent.lower() != flt.continent.lower():
        return False

    if flt.region:
        if not country.region or flt.region.lower() not in country.region.lower():
            return False

    if flt.search:
        needle = flt.search.lower()
        if not (needle in country.name.lower()
                or needle in country.iso_code2.lower()
                or needle in country.iso_code3.lower()):
            return False

    if flt.status:
        wanted = flt.status.lower()
        if not any(country.e_invoicing.channel(ch).status == wanted for ch in CHANNELS):
            return False

    if flt.updated_since is not None:
        updated = parse_timestamp(country.e_invoicing.last_updated)
        if updated is None or updated < _as_datetime(flt.updated_since):
            return False

    return True


def filter_countries(countries: List[Country], flt: CountryFilter) -> List[Country]:
    return [c for c in countries if matches(c, flt)]


def paginate(countries: List[Country], page: int = DEFAULT_PAGE,
             limit: int = DEFAULT_LIMIT) -> Page:
    """Stranica rezultata. Stranica izvan raspona = prazna lista, ne greška."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= limit <= MAX_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")
    start = (page - 1) * limit
    return Page(items=countries[start:start + limit], total=len(countries),
                page=page, limit=limit)


def query_countries(countries: List[Country], flt: CountryFilter,
                    page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> Page:
    return paginate(filter_countries(countries, flt), page, limit)
