"""
Compliance Tracker — Client

HTTP klijent za /api/v1 (httpx) i klijentski store: keš spojene liste
država s lokalnim filtrima (search, continent, status, lastChangeAfter).
Vrijednost 'all' za continent/status znači bez ograničenja.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import httpx

from compliance_tracker.core.types import CHANNELS
from compliance_tracker.countries.query import MAX_LIMIT, parse_timestamp

logger = logging.getLogger("compliance_tracker.client")


class ApiClientError(Exception):
    def __init__(self, message: str, code: str = "", status_code: int = 0):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


# ═══════════════════════════════════════════
# API CLIENT
# ═══════════════════════════════════════════


class ComplianceApiClient:
    """Tanki omotač oko REST API-ja."""

    def __init__(self, base_url: str = "http://localhost:3003/api/v1",
                 client: Optional[httpx.Client] = None,
                 helper_url: str = "http://localhost:4321",
                 page_size: int = MAX_LIMIT):
        self.base_url = base_url.rstrip("/")
        self.helper_url = helper_url.rstrip("/")
        self.page_size = page_size
        self.client = client or httpx.Client(timeout=30)

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ApiClientError(f"Request to {url} failed: {e}") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise ApiClientError(f"Invalid JSON from {url}", status_code=resp.status_code) from e
        if resp.is_error or body.get("success") is False:
            error = body.get("error") or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise ApiClientError(error.get("message") or f"HTTP {resp.status_code}",
                                 error.get("code", ""), resp.status_code)
        return body

    def fetch_countries(self, page: int = 1, **filters) -> Dict[str, Any]:
        params = {"page": page, "limit": self.page_size}
        params.update({k: v for k, v in filters.items() if v})
        return self._request("GET", f"{self.base_url}/countries", params=params)

    def fetch_all_countries(self, **filters) -> List[Dict[str, Any]]:
        """Sve stranice redom dok se ne skupi meta.total zapisa."""
        countries: List[Dict[str, Any]] = []
        page = 1
        while True:
            body = self.fetch_countries(page, **filters)
            items = body.get("data") or []
            countries.extend(items)
            total = body.get("meta", {}).get("total", len(countries))
            if not items or len(countries) >= total:
                break
            page += 1
        logger.info("Fetched %d countries in %d page(s)", len(countries), page)
        return countries

    def get_country(self, code: str) -> Dict[str, Any]:
        return self._request("GET", f"{self.base_url}/countries/{code}")["data"]

    def start_refresh(self) -> bool:
        resp = self.client.post(f"{self.helper_url}/refresh-web")
        return resp.status_code == 202

    def refresh_progress(self) -> Dict[str, Any]:
        return self.client.get(f"{self.helper_url}/progress").json()

    def close(self):
        self.client.close()


# ═══════════════════════════════════════════
# STORE
# ═══════════════════════════════════════════


@dataclass
class FilterState:
    search: str = ""
    continent: str = ""
    status: str = ""
    lastChangeAfter: str = ""


def apply_filters(countries: List[Dict[str, Any]], filters: FilterState) -> List[Dict[str, Any]]:
    since = None
    if filters.lastChangeAfter:
        since = parse_timestamp(filters.lastChangeAfter)
        if since is None:
            logger.warning("Invalid date in lastChangeAfter filter: %s", filters.lastChangeAfter)

    result = []
    for c in countries:
        if filters.search:
            term = filters.search.lower()
            if not (term in c.get("name", "").lower()
                    or term in (c.get("isoCode3") or "").lower()
                    or term in (c.get("isoCode2") or "").lower()):
                continue
        if filters.continent and filters.continent != "all" \
                and c.get("continent") != filters.continent:
            continue
        e = c.get("eInvoicing") or {}
        if filters.status and filters.status != "all" \
                and not any((e.get(ch) or {}).get("status") == filters.status for ch in CHANNELS):
            continue
        if since is not None:
            updated = parse_timestamp(e.get("lastUpdated") or "")
            if updated is not None and updated < since:
                continue
        result.append(c)
    return result


@dataclass
class CountryStore:
    countries: List[Dict[str, Any]] = field(default_factory=list)
    filtered: List[Dict[str, Any]] = field(default_factory=list)
    selected: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: str = ""
    filters: FilterState = field(default_factory=FilterState)

    def set_countries(self, countries: List[Dict[str, Any]]):
        self.countries = list(countries)
        self.filtered = apply_filters(self.countries, self.filters)
        self.error = ""

    def set_filters(self, **changes):
        self.filters = replace(self.filters, **changes)
        self.filtered = apply_filters(self.countries, self.filters)

    def reset_filters(self):
        self.filters = FilterState()
        self.filtered = list(self.countries)

    def set_error(self, error: str):
        self.error = error
        self.loading = False

    def select(self, code: Optional[str]):
        self.selected = None
        if code:
            self.selected = next(
                (c for c in self.countries if c.get("isoCode3") == code.upper()), None)

    def load(self, api: ComplianceApiClient):
        self.loading = True
        try:
            self.set_countries(api.fetch_all_countries())
        except ApiClientError as e:
            logger.error("Loading countries failed: %s", e)
            self.set_error(str(e))
            return
        self.loading = False
