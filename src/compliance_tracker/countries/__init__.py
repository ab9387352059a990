"""Compliance Tracker — države i podaci o e-fakturiranju."""

from compliance_tracker.countries.merge import merge_countries, normalize_status
from compliance_tracker.countries.query import CountryFilter, Page, query_countries
from compliance_tracker.countries.repository import CountryRepository

__all__ = [
    "CountryFilter",
    "CountryRepository",
    "Page",
    "merge_countries",
    "normalize_status",
    "query_countries",
]
