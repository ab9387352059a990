"""Compliance Tracker — best-effort obogaćivanje compliance podataka."""

from compliance_tracker.enrichment.base import EnrichmentProvider, Proposal
from compliance_tracker.enrichment.rules import RegionalRulesProvider
from compliance_tracker.enrichment.specs import SpecLinkProvider
from compliance_tracker.enrichment.web import WebSpecProvider

__all__ = [
    "EnrichmentProvider",
    "Proposal",
    "RegionalRulesProvider",
    "SpecLinkProvider",
    "WebSpecProvider",
]
