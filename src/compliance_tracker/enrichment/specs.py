"""
Compliance Tracker — Spec Link Provider

Bez mreže: sređuje postojeće linkove na specifikacije.
  - legislation.specificationLink → legislation.specifications
  - formati bez specUrl dobiju kanonski link (UBL, CII, Factur-X, Peppol)
  - aktivni kanali bez ikakvog datuma dobiju lastChangeDate
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from compliance_tracker.enrichment.base import EnrichmentProvider, Proposal, record_code

CANONICAL_SPEC_URLS = {
    "UBL": "https://docs.oasis-open.org/ubl/os-UBL-2.3/UBL-2.3.html",
    "CII": "https://unece.org/trade/uncefact/uncefact-cross-industry-invoice",
    "Factur-X": "https://fnfe-mpe.org/factur-x/factur-x_en/",
}
PEPPOL_SPEC_URL = "https://openpeppol.org/what-is-peppol/peppol-specifications/"

ACTIVE_STATUSES = ("mandatory", "mandated", "permitted", "planned")
DATE_FIELDS = ("implementationDate", "mandatedDate", "legislationFinalisedDate", "lastDraftDate")

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_http(url: Any) -> bool:
    return isinstance(url, str) and bool(_HTTP_RE.match(url))


def name_from_url(url: str) -> str:
    host = urlparse(url).hostname or ""
    if not host:
        return "Specification"
    return host.replace("www.", "").split(".")[0]


def canonical_spec_url(fmt: Dict[str, Any]) -> Optional[str]:
    url = CANONICAL_SPEC_URLS.get(fmt.get("type") or "")
    if url:
        return url
    if "peppol" in (fmt.get("name") or "").lower():
        return PEPPOL_SPEC_URL
    return None


class SpecLinkProvider(EnrichmentProvider):
    name = "specs"

    def propose(self, record: Dict[str, Any]) -> Optional[Proposal]:
        fallback_date = (record.get("eInvoicing") or {}).get("lastUpdated") \
            or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        original = self.channel_blocks(record)
        changes = {}
        for channel, block in self.channel_blocks(record).items():
            self._fold_spec_links(block)
            self._stamp_change_date(block, fallback_date)
            self._fill_format_urls(block)
            if block != original[channel]:
                changes[channel] = block
        if not changes:
            return None
        return Proposal(record_code(record), self.name, changes)

    @staticmethod
    def _fold_spec_links(block: Dict[str, Any]):
        leg = block.get("legislation")
        if not isinstance(leg, dict):
            return
        specs: List[Dict[str, Any]] = []
        link = leg.get("specificationLink")
        if is_http(link):
            specs.append({"name": name_from_url(link), "url": link})
        for spec in leg.get("specifications") or []:
            if isinstance(spec, dict) and is_http(spec.get("url")) \
                    and not any(s["url"] == spec["url"] for s in specs):
                specs.append(spec)
        if specs:
            leg["specifications"] = specs

    @staticmethod
    def _stamp_change_date(block: Dict[str, Any], fallback: str):
        if block.get("status") not in ACTIVE_STATUSES:
            return
        if any(block.get(f) for f in DATE_FIELDS) or block.get("phases"):
            return
        block.setdefault("lastChangeDate", fallback)

    @staticmethod
    def _fill_format_urls(block: Dict[str, Any]):
        for fmt in block.get("formats") or []:
            if not isinstance(fmt, dict) or is_http(fmt.get("specUrl")):
                continue
            url = canonical_spec_url(fmt)
            if url:
                fmt["specUrl"] = url
