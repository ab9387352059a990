"""
Compliance Tracker — Web Spec Provider

Best-effort: pogađa službene izvore po državi + kanonske stranice
UBL/CII/Factur-X, dohvaća ih i iz HTML-a vadi verziju i datum.
Rezultat ide u legislation.specifications, jednom po URL-u.
Heuristike, ne scraper; rezultate treba pregledati prije objave.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from compliance_tracker.enrichment.base import EnrichmentProvider, Proposal, record_code
from compliance_tracker.enrichment.specs import CANONICAL_SPEC_URLS

logger = logging.getLogger("compliance_tracker.enrichment.web")

OFFICIAL_SOURCES = {
    "france": ["https://www.legifrance.gouv.fr/", "https://www.impots.gouv.fr/"],
    "germany": ["https://xeinkauf.de/xrechnung/"],
    "spain": ["https://www.facturae.gob.es/"],
    "belgium": [
        "https://peppol.org/document-type/peppol-bis/",
        "https://openpeppol.org/what-is-peppol/peppol-specifications/",
    ],
    "india": ["https://einvoice.gst.gov.in/", "https://cbic-gst.gov.in/"],
}

VERSION_RE = re.compile(r"v(?:ersion)?\s*([0-9]+(?:\.[0-9]+)+)", re.IGNORECASE)
DATE_RE = re.compile(r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\d{4}-\d{2}-\d{2})")


def guess_sources(record: Dict[str, Any]) -> List[str]:
    name = (record.get("name") or "").lower()
    sources = list(OFFICIAL_SOURCES.get(name, []))
    sources.extend([CANONICAL_SPEC_URLS["UBL"], CANONICAL_SPEC_URLS["CII"],
                    CANONICAL_SPEC_URLS["Factur-X"]])
    return sources


def extract_version(html: str) -> Optional[str]:
    m = VERSION_RE.search(html)
    return m.group(1) if m else None


def extract_date(html: str) -> Optional[str]:
    """Prvi datum u tekstu kao ISO (YYYY-MM-DD). Format s kosom crtom je M/D/Y."""
    m = DATE_RE.search(html)
    if not m:
        return None
    text = m.group(1)
    try:
        if re.match(r"^\d{4}-", text):
            return date.fromisoformat(text).isoformat()
        month, day, year = (int(p) for p in re.split(r"[/\-]", text))
        if year < 100:
            year += 2000
        return date(year, month, day).isoformat()
    except ValueError:
        return None


class WebSpecProvider(EnrichmentProvider):
    name = "web"

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 30):
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._cache: Dict[str, Optional[Dict[str, Any]]] = {}

    def fetch_spec(self, url: str) -> Optional[Dict[str, Any]]:
        """Dohvati stranicu i složi spec zapis. Mrežna greška = None (jednom po URL-u)."""
        if url in self._cache:
            return self._cache[url]
        spec = None
        try:
            resp = self.client.get(url)
            resp.raise_for_status()
            html = resp.text
            spec = {"name": (urlparse(url).hostname or url).replace("www.", "")}
            version = extract_version(html)
            if version:
                spec["version"] = version
            published = extract_date(html)
            if published:
                spec["publishedDate"] = published
            spec["url"] = url
        except httpx.HTTPError as e:
            logger.warning("Cannot fetch %s: %s", url, e)
        self._cache[url] = spec
        return spec

    def propose(self, record: Dict[str, Any]) -> Optional[Proposal]:
        blocks = self.channel_blocks(record)
        targets = {ch: b for ch, b in blocks.items() if isinstance(b.get("legislation"), dict)}
        if not targets:
            return None

        specs = [s for s in (self.fetch_spec(u) for u in guess_sources(record)) if s]
        changes = {}
        for channel, block in targets.items():
            leg = block["legislation"]
            existing = leg.get("specifications")
            current = list(existing) if isinstance(existing, list) else []
            known = {s.get("url") for s in current if isinstance(s, dict)}
            added = [dict(s) for s in specs if s["url"] not in known]
            if added:
                leg["specifications"] = current + added
                changes[channel] = block
        if not changes:
            return None
        logger.info("Web specs for %s: %d channel(s) updated", record_code(record), len(changes))
        return Proposal(record_code(record), self.name, changes)

    def close(self):
        self.client.close()
