"""
Compliance Tracker — Merge & Normalize Pipeline

Spaja osnovne zapise država (countries.json) s podacima o e-fakturiranju
(compliance-data.json) po ISO3 kodu:

  1. compliance zapisi se indeksiraju po isoCode3 (ili name), zadnji pobjeđuje
  2. države bez kontinenta ili s name == continent se preskaču
  3. svaki kanal (b2g/b2b/b2c) se normalizira zasebno
  4. compliance zapisi bez države dodaju se s continent='Unknown'
  5. filter kontinenta se primjenjuje još jednom na cijelu listu
  6. sortiranje po imenu (locale-aware)

Čista funkcija — nema side-effecta, sigurno za višestruke pozive.
"""

import logging
import unicodedata
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from compliance_tracker.core.types import (
    CHANNELS, STATUS_ALIASES, STATUS_VALUES,
    ComplianceLevel, ComplianceStatus, Country, EInvoicing,
)

logger = logging.getLogger("compliance_tracker.merge")

UNKNOWN_CONTINENT = "Unknown"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_status_value(value: Any) -> str:
    if value is None:
        return ComplianceLevel.NONE.value
    text = str(value).strip().lower()
    if text in STATUS_VALUES:
        return text
    if text in STATUS_ALIASES:
        return STATUS_ALIASES[text]
    logger.debug("Unknown compliance status %r, using 'none'", value)
    return ComplianceLevel.NONE.value


def normalize_status(raw: Any) -> ComplianceStatus:
    """Popuni nedostajuća polja jednog kanala. implementationDate ostaje odsutan."""
    if not isinstance(raw, dict):
        raw = {}
    formats = raw.get("formats")
    legislation = raw.get("legislation")
    return ComplianceStatus(
        status=normalize_status_value(raw.get("status")),
        implementation_date=raw.get("implementationDate"),
        formats=list(formats) if isinstance(formats, list) else [],
        legislation=dict(legislation) if isinstance(legislation, dict) else {"name": ""},
    )


def normalize_e_invoicing(raw: Any) -> EInvoicing:
    if not isinstance(raw, dict):
        raw = {}
    channels = {ch: normalize_status(raw.get(ch)) for ch in CHANNELS}
    return EInvoicing(
        b2g=channels["b2g"],
        b2b=channels["b2b"],
        b2c=channels["b2c"],
        last_updated=raw.get("lastUpdated") or _now_iso(),
    )


def is_valid_continent_entry(name: Any, continent: Any) -> bool:
    """False za zapise bez kontinenta ili 'kontinent kao država' artefakte."""
    if not isinstance(continent, str) or not continent.strip():
        return False
    return str(name or "").lower() != continent.lower()


def locale_sort_key(name: str) -> Tuple[str, str]:
    """Primarni ključ bez dijakritika i velikih slova; točno ime razbija izjednačenja."""
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), name)


def index_compliance(compliance: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    by_key: Dict[str, Dict[str, Any]] = {}
    for record in compliance:
        if not isinstance(record, dict):
            continue
        key = record.get("isoCode3") or record.get("name")
        if key:
            by_key[key] = record
    return by_key


def merge_countries(countries: List[Dict[str, Any]],
                    compliance: List[Dict[str, Any]]) -> List[Country]:
    """Spoji osnovne države i compliance zapise u sortiranu listu Country."""
    by_key = index_compliance(compliance)
    merged: List[Country] = []
    seen: set = set()

    for record in countries:
        if not isinstance(record, dict):
            continue
        iso3 = record.get("isoCode3")
        name = record.get("name") or ""
        if not is_valid_continent_entry(name, record.get("continent")):
            continue
        if not iso3:
            logger.warning("Skipping country without isoCode3: %r", name)
            continue
        if iso3 in seen:
            logger.warning("Duplicate isoCode3 %s in countries data, keeping first", iso3)
            continue

        match: Optional[Dict[str, Any]] = by_key.get(iso3)
        raw_e_invoicing = (match or {}).get("eInvoicing") or record.get("eInvoicing")

        merged.append(Country(
            iso_code3=iso3,
            name=name,
            iso_code2=record.get("isoCode2") or "",
            continent=record["continent"],
            region=record.get("region"),
            e_invoicing=normalize_e_invoicing(raw_e_invoicing),
        ))
        seen.add(iso3)

    # Compliance-only zapisi
    for record in by_key.values():
        iso3 = record.get("isoCode3")
        if not iso3:
            logger.warning("Skipping compliance record without isoCode3: %r", record.get("name"))
            continue
        if iso3 in seen:
            continue
        merged.append(Country(
            iso_code3=iso3,
            name=record.get("name") or "",
            iso_code2="",
            continent=record.get("continent") or UNKNOWN_CONTINENT,
            region=record.get("region"),
            e_invoicing=normalize_e_invoicing(record.get("eInvoicing")),
        ))
        seen.add(iso3)

    result = [c for c in merged if is_valid_continent_entry(c.name, c.continent)]
    result.sort(key=lambda c: locale_sort_key(c.name))
    return result
