"""
Compliance Tracker — Export Engine

Izvoz filtrirane liste država:
- CSV (jedan red po državi, status + datum po kanalu)
- JSON (basic / detailed / summary)
"""

import csv
import io
import logging
from typing import Any, Dict, List, Optional

from compliance_tracker.core.types import CHANNELS, STATUS_VALUES, Country

logger = logging.getLogger("compliance_tracker.export")

CSV_COLUMNS = [
    "id", "name", "isoCode2", "isoCode3", "continent", "region",
    "b2g_status", "b2g_implementationDate",
    "b2b_status", "b2b_implementationDate",
    "b2c_status", "b2c_implementationDate",
    "lastUpdated",
]

EXPORT_FORMATS = ["basic", "detailed", "summary"]


def apply_export_filters(countries: List[Country],
                         filters: Optional[Dict[str, Any]] = None) -> List[Country]:
    """Filtri izvoza: countries (ISO3), continents, status (bilo koji kanal)."""
    if not filters:
        return list(countries)
    codes = {c.upper() for c in filters.get("countries") or []}
    continents = {c.lower() for c in filters.get("continents") or []}
    statuses = {s.lower() for s in filters.get("status") or []}

    result = []
    for c in countries:
        if codes and c.iso_code3 not in codes:
            continue
        if continents and c.continent.lower() not in continents:
            continue
        if statuses and not any(
            c.e_invoicing.channel(ch).status in statuses for ch in CHANNELS
        ):
            continue
        result.append(c)
    return result


def _csv_row(c: Country) -> List[str]:
    e = c.e_invoicing
    row = [c.id, c.name, c.iso_code2, c.iso_code3, c.continent, c.region or ""]
    for ch in CHANNELS:
        status = e.channel(ch)
        row.extend([status.status, status.implementation_date or ""])
    row.append(e.last_updated)
    return row


def export_csv(countries: List[Country]) -> str:
    """CSV s headerom. Vrijednosti s navodnicima, zarezom ili novim redom idu u navodnike."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for c in countries:
        writer.writerow(_csv_row(c))
    logger.info("CSV export: %d countries", len(countries))
    return buf.getvalue().rstrip("\n")


def export_json(countries: List[Country], fmt: str = "detailed") -> Any:
    if fmt == "summary":
        by_status = {ch: {s: 0 for s in STATUS_VALUES} for ch in CHANNELS}
        by_continent: Dict[str, int] = {}
        for c in countries:
            for ch in CHANNELS:
                by_status[ch][c.e_invoicing.channel(ch).status] += 1
            by_continent[c.continent] = by_continent.get(c.continent, 0) + 1
        return {"total": len(countries), "byStatus": by_status, "byContinent": by_continent}

    if fmt == "basic":
        return [
            {
                "id": c.id,
                "name": c.name,
                "continent": c.continent,
                **{ch: c.e_invoicing.channel(ch).status for ch in CHANNELS},
            }
            for c in countries
        ]

    return [c.to_dict() for c in countries]
