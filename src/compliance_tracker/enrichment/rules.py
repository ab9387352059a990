"""
Compliance Tracker — Regional Rules Provider

Pravila bez mreže:
  1. EU članice: B2G mandatory (Direktiva 2014/55/EU), B2B permitted — samo gdje je `none`
  2. VAT države (GCC, Azija, Afrika): B2B i B2C permitted gdje je `none`
  3. Poznati B2B mandati/planovi: status + datum + formati + zakon po državi
"""

import logging
from typing import Any, Dict, Optional

from compliance_tracker.countries.merge import normalize_status_value
from compliance_tracker.enrichment.base import EnrichmentProvider, Proposal, record_code

logger = logging.getLogger("compliance_tracker.enrichment.rules")

EU_MEMBER_STATES = {
    "AUT", "BEL", "BGR", "HRV", "CYP", "CZE", "DNK", "EST", "FIN", "FRA",
    "DEU", "GRC", "HUN", "IRL", "ITA", "LVA", "LTU", "LUX", "MLT", "NLD",
    "POL", "PRT", "ROU", "SVK", "SVN", "ESP", "SWE",
}

VAT_COUNTRIES = {
    "ARE", "SAU", "QAT", "KWT", "BHR", "OMN",  # GCC
    "SGP", "MYS", "THA", "IDN", "VNM", "PHL", "IND", "JPN", "KOR", "CHN", "HKG",
    "ZAF", "GHA", "KEN", "TZA", "RWA",
}

B2B_MANDATES = {
    "ITA": ("mandatory", "2019-01-01"),
    "ROU": ("mandatory", "2024-01-01"),
    "SRB": ("mandatory", "2023-01-01"),
    "HUN": ("mandatory", "2018-07-01"),
    "ESP": ("mandatory", "2015-07-01"),
    "FRA": ("planned", "2026-09-01"),
    "DEU": ("planned", "2025-01-01"),
    "POL": ("planned", "2026-01-01"),
    "BEL": ("planned", "2026-01-01"),
    "SGP": ("mandatory", "2019-01-01"),
    "MYS": ("mandatory", "2017-06-01"),
    "BRA": ("mandatory", "2008-01-01"),
    "MEX": ("mandatory", "2011-01-01"),
    "CHL": ("mandatory", "2003-08-01"),
    "COL": ("mandatory", "2019-01-01"),
    "PER": ("mandatory", "2010-12-01"),
    "URY": ("mandatory", "2011-08-01"),
    "ARE": ("planned", "2025-01-01"),
    "SAU": ("planned", "2025-12-01"),
}

COUNTRY_FORMATS = {
    "ITA": [{"name": "FatturaPA", "version": "1.2.1"}],
    "ROU": [{"name": "UBL 2.1", "version": "2.1"}, {"name": "CII D16B", "version": "2016"}],
    "SRB": [{"name": "UBL 2.1", "version": "2.1"}],
    "HUN": [{"name": "Hungarian NAV XML", "version": "3.0"}],
    "ESP": [{"name": "Facturae", "version": "3.2.2"}],
    "FRA": [{"name": "Factur-X", "version": "1.0.6"}, {"name": "Peppol BIS", "version": "3.0"}],
    "DEU": [{"name": "XRechnung", "version": "3.0"}, {"name": "ZUGFeRD", "version": "2.3"}],
    "SGP": [{"name": "Singapore PEPPOL", "version": "3.0"}],
    "MYS": [{"name": "Malaysia XML", "version": "1.0"}],
    "BRA": [{"name": "NFe", "version": "4.0"}],
    "MEX": [{"name": "CFDI", "version": "4.0"}],
}
DEFAULT_FORMATS = [
    {"name": "UBL 2.1", "version": "2.1"},
    {"name": "Peppol BIS Billing 3.0", "version": "3.0"},
]

COUNTRY_LEGISLATION = {
    "ITA": "Italian Finance Act - Digital invoice mandate",
    "ROU": "Romanian Fiscal Code - E-invoicing for B2B",
    "SRB": "Serbian Law on Electronic Invoicing",
    "HUN": "Hungarian Act C of 2000 on Accounting - Real-time invoice reporting",
    "ESP": "Spanish Royal Decree on Electronic Invoicing",
    "FRA": "French Finance Act 2024 - B2B e-invoicing mandate",
    "DEU": "German VAT Digitalization Act (ViDA)",
    "SGP": "Singapore Goods and Services Tax Act - Digital invoicing",
    "MYS": "Malaysia Sales and Service Tax Act - Electronic invoicing",
    "BRA": "Brazilian Federal Law on Electronic Tax Documents",
    "MEX": "Mexican Federal Tax Code - Electronic invoicing (CFDI)",
}
DEFAULT_LEGISLATION = "National legislation on electronic invoicing"

EU_FORMATS = [
    {"name": "Peppol BIS Billing 3.0", "version": "3.0"},
    {"name": "EN 16931 (CII)", "version": "2016"},
]
LOCAL_FORMATS = [{"name": "Local XML Format", "version": "1.0"}]
NATIONAL_VAT_LEGISLATION = "National VAT legislation - Digital invoicing provisions"


def country_formats(code: str):
    return [dict(f) for f in COUNTRY_FORMATS.get(code, DEFAULT_FORMATS)]


def country_legislation(code: str) -> str:
    return COUNTRY_LEGISLATION.get(code, DEFAULT_LEGISLATION)


class RegionalRulesProvider(EnrichmentProvider):
    name = "rules"

    def propose(self, record: Dict[str, Any]) -> Optional[Proposal]:
        code = record_code(record)
        e = record.get("eInvoicing") or {}

        def status_of(channel: str) -> str:
            block = e.get(channel)
            return normalize_status_value(block.get("status") if isinstance(block, dict) else None)

        changes: Dict[str, Dict[str, Any]] = {}

        if code in EU_MEMBER_STATES:
            if status_of("b2g") == "none":
                changes["b2g"] = {
                    "status": "mandatory",
                    "implementationDate": "2020-04-18",
                    "formats": [dict(f) for f in EU_FORMATS],
                    "legislation": {
                        "name": "EU Directive 2014/55/EU on electronic invoicing in public procurement",
                        "url": "https://eur-lex.europa.eu/legal-content/EN/TXT/?uri=CELEX:32014L0055",
                    },
                }
            if status_of("b2b") == "none":
                changes["b2b"] = {
                    "status": "permitted",
                    "formats": [dict(f) for f in EU_FORMATS],
                    "legislation": {"name": "EU VAT Directive (2006/112/EC) - Digital compliance"},
                }

        if code in VAT_COUNTRIES:
            for channel in ("b2b", "b2c"):
                if channel not in changes and status_of(channel) == "none":
                    changes[channel] = {
                        "status": "permitted",
                        "formats": [dict(f) for f in LOCAL_FORMATS],
                        "legislation": {"name": NATIONAL_VAT_LEGISLATION},
                    }

        mandate = B2B_MANDATES.get(code)
        if mandate:
            status, start = mandate
            current = changes["b2b"]["status"] if "b2b" in changes else status_of("b2b")
            if current != status:
                changes["b2b"] = {
                    "status": status,
                    "implementationDate": start,
                    "formats": country_formats(code),
                    "legislation": {"name": country_legislation(code)},
                }

        if not changes:
            return None
        for channel, block in changes.items():
            logger.info("%s (%s): %s → %s", record.get("name"), code, channel, block["status"])
        return Proposal(code, self.name, changes, touch=True)
