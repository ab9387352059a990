"""
Compliance Tracker — Country Repository

Izvor istine za države: dvije read-only JSON datoteke. Spojena lista se
ponovno računa pri svakom čitanju (nema perzistiranog spojenog oblika).
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from compliance_tracker.core.errors import DataLoadError
from compliance_tracker.core.types import Country
from compliance_tracker.countries.merge import merge_countries
from compliance_tracker.storage.json_store import read_json_array

logger = logging.getLogger("compliance_tracker.countries")


class CountryRepository:
    """Čita countries.json + compliance-data.json i vraća spojene zapise."""

    def __init__(self, countries_file: Path, compliance_file: Path):
        self.countries_file = Path(countries_file)
        self.compliance_file = Path(compliance_file)

    def load_raw(self) -> Dict[str, List[Dict[str, Any]]]:
        """Diže DataLoadError ako bilo koja datoteka nije čitljiva."""
        return {
            "countries": read_json_array(self.countries_file),
            "compliance": read_json_array(self.compliance_file),
        }

    def merged(self) -> List[Country]:
        raw = self.load_raw()
        return merge_countries(raw["countries"], raw["compliance"])

    def get(self, iso3: str) -> Optional[Country]:
        code = iso3.upper()
        for country in self.merged():
            if country.iso_code3.upper() == code:
                return country
        return None

    def resolve_name(self, country_code: str) -> Optional[str]:
        """Best-effort naziv države za ISO3 kod. Greška učitavanja = None."""
        try:
            countries = read_json_array(self.countries_file)
        except DataLoadError as e:
            logger.warning("Could not load countries data for name resolution: %s", e)
            return None
        code = country_code.lower()
        for c in countries:
            if isinstance(c, dict) and str(c.get("isoCode3") or "").lower() == code:
                return c.get("name")
        return None

    def counts(self) -> Dict[str, int]:
        """Broj zapisa po datoteci (za /health). Nedostupna datoteka = 0."""
        result = {}
        for key, path in (("countries", self.countries_file),
                          ("compliance", self.compliance_file)):
            try:
                result[key] = len(read_json_array(path))
            except DataLoadError:
                result[key] = 0
        return result
