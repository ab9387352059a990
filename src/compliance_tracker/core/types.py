"""Shared types for Compliance Tracker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ComplianceLevel(str, Enum):
    """Status e-fakturiranja za jedan kanal."""
    NONE = "none"
    PLANNED = "planned"
    PERMITTED = "permitted"
    MANDATORY = "mandatory"


class Channel(str, Enum):
    """Kanal fakturiranja."""
    B2G = "b2g"   # Business-to-government
    B2B = "b2b"
    B2C = "b2c"


CHANNELS = [c.value for c in Channel]
STATUS_VALUES = [s.value for s in ComplianceLevel]

# Stariji podaci koriste "mandated"
STATUS_ALIASES = {"mandated": ComplianceLevel.MANDATORY.value}

FORMAT_TYPES = ["specification", "standard", "schema"]
LEGISLATION_TYPES = ["directive", "regulation", "law", "decree", "guideline"]
LINK_TYPES = ["legislation", "specification", "news", "standard"]


@dataclass
class ComplianceStatus:
    """Stanje jednog kanala (B2G/B2B/B2C)."""
    status: str = ComplianceLevel.NONE.value
    implementation_date: Optional[str] = None
    formats: List[Dict[str, Any]] = field(default_factory=list)
    legislation: Dict[str, Any] = field(default_factory=lambda: {"name": ""})

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"status": self.status}
        if self.implementation_date is not None:
            d["implementationDate"] = self.implementation_date
        d["formats"] = self.formats
        d["legislation"] = self.legislation
        return d


@dataclass
class EInvoicing:
    b2g: ComplianceStatus
    b2b: ComplianceStatus
    b2c: ComplianceStatus
    last_updated: str

    def channel(self, name: str) -> ComplianceStatus:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "b2g": self.b2g.to_dict(),
            "b2b": self.b2b.to_dict(),
            "b2c": self.b2c.to_dict(),
            "lastUpdated": self.last_updated,
        }


@dataclass
class Country:
    """Spojeni zapis države s podacima o usklađenosti."""
    iso_code3: str
    name: str
    continent: str
    e_invoicing: EInvoicing
    iso_code2: str = ""
    region: Optional[str] = None

    @property
    def id(self) -> str:
        return self.iso_code3

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.iso_code3,
            "name": self.name,
            "isoCode2": self.iso_code2,
            "isoCode3": self.iso_code3,
            "continent": self.continent,
        }
        if self.region is not None:
            d["region"] = self.region
        d["eInvoicing"] = self.e_invoicing.to_dict()
        return d
