"""
Compliance Tracker — Enrichment Provider sučelje

Provider dobije jedan compliance zapis i vraća prijedlog izmjena po kanalu
(ili None). Greške providera se logiraju i nikad ne izlaze prema pozivatelju.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from compliance_tracker.core.types import CHANNELS

logger = logging.getLogger("compliance_tracker.enrichment")


def record_code(record: Dict[str, Any]) -> str:
    return str(record.get("isoCode3") or record.get("id") or "").upper()


@dataclass
class Proposal:
    """Predložene izmjene za jednu državu: kanal → novi blok statusa."""
    country_code: str
    provider: str
    changes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    touch: bool = False  # osvježi eInvoicing.lastUpdated

    def apply(self, record: Dict[str, Any]):
        e = record.get("eInvoicing")
        if not isinstance(e, dict):
            e = record["eInvoicing"] = {}
        for channel, block in self.changes.items():
            e[channel] = block


class EnrichmentProvider:
    """Bazna klasa. Podklase implementiraju `propose()`."""

    name = "provider"

    def enrich(self, record: Dict[str, Any]) -> Optional[Proposal]:
        """Siguran poziv: iznimka u provideru = None + warning."""
        try:
            return self.propose(record)
        except Exception as e:
            logger.warning("%s failed for %s: %s", self.name, record_code(record), e)
            return None

    def propose(self, record: Dict[str, Any]) -> Optional[Proposal]:
        raise NotImplementedError

    @staticmethod
    def channel_blocks(record: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Kopije postojećih blokova po kanalu (samo oni koji su dict)."""
        e = record.get("eInvoicing") or {}
        return {
            ch: copy.deepcopy(e[ch])
            for ch in CHANNELS
            if isinstance(e.get(ch), dict)
        }
