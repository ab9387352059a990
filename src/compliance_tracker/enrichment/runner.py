"""
Compliance Tracker — Enrichment Runner

Učita compliance-data.json, propusti svaki zapis kroz odabrane providere,
zapiše rezultat atomarno i usput javlja napredak u progress datoteku.

Pokreće se:
  - Iz refresh helpera: POST /refresh-web
  - Ručno: python -m compliance_tracker.enrichment.runner --providers rules,specs
"""

import argparse
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from compliance_tracker.core.config import TrackerConfig
from compliance_tracker.enrichment.base import EnrichmentProvider
from compliance_tracker.enrichment.rules import RegionalRulesProvider
from compliance_tracker.enrichment.specs import SpecLinkProvider
from compliance_tracker.enrichment.web import WebSpecProvider
from compliance_tracker.storage.json_store import read_json_array, write_json_atomic

logger = logging.getLogger("compliance_tracker.enrichment.runner")

PROVIDERS = {
    "rules": RegionalRulesProvider,
    "specs": SpecLinkProvider,
    "web": WebSpecProvider,
}
DEFAULT_PROVIDERS = ("rules", "specs", "web")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class EnrichmentResult:
    total: int = 0
    updated: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "updatedCountries": len(self.updated),
                "countries": self.updated}


def build_providers(names: Sequence[str]) -> List[EnrichmentProvider]:
    unknown = [n for n in names if n not in PROVIDERS]
    if unknown:
        raise ValueError(f"Unknown providers: {', '.join(unknown)}")
    return [PROVIDERS[n]() for n in names]


def write_progress(progress_file: Optional[Path], payload: Dict[str, Any]):
    if progress_file is not None:
        write_json_atomic(progress_file, payload)


def run_enrichment(compliance_file: Path, providers: Sequence[EnrichmentProvider],
                   progress_file: Optional[Path] = None,
                   dry_run: bool = False) -> EnrichmentResult:
    """Primijeni providere redom; svaki vidi izmjene prethodnog. Diže DataLoadError."""
    records = read_json_array(compliance_file)
    result = EnrichmentResult(total=len(records))
    started = _now_iso()

    for i, record in enumerate(records):
        if not isinstance(record, dict):
            continue
        applied = []
        touched = False
        for provider in providers:
            proposal = provider.enrich(record)
            if proposal is None:
                continue
            proposal.apply(record)
            applied.append({"provider": proposal.provider,
                            "channels": sorted(proposal.changes)})
            touched = touched or proposal.touch
        if touched:
            record["eInvoicing"]["lastUpdated"] = _now_iso()
        if applied:
            result.updated.append({
                "code": record.get("isoCode3"),
                "name": record.get("name"),
                "changes": applied,
            })
        write_progress(progress_file, {
            "status": "running",
            "progress": min(99, int((i + 1) * 100 / len(records))),
            "startedAt": started,
            "current": record.get("name"),
        })

    if not dry_run:
        write_json_atomic(compliance_file, records)
    logger.info("Enrichment done: %d/%d countries updated%s",
                len(result.updated), result.total, " (dry run)" if dry_run else "")
    return result


# ═══════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════

def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI za enrichment."""
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    config = TrackerConfig.from_env()

    parser = argparse.ArgumentParser(description="Compliance Tracker enrichment")
    parser.add_argument("--providers", default=",".join(DEFAULT_PROVIDERS),
                        help="Lista providera: rules,specs,web")
    parser.add_argument("--data-file", type=Path, default=config.compliance_file,
                        help="compliance-data.json")
    parser.add_argument("--progress-file", type=Path, default=config.progress_file)
    parser.add_argument("--dry-run", action="store_true", help="Ne zapisuj rezultat")
    args = parser.parse_args(argv)

    providers = build_providers([n.strip() for n in args.providers.split(",") if n.strip()])
    try:
        result = run_enrichment(args.data_file, providers, args.progress_file, args.dry_run)
    finally:
        for p in providers:
            if isinstance(p, WebSpecProvider):
                p.close()
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    print("Best-effort update complete. Review links/versions before publishing.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
