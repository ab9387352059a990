"""
Compliance Tracker — Custom Content Services

Korisnički dodani formati, zakonodavstvo i linkovi po državi.
Svaka vrsta ima vlastiti JsonCollection repozitorij.

Workflow odobrenja:
  - bez identiteta autora (nema user sustava) → approved=True
  - s autorom → approved=False, čeka admina
  - promjena `approved` upisuje approvedBy/approvedAt
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from compliance_tracker.countries.query import parse_timestamp
from compliance_tracker.storage.json_store import JsonCollection

logger = logging.getLogger("compliance_tracker.custom_content")

IMMUTABLE_FIELDS = ("id", "createdAt")

NameResolver = Callable[[str], Optional[str]]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CustomRecordService:
    """Zajednički CRUD + odobrenje nad jednom kolekcijom."""

    label = "record"

    def __init__(self, collection: JsonCollection,
                 resolve_country_name: Optional[NameResolver] = None):
        self.collection = collection
        self._resolve_country_name = resolve_country_name

    # ── Čitanje ──

    def list(self, country_code: Optional[str] = None) -> List[Dict[str, Any]]:
        if country_code:
            code = country_code.lower()
            return self.collection.filter(
                lambda r: str(r.get("countryCode", "")).lower() == code
            )
        return self.collection.all()

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.get(record_id)

    def pending(self) -> List[Dict[str, Any]]:
        return self.collection.filter(lambda r: not r.get("approved"))

    # ── Izmjene ──

    def create(self, data: Dict[str, Any], created_by: Optional[str] = None) -> Dict[str, Any]:
        code = data["countryCode"].upper()
        record = {
            "id": str(uuid.uuid4()),
            "countryCode": code,
            "countryName": self.country_name(code),
        }
        record.update({k: v for k, v in data.items() if k not in ("countryCode",) + IMMUTABLE_FIELDS})
        record["createdAt"] = _now_iso()
        if created_by:
            record["createdBy"] = created_by
        record["approved"] = not created_by

        self.collection.add(record)
        logger.info("Created custom %s: %s for %s", self.label,
                    record.get("name") or record.get("title"), record["countryName"])
        return record

    def update(self, record_id: str, data: Dict[str, Any],
               updated_by: Optional[str] = None) -> Optional[Dict[str, Any]]:
        existing = self.collection.get(record_id)
        if existing is None:
            return None

        # None = polje nije poslano; notes se smije obrisati
        data = {k: v for k, v in data.items() if v is not None or k == "notes"}
        updated = dict(existing)
        updated.update({k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS})

        new_code = data.get("countryCode")
        if new_code:
            updated["countryCode"] = new_code.upper()
            if new_code.upper() != existing.get("countryCode"):
                updated["countryName"] = self.country_name(new_code.upper())
        else:
            updated["countryCode"] = existing.get("countryCode")

        if "approved" in data and data["approved"] is not None \
                and data["approved"] != existing.get("approved"):
            updated["approved"] = data["approved"]
            updated["approvedBy"] = updated_by
            updated["approvedAt"] = _now_iso()

        self._before_update(existing, updated)
        self.collection.replace(updated)
        logger.info("Updated custom %s: %s", self.label, record_id)
        return updated

    def delete(self, record_id: str) -> bool:
        removed = self.collection.remove(record_id)
        if removed is None:
            return False
        logger.info("Deleted custom %s: %s", self.label, record_id)
        return True

    def approve(self, record_id: str, approved_by: str = "system") -> Optional[Dict[str, Any]]:
        return self.update(record_id, {"approved": True}, approved_by)

    # ── Pomoćno ──

    def country_name(self, country_code: str) -> str:
        """Naziv države iz osnovnih podataka; ako ne uspije, ostaje kod."""
        if self._resolve_country_name is None:
            return country_code
        name = self._resolve_country_name(country_code)
        if not name:
            logger.warning("Could not resolve country name for custom %s (%s)",
                           self.label, country_code)
            return country_code
        return name

    def _before_update(self, existing: Dict[str, Any], updated: Dict[str, Any]):
        pass


class CustomFormatService(CustomRecordService):
    label = "format"


class CustomLegislationService(CustomRecordService):
    label = "legislation"


class CustomLinkService(CustomRecordService):
    """Linkovi koji zamjenjuju originalne URL-ove (upsert po državi + URL + tipu)."""

    label = "link"

    def list_active(self, country_code: str) -> List[Dict[str, Any]]:
        code = country_code.upper()
        return self.collection.filter(
            lambda r: r.get("countryCode") == code and r.get("isActive", True)
        )

    def find_active(self, country_code: str, original_url: str,
                    link_type: str) -> Optional[Dict[str, Any]]:
        code = country_code.upper()
        return self.collection.find(
            lambda r: r.get("countryCode") == code
            and r.get("originalUrl") == original_url
            and r.get("linkType") == link_type
            and r.get("isActive", True)
        )

    def upsert(self, data: Dict[str, Any], created_by: Optional[str] = None):
        """Vraća (link, created). Postojeći link za isti ključ se ažurira i reaktivira."""
        code = data["countryCode"].upper()
        existing = self.collection.find(
            lambda r: r.get("countryCode") == code
            and r.get("originalUrl") == data["originalUrl"]
            and r.get("linkType") == data["linkType"]
        )
        now = _now_iso()
        if existing is not None:
            changes = {
                "customUrl": data["customUrl"],
                "title": data["title"],
                "notes": data.get("notes"),
                "isActive": True,
            }
            return self.update(existing["id"], changes, created_by), False

        payload = dict(data)
        payload.update({"isActive": True, "dateProvided": now, "lastUpdated": now})
        return self.create(payload, created_by), True

    def resolve(self, country_code: str, original_url: str, link_type: str,
                last_updated: Optional[datetime] = None) -> Dict[str, Any]:
        """Treba li koristiti custom URL umjesto originalnog."""
        link = self.find_active(country_code, original_url, link_type)
        if link is None:
            return {"hasCustomLink": False, "customUrl": None, "shouldUseCustom": False}

        should_use = True
        if last_updated is not None:
            provided = parse_timestamp(link.get("dateProvided") or "")
            should_use = provided is not None and provided >= last_updated
        return {
            "hasCustomLink": True,
            "customUrl": link["customUrl"] if should_use else None,
            "shouldUseCustom": should_use,
        }

    def _before_update(self, existing: Dict[str, Any], updated: Dict[str, Any]):
        updated["lastUpdated"] = _now_iso()

