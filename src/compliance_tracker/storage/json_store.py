"""
Compliance Tracker — JSON File Storage

Svaka kolekcija je jedan pretty-printed JSON array na disku:
- cijela lista se drži u memoriji
- nakon svake izmjene datoteka se prepisuje u cijelosti
- zapis ide preko privremene datoteke + rename (atomarno)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from compliance_tracker.core.errors import DataLoadError

logger = logging.getLogger("compliance_tracker.storage")


def read_json_array(path: Path) -> List[Dict[str, Any]]:
    """Učitaj JSON array. Diže DataLoadError ako datoteka ne postoji ili nije array."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DataLoadError(f"Cannot read {path.name}", str(path), e) from e
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise DataLoadError(f"Malformed JSON in {path.name}", str(path), e) from e
    if not isinstance(data, list):
        raise DataLoadError(f"{path.name} is not a JSON array", str(path))
    return data


def write_json_atomic(path: Path, data: Any):
    """Prepiši datoteku atomarno (tmp + os.replace)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    os.replace(tmp, path)


class JsonCollection:
    """Repozitorij jedne kolekcije zapisa s `id` ključem."""

    def __init__(self, path: Path, name: str = ""):
        self.path = Path(path)
        self.name = name or self.path.stem
        self._items: List[Dict[str, Any]] = []
        self.load()

    def load(self):
        """Učitaj kolekciju. Nepostojeća datoteka = prazna lista."""
        if not self.path.exists():
            self._items = []
            logger.info("No %s file found, starting with empty collection", self.name)
            return
        self._items = read_json_array(self.path)
        logger.info("Loaded %d %s", len(self._items), self.name)

    def flush(self):
        write_json_atomic(self.path, self._items)
        logger.info("Saved %d %s", len(self._items), self.name)

    # ── Čitanje ──

    def all(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._items]

    def filter(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._items if predicate(item)]

    def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        idx = self._index_of(item_id)
        return dict(self._items[idx]) if idx is not None else None

    def find(self, predicate: Callable[[Dict[str, Any]], bool]) -> Optional[Dict[str, Any]]:
        for item in self._items:
            if predicate(item):
                return dict(item)
        return None

    def __len__(self) -> int:
        return len(self._items)

    # ── Izmjene (svaka se odmah zapisuje) ──

    def add(self, item: Dict[str, Any]) -> Dict[str, Any]:
        self._items.append(item)
        try:
            self.flush()
        except OSError:
            self._items.pop()
            raise
        return dict(item)

    def replace(self, item: Dict[str, Any]) -> bool:
        idx = self._index_of(item["id"])
        if idx is None:
            return False
        previous = self._items[idx]
        self._items[idx] = item
        try:
            self.flush()
        except OSError:
            self._items[idx] = previous
            raise
        return True

    def remove(self, item_id: str) -> Optional[Dict[str, Any]]:
        idx = self._index_of(item_id)
        if idx is None:
            return None
        removed = self._items.pop(idx)
        try:
            self.flush()
        except OSError:
            self._items.insert(idx, removed)
            raise
        return removed

    def _index_of(self, item_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.get("id") == item_id:
                return i
        return None
