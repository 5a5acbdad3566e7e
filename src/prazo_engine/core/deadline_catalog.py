"""
Deadline Definition Catalog
Static lookup of legal deadline types by code or name
"""

import json
import logging
import unicodedata
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from .exceptions import CalendarDataError, ConfigurationNotFound
from .models import DeadlineCatalogEntry, ProceduralCategory

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = Path(__file__).resolve().parent.parent / "data" / "deadline_catalog.json"


def _normalize(text: str) -> str:
    decomposed = unicodedata.normalize('NFKD', text)
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return ' '.join(stripped.lower().split())


class DeadlineCatalog:
    """Read-only catalog of deadline definitions"""

    def __init__(self, entries: Iterable[DeadlineCatalogEntry], version: str = "unversioned"):
        by_code: Dict[str, DeadlineCatalogEntry] = {}
        by_name: Dict[str, DeadlineCatalogEntry] = {}

        for entry in entries:
            if entry.code in by_code:
                raise CalendarDataError(f"Duplicate catalog code: {entry.code}")
            by_code[entry.code] = entry
            by_name.setdefault(_normalize(entry.name), entry)

        self._by_code = MappingProxyType(by_code)
        self._by_name = MappingProxyType(by_name)
        self.version = version

        logger.debug(f"Deadline catalog {version} loaded with {len(by_code)} entries")

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: str) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._by_code

    def __iter__(self):
        return iter(self._by_code.values())

    def find(self, key: str) -> Optional[DeadlineCatalogEntry]:
        """Look up by catalog code, falling back to the deadline name"""

        if not isinstance(key, str) or not key.strip():
            return None
        entry = self._by_code.get(key.strip().upper())
        if entry is None:
            entry = self._by_name.get(_normalize(key))
        return entry

    def get(self, key: str) -> DeadlineCatalogEntry:
        """
        Resolve a catalog code or deadline name

        Raises:
            ConfigurationNotFound: nothing matches the key
        """

        entry = self.find(key)
        if entry is None:
            raise ConfigurationNotFound(
                f"No catalog entry for {key!r}",
                {"kind": "catalog", "key": key}
            )
        return entry

    def codes(self) -> List[str]:
        return sorted(self._by_code)

    def by_category(self, category: ProceduralCategory) -> List[DeadlineCatalogEntry]:
        return [e for e in self._by_code.values() if e.procedural_category == category]

    def search(self, text: str) -> List[DeadlineCatalogEntry]:
        needle = _normalize(text)
        return [
            e for e in self._by_code.values()
            if needle in _normalize(e.name) or needle in _normalize(e.description)
        ]

    def to_dict(self) -> Dict:
        return {
            "version": self.version,
            "entries": [e.to_dict() for e in self._by_code.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "DeadlineCatalog":
        return cls(
            (DeadlineCatalogEntry.from_dict(item) for item in data.get("entries", [])),
            version=data.get("version", "unversioned"),
        )

    @classmethod
    def load_json(cls, path=None) -> "DeadlineCatalog":
        path = Path(path) if path else DEFAULT_CATALOG_FILE
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info(f"Loaded {len(catalog)} deadline definitions from {path.name}")
        return catalog
