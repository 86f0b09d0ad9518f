import logging
from typing import Iterable, List, Optional

from models.sale import SaleRecord
from utils.file_manager import DEFAULT_STORAGE_KEY, exists, key_filename, read_json, write_json

LOG = logging.getLogger(__name__)


class RecordStore:
    """Whole-list persistence of sale records under one logical key.

    Loading never raises: a missing, unreadable or corrupt blob reads as an
    empty list. Saving never raises either; failures are logged and reported
    through the boolean result only.
    """

    def __init__(self, key: Optional[str] = None):
        self.key = key or DEFAULT_STORAGE_KEY
        self.filename = key_filename(self.key)

    def load(self) -> List[SaleRecord]:
        try:
            if not exists(self.filename):
                return []
            raw = read_json(self.filename)
        except (OSError, ValueError) as exc:
            LOG.error("Error loading sales from %s: %s", self.filename, exc)
            return []
        if not isinstance(raw, list):
            LOG.error("Error loading sales from %s: expected a list, got %s", self.filename, type(raw).__name__)
            return []

        records = []
        seen = set()
        for i, entry in enumerate(raw):
            if not isinstance(entry, dict) or not entry.get("id"):
                LOG.warning("Skipping stored sale #%d: missing id", i)
                continue
            try:
                rec = SaleRecord.from_dict(entry)
            except ValueError as exc:
                LOG.warning("Skipping stored sale %s: %s", entry.get("id"), exc)
                continue
            if rec.id in seen:
                LOG.warning("Skipping stored sale %s: duplicate id", rec.id)
                continue
            seen.add(rec.id)
            records.append(rec)
        return records

    def save(self, records: Iterable[SaleRecord]) -> bool:
        try:
            write_json(self.filename, [r.to_dict() for r in records])
        except (OSError, TypeError, ValueError) as exc:
            LOG.error("Error saving sales to %s: %s", self.filename, exc)
            return False
        return True
