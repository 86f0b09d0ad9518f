import logging
from typing import Any, Callable, Dict, List, Optional

from models.sale import SaleRecord, new_id
from models.stats import ALL_MONTHS, filter_by_month
from models.store import RecordStore

LOG = logging.getLogger(__name__)

Listener = Callable[[List[SaleRecord]], None]


class SalesBook:
    """Owns the in-memory list of sales; every change is saved in full.

    Records are loaded once at construction. Mutations keep newest-first
    order, persist through the store, and notify subscribers with a copy of
    the updated list. Invalid input and unknown ids are no-ops.
    """

    def __init__(self, store: Optional[RecordStore] = None, default_type: Optional[str] = None):
        self.store = store or RecordStore()
        self.default_type = default_type
        self._sales = self.store.load()
        self._listeners = []
        LOG.info("Loaded %d sales from %s", len(self._sales), self.store.filename)

    @property
    def records(self) -> List[SaleRecord]:
        return list(self._sales)

    def list(self, month: Optional[str] = ALL_MONTHS) -> List[SaleRecord]:
        return filter_by_month(self._sales, month)

    def get(self, sale_id: str) -> Optional[SaleRecord]:
        for r in self._sales:
            if r.id == sale_id:
                return r
        return None

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self):
        self.store.save(self._sales)
        snapshot = self.records
        for listener in list(self._listeners):
            listener(snapshot)

    def create(self, data: Dict[str, Any]) -> Optional[SaleRecord]:
        data = dict(data or {})
        if self.default_type and not data.get("type"):
            data["type"] = self.default_type
        try:
            rec = SaleRecord.from_dict(data, record_id=new_id())
        except ValueError as exc:
            LOG.debug("Rejected new sale: %s", exc)
            return None
        self._sales.insert(0, rec)
        self._changed()
        return rec

    def update(self, sale_id: str, changes: Dict[str, Any]) -> Optional[SaleRecord]:
        for i, r in enumerate(self._sales):
            if r.id != sale_id:
                continue
            try:
                rec = r.merged(changes or {})
            except ValueError as exc:
                LOG.debug("Rejected update of sale %s: %s", sale_id, exc)
                return None
            self._sales[i] = rec
            self._changed()
            return rec
        LOG.debug("Update ignored, unknown sale %s", sale_id)
        return None

    def delete(self, sale_id: str) -> bool:
        remaining = [r for r in self._sales if r.id != sale_id]
        if len(remaining) == len(self._sales):
            LOG.debug("Delete ignored, unknown sale %s", sale_id)
            return False
        self._sales = remaining
        self._changed()
        return True
