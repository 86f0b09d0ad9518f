import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union


class EquipmentType(Enum):
    SPEAKER = "Speaker"
    AMPLIFIER = "Amplifier"
    PLAYER = "Player/DAC"
    CABLE = "Cable"
    ACCESSORY = "Accessory"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class CustomType:
    """A free-text equipment tag outside the known categories."""
    label: str


ItemType = Union[EquipmentType, CustomType]

_KNOWN = {t.value.lower(): t for t in EquipmentType}
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_type(value: Any) -> ItemType:
    """Resolve a stored/submitted type to a known category or a custom tag.

    Known labels match case-insensitively and come back in their canonical
    spelling, so a blob holding "speaker" is saved again as "Speaker".
    """
    if isinstance(value, (EquipmentType, CustomType)):
        return value
    text = str(value or "").strip()
    if not text:
        return EquipmentType.SPEAKER
    return _KNOWN.get(text.lower(), CustomType(text))


def is_valid_date(value: Any) -> bool:
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _amount(data: Dict[str, Any], key: str) -> float:
    raw = data.get(key, 0)
    if raw is None or raw == "":
        return 0
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{key} must be a number")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"{key} must be a non-negative number")
    # keep integral amounts as ints so stored blobs read back unchanged
    return int(value) if value.is_integer() and not isinstance(raw, float) else value


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class SaleRecord:
    id: str
    brand: str
    model: str
    type: ItemType = EquipmentType.SPEAKER
    cost_price: float = 0
    shipping_cost: float = 0
    selling_price: float = 0
    date: str = field(default_factory=lambda: date.today().isoformat())
    note: Optional[str] = None

    @property
    def type_label(self) -> str:
        return self.type.label

    @property
    def total_cost(self) -> float:
        return self.cost_price + self.shipping_cost

    @property
    def profit(self) -> float:
        return self.selling_price - self.total_cost

    @property
    def month(self) -> Optional[str]:
        """YYYY-MM of the sale date, or None when the date is malformed."""
        return self.date[:7] if is_valid_date(self.date) else None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "brand": self.brand,
            "type": self.type_label,
            "model": self.model,
            "costPrice": self.cost_price,
            "shippingCost": self.shipping_cost,
            "sellingPrice": self.selling_price,
            "date": self.date,
        }
        if self.note is not None:
            out["note"] = self.note
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any], record_id: Optional[str] = None) -> "SaleRecord":
        """Build a validated record from its JSON form.

        Raises ValueError when brand/model are missing, an amount is negative
        or not numeric, or the date is not YYYY-MM-DD. `record_id` overrides
        any id in `data`; when neither is present a fresh one is assigned.
        """
        if not isinstance(data, dict):
            raise ValueError("Sale record must be an object")
        brand = str(data.get("brand") or "").strip()
        model = str(data.get("model") or "").strip()
        if not brand or not model:
            raise ValueError("brand and model are required")
        sale_date = data.get("date") or date.today().isoformat()
        if not is_valid_date(sale_date):
            raise ValueError(f"Invalid date: {sale_date!r} (expected YYYY-MM-DD)")
        note = data.get("note")
        return cls(
            id=str(record_id or data.get("id") or new_id()),
            brand=brand,
            model=model,
            type=parse_type(data.get("type")),
            cost_price=_amount(data, "costPrice"),
            shipping_cost=_amount(data, "shippingCost"),
            selling_price=_amount(data, "sellingPrice"),
            date=sale_date,
            note=None if note is None else str(note),
        )

    def merged(self, changes: Dict[str, Any]) -> "SaleRecord":
        """Return a validated copy with `changes` applied; the id never changes."""
        data = self.to_dict()
        data.update({k: v for k, v in changes.items() if k != "id"})
        return SaleRecord.from_dict(data, record_id=self.id)
