from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from models.sale import SaleRecord

ALL_MONTHS = "all"


@dataclass(frozen=True)
class SummaryStats:
    total_cost: float = 0
    total_revenue: float = 0
    total_profit: float = 0
    count: int = 0

    def to_dict(self) -> Dict:
        return {
            "totalCost": self.total_cost,
            "totalRevenue": self.total_revenue,
            "totalProfit": self.total_profit,
            "count": self.count,
        }


def filter_by_month(records: Sequence[SaleRecord], month: Optional[str] = ALL_MONTHS) -> List[SaleRecord]:
    """Records sold in `month` (YYYY-MM); "all" or None keeps everything.

    Records with a malformed date never match a month.
    """
    if month is None or month == ALL_MONTHS:
        return list(records)
    return [r for r in records if r.month is not None and r.date.startswith(month)]


def summarize(records: Iterable[SaleRecord]) -> SummaryStats:
    cost = 0
    revenue = 0
    count = 0
    for r in records:
        cost += r.total_cost
        revenue += r.selling_price
        count += 1
    return SummaryStats(
        total_cost=cost,
        total_revenue=revenue,
        total_profit=revenue - cost,
        count=count,
    )


def category_breakdown(records: Iterable[SaleRecord]) -> Dict[str, int]:
    counts = {}
    for r in records:
        counts[r.type_label] = counts.get(r.type_label, 0) + 1
    return counts


def category_chart(records: Iterable[SaleRecord]) -> List[Dict]:
    """Breakdown as name/value rows for pie charts."""
    return [{"name": k, "value": v} for k, v in category_breakdown(records).items()]


def distinct_months(records: Iterable[SaleRecord]) -> List[str]:
    # lexicographic works for YYYY-MM keys
    return sorted({r.month for r in records if r.month is not None}, reverse=True)


def month_report(records: Sequence[SaleRecord], month: Optional[str] = ALL_MONTHS) -> Dict:
    """Dashboard bundle: totals and categories for `month`, plus the month list."""
    subset = filter_by_month(records, month)
    return {
        "month": month or ALL_MONTHS,
        "summary": summarize(subset).to_dict(),
        "categories": category_breakdown(subset),
        "chart": category_chart(subset),
        "months": distinct_months(records),
    }
