"""
Local MCP server for the audio sales tracker.

This implements a minimal Model Context Protocol (MCP) server using FastMCP
with tools to list, add, edit and delete sales and to read the dashboard
statistics.

The server works on the same `SalesBook` as the Flask app, so every change
is saved to the local JSON store in `data/`.
"""
import json
import logging
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from app import book_from_config, sale_payload
from models.sales import SalesBook
from models.stats import ALL_MONTHS, distinct_months, month_report
from utils.file_manager import ensure_defaults, read_config

LOG = logging.getLogger(__name__)

server_instructions = """
This MCP server tracks sales of secondhand audio equipment. It supports
listing, adding, editing and deleting sale records and reading revenue,
cost and profit totals with a per-category breakdown, optionally for a
single YYYY-MM month.
"""


def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False)}]}


def _parse_arg(arg: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object argument; empty means {}.

    Raises ValueError for invalid JSON or a non-object value.
    """
    if not arg or not arg.strip():
        return {}
    try:
        data = json.loads(arg)
    except json.JSONDecodeError:
        raise ValueError("Invalid JSON argument")
    if not isinstance(data, dict):
        raise ValueError("Argument must be a JSON object")
    return data


class SalesTools:
    """MCP tool handlers bound to one SalesBook."""

    def __init__(self, book: SalesBook):
        self.book = book

    async def list_sales(self, month: str = ALL_MONTHS) -> Dict[str, Any]:
        """
        Return sale records, newest first.

        Args:
            month: "YYYY-MM" to restrict to one month, or "all" (default).

        Returns:
            MCP content array with JSON: {"month": m, "sales": [...]}.
            Each sale carries its computed `totalCost` and `profit`.
        """
        month = month or ALL_MONTHS
        sales = [sale_payload(r) for r in self.book.list(month)]
        return _content({"month": month, "sales": sales})

    async def get_sale(self, sale_id: str) -> Dict[str, Any]:
        """Return a single sale by id, or an error payload if it does not exist."""
        rec = self.book.get(sale_id)
        if rec is None:
            return _content({"error": f"Unknown sale: {sale_id}"})
        return _content({"sale": sale_payload(rec)})

    async def add_sale(self, arg: str) -> Dict[str, Any]:
        """
        Record a new sale.

        The `arg` parameter is a JSON object such as
        {"brand":"Sony","model":"X1","type":"Speaker","costPrice":1000,
         "shippingCost":100,"sellingPrice":1500,"date":"2024-01-15"}.
        `brand` and `model` are required; amounts default to 0 and the date
        to today.

        Edge cases:
            - Invalid JSON or a rejected record returns an error payload and
              nothing is saved.
        """
        try:
            data = _parse_arg(arg)
        except ValueError as e:
            return _content({"error": str(e)})
        rec = self.book.create(data)
        if rec is None:
            return _content({"error": "Provide brand and model, non-negative amounts and a YYYY-MM-DD date"})
        return _content({"sale": sale_payload(rec)})

    async def update_sale(self, sale_id: str, arg: str) -> Dict[str, Any]:
        """
        Edit an existing sale.

        `arg` is a JSON object with the fields to change; fields left out
        keep their current value. The id never changes.
        """
        try:
            data = _parse_arg(arg)
        except ValueError as e:
            return _content({"error": str(e)})
        if self.book.get(sale_id) is None:
            return _content({"error": f"Unknown sale: {sale_id}"})
        rec = self.book.update(sale_id, data)
        if rec is None:
            return _content({"error": "Invalid sale values"})
        return _content({"sale": sale_payload(rec)})

    async def delete_sale(self, sale_id: str) -> Dict[str, Any]:
        """
        Delete a sale by id.

        The caller is responsible for confirming the deletion with the user
        before invoking this tool.
        """
        if not self.book.delete(sale_id):
            return _content({"error": f"Unknown sale: {sale_id}"})
        return _content({"ok": True, "deleted": sale_id})

    async def summary(self, month: str = ALL_MONTHS) -> Dict[str, Any]:
        """
        Return dashboard statistics.

        Args:
            month: "YYYY-MM" or "all" (default).

        Returns:
            MCP content array with JSON: {"month", "summary": {"totalCost",
            "totalRevenue", "totalProfit", "count"}, "categories", "chart",
            "months"}.
        """
        return _content(month_report(self.book.records, month or ALL_MONTHS))

    async def months(self) -> Dict[str, Any]:
        """Return the months that have sales, most recent first."""
        return _content({"months": distinct_months(self.book.records)})


TOOL_NAMES = ("list_sales", "get_sale", "add_sale", "update_sale", "delete_sale", "summary", "months")


def create_server(book: Optional[SalesBook] = None) -> FastMCP:
    mcp = FastMCP(name="Audio Sales Local MCP", instructions=server_instructions)
    tools = SalesTools(book or book_from_config())
    for name in TOOL_NAMES:
        mcp.tool(getattr(tools, name))
    return mcp


def main():
    ensure_defaults()
    cfg = read_config()
    logging.basicConfig(level=cfg.get("log_level", "INFO"))
    server = create_server()
    LOG.info("Starting local MCP server on %s:%s (HTTP)", cfg["mcp"]["host"], cfg["mcp"]["port"])
    server.run(transport="http", host=cfg["mcp"]["host"], port=int(cfg["mcp"]["port"]), path=cfg["mcp"]["path"])


if __name__ == "__main__":
    main()
