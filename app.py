import logging
from typing import Optional

from flask import Flask, jsonify, request
from utils.file_manager import ensure_defaults, read_config, update_config, data_dir, key_filename
from models.sale import SaleRecord
from models.sales import SalesBook
from models.stats import ALL_MONTHS, distinct_months, month_report
from models.store import RecordStore

LOG = logging.getLogger(__name__)

CONFIG_KEYS = {"storage_key", "default_type", "log_level", "server", "mcp"}


def check_config(changes: dict):
    """Raise ValueError for settings that would stop the app from starting."""
    if "storage_key" in changes:
        if not isinstance(changes["storage_key"], str):
            raise ValueError("storage_key must be a string")
        key_filename(changes["storage_key"])
    if "log_level" in changes:
        level = changes["log_level"]
        if not isinstance(level, str) or not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log_level: {level!r}")
    if "default_type" in changes and not isinstance(changes["default_type"], str):
        raise ValueError("default_type must be a string")
    for section in ("server", "mcp"):
        if section not in changes:
            continue
        value = changes[section]
        if not isinstance(value, dict) or not isinstance(value.get("host"), str):
            raise ValueError(f"{section} needs a host and a port")
        port = value.get("port")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ValueError(f"{section}.port must be an integer between 1 and 65535")
        if section == "mcp" and not isinstance(value.get("path"), str):
            raise ValueError("mcp needs a path")


def book_from_config() -> SalesBook:
    ensure_defaults()
    cfg = read_config()
    return SalesBook(RecordStore(cfg["storage_key"]), default_type=cfg.get("default_type"))


def sale_payload(rec: SaleRecord) -> dict:
    out = rec.to_dict()
    out["totalCost"] = rec.total_cost
    out["profit"] = rec.profit
    return out


def create_app(book: Optional[SalesBook] = None) -> Flask:
    app = Flask(__name__)
    book = book or book_from_config()
    app.extensions["sales_book"] = book

    def _month():
        return request.args.get("month") or ALL_MONTHS

    @app.get("/status")
    def status():
        return jsonify({
            "ok": True,
            "count": len(book.records),
            "storage_key": book.store.key,
            "data_dir": data_dir(),
        })

    # -------- Sales --------
    @app.get("/sales")
    def sales_list():
        month = _month()
        return jsonify({"ok": True, "month": month, "sales": [sale_payload(r) for r in book.list(month)]})

    @app.get("/sales/<sale_id>")
    def sales_get(sale_id):
        rec = book.get(sale_id)
        if rec is None:
            return jsonify({"ok": False, "error": f"Unknown sale: {sale_id}"}), 404
        return jsonify({"ok": True, "sale": sale_payload(rec)})

    @app.post("/sales")
    def sales_create():
        data = request.get_json(force=True, silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "Expected a JSON object."}), 400
        rec = book.create(data)
        if rec is None:
            return jsonify({"ok": False, "error": "Provide brand and model, non-negative amounts and a YYYY-MM-DD date."}), 400
        return jsonify({"ok": True, "sale": sale_payload(rec)}), 201

    @app.put("/sales/<sale_id>")
    def sales_update(sale_id):
        data = request.get_json(force=True, silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "Expected a JSON object."}), 400
        if book.get(sale_id) is None:
            return jsonify({"ok": False, "error": f"Unknown sale: {sale_id}"}), 404
        rec = book.update(sale_id, data)
        if rec is None:
            return jsonify({"ok": False, "error": "Invalid sale values."}), 400
        return jsonify({"ok": True, "sale": sale_payload(rec)})

    @app.delete("/sales/<sale_id>")
    def sales_delete(sale_id):
        if not book.delete(sale_id):
            return jsonify({"ok": False, "error": f"Unknown sale: {sale_id}"}), 404
        return jsonify({"ok": True, "deleted": sale_id})

    # -------- Stats --------
    @app.get("/stats")
    def stats():
        return jsonify({"ok": True, **month_report(book.records, _month())})

    @app.get("/months")
    def months():
        return jsonify({"ok": True, "months": distinct_months(book.records)})

    # -------- Admin --------
    @app.get("/config")
    def config_get():
        return jsonify({"ok": True, "config": read_config()})

    @app.post("/config")
    def config_update():
        data = request.get_json(force=True, silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "Expected a JSON object."}), 400
        # Allow partial updates to top-level keys
        changed = {k: v for k, v in data.items() if k in CONFIG_KEYS}
        try:
            check_config(changed)
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        cfg = update_config(changed)
        if "default_type" in changed:
            book.default_type = changed["default_type"]
        return jsonify({"ok": True, "changed": changed, "config": cfg})

    return app


if __name__ == "__main__":
    # Running directly: start Flask dev server
    ensure_defaults()
    cfg = read_config()
    logging.basicConfig(level=cfg.get("log_level", "INFO"))
    create_app().run(host=cfg["server"]["host"], port=int(cfg["server"]["port"]), debug=True)
