import pytest

import utils.file_manager as fm
from models.sale import SaleRecord
from models.store import RecordStore


def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()


def make_sales():
    return [
        SaleRecord.from_dict({"id": "2", "brand": "Marantz", "type": "Amplifier", "model": "PM6006",
                              "costPrice": 9000, "shippingCost": 250, "sellingPrice": 11500,
                              "date": "2024-02-03", "note": "with remote"}),
        SaleRecord.from_dict({"id": "1", "brand": "Sony", "type": "Speaker", "model": "X1",
                              "costPrice": 1000, "shippingCost": 100, "sellingPrice": 1500,
                              "date": "2024-01-15"}),
    ]


def test_load_when_nothing_stored(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    assert RecordStore().load() == []


def test_save_then_load_round_trip(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    store = RecordStore()
    sales = make_sales()
    assert store.save(sales) is True
    assert store.load() == sales

    raw = fm.read_json("audio_sales_data_v1.json")
    assert [r["id"] for r in raw] == ["2", "1"]
    assert raw[0]["sellingPrice"] == 11500
    assert "note" not in raw[1]


def test_separate_keys(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    RecordStore("shop_a").save(make_sales())
    assert RecordStore("shop_b").load() == []
    assert len(RecordStore("shop_a").load()) == 2


def test_corrupt_blob_reads_empty(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    with open(fm.data_path("audio_sales_data_v1.json"), "w", encoding="utf-8") as f:
        f.write("{not json")
    assert RecordStore().load() == []

    fm.write_json("audio_sales_data_v1.json", {"sales": []})
    assert RecordStore().load() == []


def test_bad_entries_skipped(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    fm.write_json("audio_sales_data_v1.json", [
        {"id": "1", "brand": "Sony", "model": "X1", "date": "2024-01-15"},
        "garbage",
        {"brand": "NoId", "model": "M"},
        {"id": "3", "brand": "", "model": "M"},
        {"id": "1", "brand": "Dup", "model": "D", "date": "2024-01-16"},
    ])
    loaded = RecordStore().load()
    assert [r.id for r in loaded] == ["1"]
    assert loaded[0].brand == "Sony"


def test_save_failure_is_logged_not_raised(tmp_path, monkeypatch, caplog):
    setup_env(tmp_path, monkeypatch)

    def boom(filename, obj):
        raise OSError("disk full")

    monkeypatch.setattr("models.store.write_json", boom)
    assert RecordStore().save(make_sales()) is False
    assert "disk full" in caplog.text


def test_invalid_key_rejected():
    with pytest.raises(ValueError):
        RecordStore("../escape")


def test_oversized_amount_entry_skipped(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    huge = "1" + "0" * 400
    with open(fm.data_path("audio_sales_data_v1.json"), "w", encoding="utf-8") as f:
        f.write('[{"id": "1", "brand": "B", "model": "M", "costPrice": ' + huge + ', "date": "2024-01-15"},'
                ' {"id": "2", "brand": "Sony", "model": "X1", "costPrice": 5, "date": "2024-01-16"}]')
    loaded = RecordStore().load()
    assert [r.id for r in loaded] == ["2"]


def test_unusable_data_dir(tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    monkeypatch.setattr(fm, "_DATA_DIR", blocker / "data")
    store = RecordStore()
    assert store.load() == []
    assert store.save(make_sales()) is False


def test_failed_write_reports_original_error(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)

    def no_replace(src, dst):
        raise OSError("replace failed")

    def no_remove(path):
        raise OSError("remove failed")

    monkeypatch.setattr(fm.os, "replace", no_replace)
    monkeypatch.setattr(fm.os, "remove", no_remove)
    with pytest.raises(OSError, match="replace failed"):
        fm.write_json("audio_sales_data_v1.json", [])
