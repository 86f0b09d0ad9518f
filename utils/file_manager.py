import json
import os
import tempfile
import threading

_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
_FILE_LOCK = threading.Lock()

DEFAULT_STORAGE_KEY = "audio_sales_data_v1"

DEFAULTS = {
    "config.json": {
        "storage_key": DEFAULT_STORAGE_KEY,
        "default_type": "Speaker",
        "log_level": "INFO",
        "server": {
            "host": "127.0.0.1",
            "port": 5000
        },
        "mcp": {
            "host": "127.0.0.1",
            "port": 8000,
            "path": "/mcp"
        }
    }
}

def data_dir() -> str:
    return str(_DATA_DIR)

def data_path(filename: str) -> str:
    os.makedirs(_DATA_DIR, exist_ok=True)
    return os.path.join(_DATA_DIR, filename)

def key_filename(key: str) -> str:
    """Map a logical storage key to its file in the data directory."""
    if not key or "/" in key or "\\" in key or key.startswith("."):
        raise ValueError(f"Invalid storage key: {key!r}")
    return f"{key}.json"

def _atomic_write(path: str, data_obj):
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data_obj, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    finally:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            pass

def ensure_defaults():
    os.makedirs(_DATA_DIR, exist_ok=True)
    for fname, default in DEFAULTS.items():
        path = data_path(fname)
        if not os.path.exists(path):
            with _FILE_LOCK:
                _atomic_write(path, default)

def exists(filename: str) -> bool:
    return os.path.exists(data_path(filename))

def read_json(filename: str):
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

def write_json(filename: str, obj):
    path = data_path(filename)
    with _FILE_LOCK:
        _atomic_write(path, obj)

def read_config() -> dict:
    """Config merged over DEFAULTS so missing keys always resolve."""
    cfg = dict(DEFAULTS["config.json"])
    if exists("config.json"):
        stored = read_json("config.json")
        if isinstance(stored, dict):
            cfg.update(stored)
    return cfg

def update_config(changes: dict) -> dict:
    cfg = read_config()
    cfg.update(changes)
    write_json("config.json", cfg)
    return cfg
