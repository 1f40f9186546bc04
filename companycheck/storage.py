"""
Durable key/value storage backing the long-lived cache tier.

Backends expose the same four operations (get_item, set_item, remove_item,
keys) over string keys and string values. Any backend failure surfaces as
StorageError so the cache can degrade to "no durable entry".
"""

import json
from pathlib import Path
from typing import Dict, List, Optional


class StorageError(Exception):
    """Raised when the durable storage cannot be read or written."""
    pass


class DurableStorage:
    """Interface of a durable string key/value store."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


def load_store(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return {}
            data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def save_store(path: Path, store: Dict[str, str]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(store, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}") from e


class JsonFileStorage(DurableStorage):
    """All entries in one JSON object file; read and rewritten on every call."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_item(self, key: str) -> Optional[str]:
        return load_store(self.path).get(key)

    def set_item(self, key: str, value: str) -> None:
        store = load_store(self.path)
        store[key] = value
        save_store(self.path, store)

    def remove_item(self, key: str) -> None:
        store = load_store(self.path)
        if store.pop(key, None) is not None:
            save_store(self.path, store)

    def keys(self) -> List[str]:
        return list(load_store(self.path).keys())
