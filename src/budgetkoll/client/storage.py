"""Small persistent key/value store for the client (a local-storage stand-in)."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

ACCOUNT_TYPES_CACHE_KEY = "account_types_cache"
LEGACY_BUDGET_STATE_KEY = "budgetState"


def default_store_path() -> Path:
    return Path.home() / ".budgetkoll" / "client-store.json"


class LocalStore:
    """JSON file holding a flat mapping of keys to JSON values."""

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path is not None else default_store_path()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable client store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def legacy_transactions(self) -> list[dict[str, Any]]:
        """Transactions from the legacy ``budgetState`` blob.

        Read-only debugging aid; never merged into server data.
        """
        state = self.get(LEGACY_BUDGET_STATE_KEY)
        if isinstance(state, str):
            try:
                state = json.loads(state)
            except json.JSONDecodeError:
                return []
        if not isinstance(state, dict):
            return []
        transactions = state.get("allTransactions") or []
        return transactions if isinstance(transactions, list) else []
