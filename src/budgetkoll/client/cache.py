"""Client-side query cache keyed by resource path."""

from typing import Any, Optional


class QueryCache:
    """Responses of GET requests, keyed by path (plus query string).

    Entries are invalidated by path prefix after a mutation, never merged, so
    the next read always reflects the server. A later response for the same
    key simply replaces the earlier one.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    @staticmethod
    def key(path: str, params: Optional[dict[str, Any]] = None) -> str:
        if not params:
            return path
        query = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] is not None)
        return f"{path}?{query}" if query else path

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Any:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, *prefixes: str) -> int:
        """Drop every entry whose key starts with one of ``prefixes``.

        A prefix matches the resource itself, its sub-paths and its query
        variants, but not a sibling resource sharing the same leading text
        (``/api/inkomstkallor`` does not drop ``/api/inkomstkallor-medlem``).

        Returns:
            Number of entries dropped
        """
        doomed = [
            key
            for key in self._entries
            if any(key == p or key.startswith((p + "/", p + "?")) for p in prefixes)
        ]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
