"""camelCase <-> snake_case key conversion for the JSON API."""

import re
from typing import Any, Mapping

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_case(name: str) -> str:
    """``"huvudkategori_id"`` -> ``"huvudkategoriId"``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snake_case(name: str) -> str:
    """``"faktisktKontosaldo"`` -> ``"faktiskt_kontosaldo"``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def camelize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {camel_case(key): value for key, value in data.items()}
