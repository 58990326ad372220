"""JSON shapes for domain entities.

Responses use camelCase keys; request bodies are read with the same names and
converted back to snake_case before reaching the services.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from flask import request

from budgetkoll.domain.entities import (
    MonthlyAccountBalance,
    MonthlyBudget,
    PlannedTransfer,
    Transaction,
    UncategorizedBankCategory,
)
from budgetkoll.domain.errors import ValidationError
from budgetkoll.domain.planned_transfer import format_transfer_days, monthly_contribution
from budgetkoll.utils.naming import camel_case, snake_case

# Internal columns that never leave the server
HIDDEN_FIELDS = {"user_id"}


def _value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, tuple):
        return [_value(v) for v in value]
    return value


def to_json(entity: Any) -> dict[str, Any]:
    """Serialize a domain dataclass with camelCase keys."""
    if not is_dataclass(entity):
        raise TypeError(f"Cannot serialize {type(entity).__name__}")
    data = {
        camel_case(f.name): _value(getattr(entity, f.name))
        for f in fields(entity)
        if f.name not in HIDDEN_FIELDS
    }
    if isinstance(entity, MonthlyBudget):
        data["totalIncome"] = entity.total_income
    elif isinstance(entity, MonthlyAccountBalance):
        data["difference"] = entity.difference
    elif isinstance(entity, PlannedTransfer):
        data["monthlyAmount"] = monthly_contribution(entity)
        data["transferDaysLabel"] = format_transfer_days(entity.transfer_days)
    elif isinstance(entity, Transaction):
        data["effectiveAmount"] = entity.effective_amount
    elif isinstance(entity, UncategorizedBankCategory):
        data["subCategories"] = list(entity.sub_categories)
        data["ruleSuggestions"] = [
            {"bankCategory": cat, "bankSubCategory": sub} for cat, sub in entity.rule_suggestions()
        ]
    return data


def to_json_list(entities: Iterable[Any]) -> list[dict[str, Any]]:
    return [to_json(entity) for entity in entities]


def read_payload(*allowed: str, required: Iterable[str] = ()) -> dict[str, Any]:
    """Read the JSON body as snake_case keys, keeping only ``allowed`` fields.

    Args:
        *allowed: snake_case field names accepted from the client
        required: Fields that must be present and non-null

    Raises:
        ValidationError: If the body is not a JSON object or lacks a required field
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    payload = {}
    for key, value in data.items():
        name = snake_case(key)
        if name in allowed:
            payload[name] = value
    missing = [camel_case(name) for name in required if payload.get(name) is None]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    return payload


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer query parameter."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"Query parameter {name} must be an integer") from e


def bool_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}
