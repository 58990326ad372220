"""Transaction, import and rule application endpoints."""

import logging

from flask import Blueprint, jsonify, request

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import bool_arg, int_arg, read_payload, to_json, to_json_list
from budgetkoll.domain.category_rule import CategoryRuleService
from budgetkoll.domain.csv_import import CSVImportService
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.domain.transaction import EDITABLE_FIELDS, TransactionService
from budgetkoll.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

transactions_api = Blueprint("transactions_api", __name__)

CREATE_FIELDS = (
    "account_id",
    "unique_id",
    "file_source",
    *sorted(EDITABLE_FIELDS - {"is_manually_changed", "linked_transaction_id"}),
)


def _transactions() -> TransactionService:
    return TransactionService(get_db(), get_user_id())


def _parse_date_field(data: dict) -> None:
    if isinstance(data.get("date"), str):
        data["date"] = parse_date(data["date"])


@transactions_api.route("/transactions", methods=["GET"])
def list_transactions():
    transactions = _transactions().list_transactions(
        account_id=int_arg("accountId"),
        month_key=request.args.get("monthKey") or None,
        uncategorized=bool_arg("uncategorized"),
    )
    return jsonify(to_json_list(transactions))


@transactions_api.route("/transactions", methods=["POST"])
def create_transaction():
    data = read_payload(*CREATE_FIELDS, required=["account_id", "date", "amount"])
    _parse_date_field(data)
    service = _transactions()
    transaction_id = service.create_transaction(
        account_id=data.pop("account_id"),
        date=data.pop("date"),
        description=data.pop("description", "") or "",
        amount=data.pop("amount"),
        unique_id=data.pop("unique_id", None),
        **data,
    )
    return jsonify(to_json(service.get_transaction(transaction_id))), 201


@transactions_api.route("/transactions/<int:transaction_id>", methods=["GET"])
def get_transaction(transaction_id):
    transaction = _transactions().get_transaction(transaction_id)
    if transaction is None:
        raise NotFoundError(not_found("Transaction", transaction_id))
    return jsonify(to_json(transaction))


@transactions_api.route("/transactions/<int:transaction_id>", methods=["PATCH"])
def update_transaction(transaction_id):
    data = read_payload(*EDITABLE_FIELDS)
    _parse_date_field(data)
    return jsonify(to_json(_transactions().update_transaction(transaction_id, **data)))


@transactions_api.route("/transactions/<int:transaction_id>", methods=["DELETE"])
def delete_transaction(transaction_id):
    _transactions().delete_transaction(transaction_id)
    return "", 204


@transactions_api.route("/transactions/<int:transaction_id>/link", methods=["POST"])
def link_transaction(transaction_id):
    """Link two transactions as the sides of one transfer; both turn yellow."""
    data = read_payload("linked_transaction_id", required=["linked_transaction_id"])
    first, second = _transactions().link_transactions(transaction_id, data["linked_transaction_id"])
    return jsonify(to_json_list([first, second]))


@transactions_api.route("/transactions/<int:transaction_id>/link", methods=["DELETE"])
def unlink_transaction(transaction_id):
    return jsonify(to_json(_transactions().unlink_transaction(transaction_id)))


@transactions_api.route("/transactions/match-transfers", methods=["POST"])
def match_transfers():
    """Link opposite, equal transactions across the user's accounts."""
    data = read_payload("month_key")
    pairs = _transactions().auto_match_transfers(month_key=data.get("month_key"))
    return jsonify({"linked": [list(pair) for pair in pairs]})


def _form_int(name: str):
    raw = request.form.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer") from e


@transactions_api.route("/transactions/import", methods=["POST"])
def import_transactions():
    """Import an uploaded CSV/XLSX statement (multipart field ``file``)."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValidationError("A statement file is required")
    account_id = _form_int("accountId")
    if account_id is None:
        raise ValidationError("Missing required field(s): accountId")

    service = CSVImportService(get_db(), get_user_id())
    result = service.import_bytes(
        upload.read(),
        upload.filename,
        account_id,
        mapping_id=_form_int("mappingId"),
        bank_id=_form_int("bankId"),
    )
    return jsonify(result)


@transactions_api.route("/transactions/uncategorized-bank-categories", methods=["GET"])
def uncategorized_bank_categories():
    service = CategoryRuleService(get_db(), get_user_id())
    categories = service.uncategorized_bank_categories(
        month_key=request.args.get("monthKey") or None,
        account_id=int_arg("accountId"),
    )
    return jsonify(to_json_list(categories))


@transactions_api.route("/transactions/apply-rules", methods=["POST"])
def apply_rules():
    """Run active rules over the user's transactions (optionally one month/account)."""
    data = read_payload("month_key", "account_id")
    transactions = None
    if data.get("month_key") or data.get("account_id"):
        transactions = _transactions().list_transactions(
            account_id=data.get("account_id"), month_key=data.get("month_key")
        )
    stats = CategoryRuleService(get_db(), get_user_id()).apply_rules(transactions)
    return jsonify(stats.as_dict())
