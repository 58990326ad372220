"""Monthly budget, budget post, planned transfer and monthly balance endpoints."""

from flask import Blueprint, jsonify, request

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import int_arg, read_payload, to_json, to_json_list
from budgetkoll.domain.budget_post import EDITABLE_FIELDS as POST_FIELDS, BudgetPostService
from budgetkoll.domain.entities import PlannedTransfer
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.domain.monthly_balance import MonthlyBalanceService
from budgetkoll.domain.monthly_budget import INCOME_FIELDS, MonthlyBudgetService
from budgetkoll.domain.planned_transfer import PlannedTransferService
from budgetkoll.utils.naming import camel_case

budget_api = Blueprint("budget_api", __name__)

TRANSFER_FIELDS = (
    "from_account_id",
    "to_account_id",
    "amount",
    "month",
    "description",
    "transfer_type",
    "daily_amount",
    "transfer_days",
    "huvudkategori_id",
    "underkategori_id",
)


def _budgets() -> MonthlyBudgetService:
    return MonthlyBudgetService(get_db(), get_user_id())


def _transfers() -> PlannedTransferService:
    return PlannedTransferService(get_db(), get_user_id())


def _balances() -> MonthlyBalanceService:
    return MonthlyBalanceService(get_db(), get_user_id())


def _posts() -> BudgetPostService:
    return BudgetPostService(get_db(), get_user_id())


def _transfer_json(service: PlannedTransferService, transfer: PlannedTransfer) -> dict:
    data = to_json(transfer)
    data["actualTransferred"] = service.transferred_so_far(transfer)
    return data


# Monthly budgets
@budget_api.route("/monthly-budgets", methods=["GET"])
def list_budgets():
    return jsonify(to_json_list(_budgets().list_budgets()))


@budget_api.route("/monthly-budgets", methods=["POST"])
def create_budget():
    data = read_payload("month_key", "notes", *INCOME_FIELDS, required=["month_key"])
    service = _budgets()
    month_key = data.pop("month_key")
    service.create_budget(month_key, **data)
    return jsonify(to_json(service.get_budget(month_key))), 201


@budget_api.route("/monthly-budgets/<month_key>", methods=["GET"])
def get_budget(month_key):
    budget = _budgets().get_budget(month_key)
    if budget is None:
        raise NotFoundError(not_found("Monthly budget", month_key))
    return jsonify(to_json(budget))


@budget_api.route("/monthly-budgets/<month_key>", methods=["PATCH"])
def update_budget(month_key):
    data = read_payload("notes", *INCOME_FIELDS)
    return jsonify(to_json(_budgets().update_budget(month_key, **data)))


@budget_api.route("/monthly-budgets/<month_key>", methods=["DELETE"])
def delete_budget(month_key):
    _budgets().delete_budget(month_key)
    return "", 204


# Planned transfers
@budget_api.route("/planned-transfers", methods=["GET"])
def list_transfers():
    service = _transfers()
    transfers = service.list_transfers(month=request.args.get("month") or None, account_id=int_arg("accountId"))
    return jsonify([_transfer_json(service, t) for t in transfers])


@budget_api.route("/planned-transfers", methods=["POST"])
def create_transfer():
    data = read_payload(*TRANSFER_FIELDS, required=["from_account_id", "to_account_id", "month"])
    service = _transfers()
    transfer_id = service.create_transfer(**data)
    return jsonify(_transfer_json(service, service.get_transfer(transfer_id))), 201


@budget_api.route("/planned-transfers/<int:transfer_id>", methods=["PATCH"])
def update_transfer(transfer_id):
    data = read_payload(*TRANSFER_FIELDS)
    service = _transfers()
    return jsonify(_transfer_json(service, service.update_transfer(transfer_id, **data)))


@budget_api.route("/planned-transfers/<int:transfer_id>", methods=["DELETE"])
def delete_transfer(transfer_id):
    _transfers().delete_transfer(transfer_id)
    return "", 204


# Monthly account balances
@budget_api.route("/monthly-account-balances", methods=["GET"])
def list_balances():
    return jsonify(to_json_list(_balances().list_balances(request.args.get("monthKey") or None)))


@budget_api.route("/monthly-account-balances", methods=["POST"])
def save_balance():
    """Upsert one (month, account) row."""
    data = read_payload(
        "month_key",
        "account_id",
        "calculated_balance",
        "faktiskt_kontosaldo",
        "bankens_kontosaldo",
        required=["month_key", "account_id"],
    )
    balance = _balances().save_balance(data.pop("month_key"), data.pop("account_id"), **data)
    return jsonify(to_json(balance))


@budget_api.route(
    "/monthly-account-balances/<month_key>/<int:account_id>/faktiskt-kontosaldo", methods=["PUT"]
)
def set_faktiskt_kontosaldo(month_key, account_id):
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or "faktisktKontosaldo" not in body:
        raise ValidationError("Body must be {\"faktisktKontosaldo\": number|null}")
    balance = _balances().set_faktiskt_kontosaldo(month_key, account_id, body["faktisktKontosaldo"])
    return jsonify(to_json(balance))


@budget_api.route(
    "/monthly-account-balances/<month_key>/<int:account_id>/bankens-kontosaldo", methods=["PUT"]
)
def set_bankens_kontosaldo(month_key, account_id):
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or "bankensKontosaldo" not in body:
        raise ValidationError("Body must be {\"bankensKontosaldo\": number|null}")
    balance = _balances().set_bankens_kontosaldo(month_key, account_id, body["bankensKontosaldo"])
    return jsonify(to_json(balance))


@budget_api.route("/monthly-account-balances/<month_key>/recalculate", methods=["POST"])
def recalculate_month(month_key):
    return jsonify(to_json_list(_balances().recalculate_month(month_key)))


# Budget posts
@budget_api.route("/budget-posts", methods=["GET"])
def list_posts():
    return jsonify(to_json_list(_posts().list_posts(request.args.get("monthKey") or None)))


@budget_api.route("/budget-posts", methods=["POST"])
def create_post():
    data = read_payload(*POST_FIELDS, required=["month_key", "type", "description", "amount"])
    service = _posts()
    post_id = service.create_post(
        data.pop("month_key"), data.pop("type"), data.pop("description"), data.pop("amount"), **data
    )
    return jsonify(to_json(service.get_post(post_id))), 201


@budget_api.route("/budget-posts/summary", methods=["GET"])
def post_summary():
    month_key = request.args.get("monthKey")
    if not month_key:
        raise ValidationError("Missing required query parameter: monthKey")
    summary = _posts().month_summary(month_key)
    return jsonify({camel_case(k): v for k, v in summary.items()})


@budget_api.route("/budget-posts/copy-month", methods=["POST"])
def copy_month():
    """Fill an empty month with the posts of another (default: the previous) month."""
    data = read_payload("month_key", "source_month_key", required=["month_key"])
    posts = _posts().copy_month(data["month_key"], data.get("source_month_key"))
    return jsonify(to_json_list(posts)), 201


@budget_api.route("/budget-posts/<int:post_id>", methods=["GET"])
def get_post(post_id):
    post = _posts().get_post(post_id)
    if post is None:
        raise NotFoundError(not_found("Budget post", post_id))
    return jsonify(to_json(post))


@budget_api.route("/budget-posts/<int:post_id>", methods=["PATCH"])
def update_post(post_id):
    data = read_payload(*POST_FIELDS)
    return jsonify(to_json(_posts().update_post(post_id, **data)))


@budget_api.route("/budget-posts/<int:post_id>", methods=["DELETE"])
def delete_post(post_id):
    _posts().delete_post(post_id)
    return "", 204
