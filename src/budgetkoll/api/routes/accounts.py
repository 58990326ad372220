"""Account and account type endpoints."""

from flask import Blueprint, jsonify

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import read_payload, to_json, to_json_list
from budgetkoll.domain.account import AccountService, AccountTypeService
from budgetkoll.domain.errors import NotFoundError, not_found

accounts_api = Blueprint("accounts_api", __name__)


def _accounts() -> AccountService:
    return AccountService(get_db(), get_user_id())


def _account_types() -> AccountTypeService:
    return AccountTypeService(get_db(), get_user_id())


@accounts_api.route("/accounts", methods=["GET"])
def list_accounts():
    return jsonify(to_json_list(_accounts().list_accounts()))


@accounts_api.route("/accounts", methods=["POST"])
def create_account():
    data = read_payload("name", "account_type_id", "start_balance", required=["name"])
    service = _accounts()
    account_id = service.create_account(
        data["name"],
        account_type_id=data.get("account_type_id"),
        start_balance=data.get("start_balance") or 0,
    )
    return jsonify(to_json(service.get_account(account_id))), 201


@accounts_api.route("/accounts/<int:account_id>", methods=["GET"])
def get_account(account_id):
    account = _accounts().get_account(account_id)
    if account is None:
        raise NotFoundError(not_found("Account", account_id))
    return jsonify(to_json(account))


@accounts_api.route("/accounts/<int:account_id>", methods=["PATCH"])
def update_account(account_id):
    data = read_payload("name", "account_type_id", "start_balance")
    return jsonify(to_json(_accounts().update_account(account_id, **data)))


@accounts_api.route("/accounts/<int:account_id>", methods=["DELETE"])
def delete_account(account_id):
    _accounts().delete_account(account_id)
    return "", 204


@accounts_api.route("/account-types", methods=["GET"])
def list_account_types():
    return jsonify(to_json_list(_account_types().list_account_types()))


@accounts_api.route("/account-types", methods=["POST"])
def create_account_type():
    data = read_payload("name", "description", required=["name"])
    service = _account_types()
    account_type_id = service.create_account_type(data["name"], data.get("description"))
    return jsonify(to_json(service.get_account_type(account_type_id))), 201


@accounts_api.route("/account-types/<int:account_type_id>", methods=["GET"])
def get_account_type(account_type_id):
    account_type = _account_types().get_account_type(account_type_id)
    if account_type is None:
        raise NotFoundError(not_found("Account type", account_type_id))
    return jsonify(to_json(account_type))


@accounts_api.route("/account-types/<int:account_type_id>", methods=["PATCH"])
def update_account_type(account_type_id):
    data = read_payload("name", "description")
    return jsonify(to_json(_account_types().update_account_type(account_type_id, **data)))


@accounts_api.route("/account-types/<int:account_type_id>", methods=["DELETE"])
def delete_account_type(account_type_id):
    _account_types().delete_account_type(account_type_id)
    return "", 204
