"""Category and category rule endpoints."""

from flask import Blueprint, jsonify

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import int_arg, read_payload, to_json, to_json_list
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.category_rule import CategoryRuleService
from budgetkoll.domain.errors import NotFoundError, not_found

categories_api = Blueprint("categories_api", __name__)

RULE_FIELDS = (
    "rule_name",
    "bank_category",
    "bank_sub_category",
    "transaction_name",
    "transaction_direction",
    "huvudkategori_id",
    "underkategori_id",
    "positive_transaction_type",
    "negative_transaction_type",
    "applicable_account_ids",
    "priority",
    "is_active",
)


def _categories() -> CategoryService:
    return CategoryService(get_db(), get_user_id())


def _rules() -> CategoryRuleService:
    return CategoryRuleService(get_db(), get_user_id())


@categories_api.route("/huvudkategorier", methods=["GET"])
def list_huvudkategorier():
    return jsonify(to_json_list(_categories().list_huvudkategorier()))


@categories_api.route("/huvudkategorier", methods=["POST"])
def create_huvudkategori():
    data = read_payload("name", required=["name"])
    service = _categories()
    category_id = service.create_huvudkategori(data["name"])
    return jsonify(to_json(service.get_huvudkategori(category_id))), 201


@categories_api.route("/huvudkategorier/<int:category_id>", methods=["PATCH"])
def update_huvudkategori(category_id):
    data = read_payload("name", required=["name"])
    return jsonify(to_json(_categories().rename_huvudkategori(category_id, data["name"])))


@categories_api.route("/huvudkategorier/<int:category_id>", methods=["DELETE"])
def delete_huvudkategori(category_id):
    _categories().delete_huvudkategori(category_id)
    return "", 204


@categories_api.route("/underkategorier", methods=["GET"])
def list_underkategorier():
    service = _categories()
    return jsonify(to_json_list(service.list_underkategorier(int_arg("huvudkategoriId"))))


@categories_api.route("/underkategorier", methods=["POST"])
def create_underkategori():
    data = read_payload("name", "huvudkategori_id", required=["name", "huvudkategori_id"])
    service = _categories()
    category_id = service.create_underkategori(data["name"], data["huvudkategori_id"])
    return jsonify(to_json(service.get_underkategori(category_id))), 201


@categories_api.route("/underkategorier/<int:category_id>", methods=["PATCH"])
def update_underkategori(category_id):
    data = read_payload("name", "huvudkategori_id")
    return jsonify(to_json(_categories().update_underkategori(category_id, **data)))


@categories_api.route("/underkategorier/<int:category_id>", methods=["DELETE"])
def delete_underkategori(category_id):
    _categories().delete_underkategori(category_id)
    return "", 204


@categories_api.route("/category-rules", methods=["GET"])
def list_rules():
    return jsonify(to_json_list(_rules().list_rules()))


@categories_api.route("/category-rules", methods=["POST"])
def create_rule():
    data = read_payload(*RULE_FIELDS)
    service = _rules()
    rule_id = service.create_rule(**data)
    return jsonify(to_json(service.get_rule(rule_id))), 201


@categories_api.route("/category-rules/<int:rule_id>", methods=["GET"])
def get_rule(rule_id):
    rule = _rules().get_rule(rule_id)
    if rule is None:
        raise NotFoundError(not_found("Category rule", rule_id))
    return jsonify(to_json(rule))


@categories_api.route("/category-rules/<int:rule_id>", methods=["PATCH"])
def update_rule(rule_id):
    data = read_payload(*RULE_FIELDS)
    return jsonify(to_json(_rules().update_rule(rule_id, **data)))


@categories_api.route("/category-rules/<int:rule_id>", methods=["DELETE"])
def delete_rule(rule_id):
    _rules().delete_rule(rule_id)
    return "", 204
