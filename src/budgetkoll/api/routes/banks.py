"""Bank and bank CSV mapping endpoints."""

from flask import Blueprint, jsonify

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import int_arg, read_payload, to_json, to_json_list
from budgetkoll.domain.bank import COLUMN_FIELDS, BankCsvMappingService, BankService
from budgetkoll.domain.errors import NotFoundError, not_found

banks_api = Blueprint("banks_api", __name__)

MAPPING_FIELDS = ("bank_id", "name", "is_active", *COLUMN_FIELDS.values())


def _mappings() -> BankCsvMappingService:
    return BankCsvMappingService(get_db(), get_user_id())


@banks_api.route("/banks", methods=["GET"])
def list_banks():
    return jsonify(to_json_list(BankService(get_db(), get_user_id()).list_banks()))


@banks_api.route("/banks", methods=["POST"])
def create_bank():
    data = read_payload("name", required=["name"])
    service = BankService(get_db(), get_user_id())
    bank_id = service.create_bank(data["name"])
    return jsonify(to_json(service.get_bank(bank_id))), 201


@banks_api.route("/banks/<int:bank_id>", methods=["DELETE"])
def delete_bank(bank_id):
    BankService(get_db(), get_user_id()).delete_bank(bank_id)
    return "", 204


@banks_api.route("/bank-csv-mappings", methods=["GET"])
def list_mappings():
    return jsonify(to_json_list(_mappings().list_mappings(bank_id=int_arg("bankId"))))


@banks_api.route("/bank-csv-mappings/bank/<int:bank_id>", methods=["GET"])
def list_bank_mappings(bank_id):
    return jsonify(to_json_list(_mappings().list_mappings(bank_id=bank_id)))


@banks_api.route("/bank-csv-mappings", methods=["POST"])
def create_mapping():
    data = read_payload(*MAPPING_FIELDS, required=["bank_id", "name"])
    service = _mappings()
    bank_id = data.pop("bank_id")
    name = data.pop("name")
    is_active = data.pop("is_active", True)
    mapping_id = service.create_mapping(
        bank_id, name, is_active=True if is_active is None else bool(is_active), **data
    )
    return jsonify(to_json(service.get_mapping(mapping_id))), 201


@banks_api.route("/bank-csv-mappings/<int:mapping_id>", methods=["GET"])
def get_mapping(mapping_id):
    mapping = _mappings().get_mapping(mapping_id)
    if mapping is None:
        raise NotFoundError(not_found("CSV mapping", mapping_id))
    return jsonify(to_json(mapping))


@banks_api.route("/bank-csv-mappings/<int:mapping_id>", methods=["PATCH"])
def update_mapping(mapping_id):
    data = read_payload(*MAPPING_FIELDS)
    data.pop("bank_id", None)
    return jsonify(to_json(_mappings().update_mapping(mapping_id, **data)))


@banks_api.route("/bank-csv-mappings/<int:mapping_id>", methods=["DELETE"])
def delete_mapping(mapping_id):
    _mappings().delete_mapping(mapping_id)
    return "", 204
