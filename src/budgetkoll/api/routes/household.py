"""Family member and income source endpoints."""

from flask import Blueprint, jsonify

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import int_arg, read_payload, to_json, to_json_list
from budgetkoll.domain.household import HouseholdService

household_api = Blueprint("household_api", __name__)


def _household() -> HouseholdService:
    return HouseholdService(get_db(), get_user_id())


@household_api.route("/family-members", methods=["GET"])
def list_family_members():
    return jsonify(to_json_list(_household().list_family_members()))


@household_api.route("/family-members", methods=["POST"])
def create_family_member():
    data = read_payload("name", "role", "contributes_to_budget", required=["name"])
    service = _household()
    contributes = data.get("contributes_to_budget")
    member_id = service.create_family_member(
        data["name"], role=data.get("role"), contributes_to_budget=True if contributes is None else contributes
    )
    return jsonify(to_json(service.get_family_member(member_id))), 201


@household_api.route("/family-members/<int:member_id>", methods=["PATCH"])
def update_family_member(member_id):
    data = read_payload("name", "role", "contributes_to_budget")
    return jsonify(to_json(_household().update_family_member(member_id, **data)))


@household_api.route("/family-members/<int:member_id>", methods=["DELETE"])
def delete_family_member(member_id):
    _household().delete_family_member(member_id)
    return "", 204


@household_api.route("/inkomstkallor", methods=["GET"])
def list_inkomstkallor():
    return jsonify(to_json_list(_household().list_inkomstkallor()))


@household_api.route("/inkomstkallor", methods=["POST"])
def create_inkomstkall():
    data = read_payload("text", "is_default", required=["text"])
    service = _household()
    source_id = service.create_inkomstkall(data["text"], is_default=bool(data.get("is_default")))
    return jsonify(to_json(service.get_inkomstkall(source_id))), 201


@household_api.route("/inkomstkallor/<int:source_id>", methods=["PATCH"])
def update_inkomstkall(source_id):
    data = read_payload("text", "is_default")
    return jsonify(to_json(_household().update_inkomstkall(source_id, **data)))


@household_api.route("/inkomstkallor/<int:source_id>", methods=["DELETE"])
def delete_inkomstkall(source_id):
    _household().delete_inkomstkall(source_id)
    return "", 204


@household_api.route("/inkomstkallor-medlem", methods=["GET"])
def list_links():
    return jsonify(to_json_list(_household().list_links(int_arg("familyMemberId"))))


@household_api.route("/inkomstkallor-medlem", methods=["POST"])
def create_link():
    data = read_payload(
        "family_member_id", "inkomstkall_id", "is_enabled", required=["family_member_id", "inkomstkall_id"]
    )
    service = _household()
    enabled = data.get("is_enabled")
    link_id = service.create_link(
        data["family_member_id"], data["inkomstkall_id"], is_enabled=True if enabled is None else enabled
    )
    return jsonify(to_json(service.get_link(link_id))), 201


@household_api.route("/inkomstkallor-medlem/<int:link_id>", methods=["PATCH"])
def update_link(link_id):
    data = read_payload("is_enabled", required=["is_enabled"])
    return jsonify(to_json(_household().update_link(link_id, data["is_enabled"])))


@household_api.route("/inkomstkallor-medlem/<int:link_id>", methods=["DELETE"])
def delete_link(link_id):
    _household().delete_link(link_id)
    return "", 204
