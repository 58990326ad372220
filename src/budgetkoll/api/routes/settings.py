"""User setting endpoints."""

from flask import Blueprint, jsonify

from budgetkoll.api.context import get_db, get_user_id
from budgetkoll.api.serializers import read_payload, to_json, to_json_list
from budgetkoll.domain.errors import NotFoundError, not_found
from budgetkoll.domain.user_settings import UserSettingsService

settings_api = Blueprint("settings_api", __name__)


def _settings() -> UserSettingsService:
    return UserSettingsService(get_db(), get_user_id())


@settings_api.route("/user-settings", methods=["GET"])
def list_settings():
    return jsonify(to_json_list(_settings().list_settings()))


@settings_api.route("/user-settings/<setting_key>", methods=["GET"])
def get_setting(setting_key):
    setting = _settings().get_setting(setting_key)
    if setting is None:
        raise NotFoundError(not_found("User setting", setting_key))
    return jsonify(to_json(setting))


@settings_api.route("/user-settings/<setting_key>", methods=["PUT"])
def put_setting(setting_key):
    data = read_payload("setting_value", required=["setting_value"])
    return jsonify(to_json(_settings().set_setting(setting_key, data["setting_value"])))


@settings_api.route("/user-settings/<setting_key>", methods=["DELETE"])
def delete_setting(setting_key):
    _settings().delete_setting(setting_key)
    return "", 204
