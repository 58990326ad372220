"""Authentication and database status endpoints."""

import logging

from flask import Blueprint, g, jsonify, session
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from budgetkoll.api.context import get_state
from budgetkoll.api.serializers import read_payload, to_json
from budgetkoll.database.base import Database
from budgetkoll.database.factories import create_database

logger = logging.getLogger(__name__)

auth_api = Blueprint("auth_api", __name__)

# Reachable without a signed-in user
PUBLIC_ENDPOINTS = {
    "auth_api.current_user",
    "auth_api.login",
    "auth_api.logout",
    "auth_api.database_status",
}


def _database_status(db: Database) -> dict:
    state = get_state()
    engine = getattr(db, "engine", None)
    return {
        "connected": db.ping(),
        "backend": engine.dialect.name if engine is not None else None,
        "url": engine.url.render_as_string(hide_password=True) if engine is not None else None,
        "configurable": state.config.allow_database_configuration,
    }


@auth_api.route("/auth/user", methods=["GET"])
def current_user():
    """The signed-in user; 401 means "not signed in", not a failure."""
    user = g.get("user")
    if user is None:
        return jsonify({"error": "Not authenticated"}), 401
    return jsonify(to_json(user))


@auth_api.route("/auth/login", methods=["POST"])
def login():
    data = read_payload("user_id", "email", "first_name", "last_name")
    payload = {
        "userId": data.get("user_id"),
        "email": data.get("email"),
        "firstName": data.get("first_name"),
        "lastName": data.get("last_name"),
    }
    user = get_state().auth.login(session, payload)
    return jsonify(to_json(user))


@auth_api.route("/auth/logout", methods=["POST"])
def logout():
    get_state().auth.logout(session)
    return "", 204


@auth_api.route("/auth/database-status", methods=["GET"])
def database_status():
    return jsonify(_database_status(get_state().db))


@auth_api.route("/auth/configure-database", methods=["POST"])
def configure_database():
    """Point the running server at another database."""
    state = get_state()
    if not state.config.allow_database_configuration:
        return jsonify({"error": "Database configuration is disabled"}), 403

    data = read_payload("database_url", required=["database_url"])
    try:
        new_db = create_database(database_url=data["database_url"])
    except (ArgumentError, SQLAlchemyError) as e:
        return jsonify({"error": f"Invalid database URL: {e}"}), 400
    if not new_db.ping():
        new_db.disconnect()
        return jsonify({"error": "Could not connect to database"}), 400

    old_db = state.db
    state.db = new_db
    state.auth.db = new_db
    old_db.disconnect()
    logger.info("Switched database to %s", new_db.engine.url.render_as_string(hide_password=True))
    return jsonify(_database_status(new_db))
