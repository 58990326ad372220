"""Per-application state shared by the blueprints."""

from dataclasses import dataclass

from flask import current_app, g

from budgetkoll.config import AppConfig
from budgetkoll.database.base import Database
from budgetkoll.domain.auth import AuthService
from budgetkoll.domain.errors import AuthenticationError

EXTENSION_KEY = "budgetkoll"


@dataclass
class AppState:
    config: AppConfig
    db: Database
    auth: AuthService


def get_state() -> AppState:
    return current_app.extensions[EXTENSION_KEY]


def get_db() -> Database:
    return get_state().db


def get_user_id() -> str:
    """ID of the signed-in user for this request."""
    user = g.get("user")
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user.id
