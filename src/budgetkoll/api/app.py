"""Flask application factory."""

import logging
from typing import Optional

from flask import Flask, g, jsonify, request, session

from budgetkoll.api.context import EXTENSION_KEY, AppState, get_state
from budgetkoll.api.errors import register_error_handlers
from budgetkoll.api.routes.accounts import accounts_api
from budgetkoll.api.routes.auth import PUBLIC_ENDPOINTS, auth_api
from budgetkoll.api.routes.banks import banks_api
from budgetkoll.api.routes.budget import budget_api
from budgetkoll.api.routes.categories import categories_api
from budgetkoll.api.routes.household import household_api
from budgetkoll.api.routes.settings import settings_api
from budgetkoll.api.routes.transactions import transactions_api
from budgetkoll.config import AppConfig
from budgetkoll.database.base import Database
from budgetkoll.database.factories import create_database
from budgetkoll.domain.auth import AuthService, create_auth_provider

logger = logging.getLogger(__name__)

BLUEPRINTS = (
    auth_api,
    accounts_api,
    banks_api,
    categories_api,
    transactions_api,
    budget_api,
    household_api,
    settings_api,
)


def create_app(config: Optional[AppConfig] = None, db: Optional[Database] = None) -> Flask:
    """Create the REST application.

    Args:
        config: Settings; read from the environment when omitted
        db: Database to serve; built from ``config`` when omitted

    Returns:
        Configured Flask app with every blueprint mounted under ``/api``
    """
    config = config or AppConfig.from_env()
    if db is None:
        db = create_database(database_url=config.database_url, database_path=config.db_path)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.json.sort_keys = False
    app.extensions[EXTENSION_KEY] = AppState(
        config=config,
        db=db,
        auth=AuthService(db, create_auth_provider(config)),
    )

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix="/api")
    register_error_handlers(app)

    @app.before_request
    def load_user():
        g.user = None
        if not request.path.startswith("/api/"):
            return None
        g.user = get_state().auth.current_user(request.headers, session)
        if g.user is None and request.endpoint not in PUBLIC_ENDPOINTS:
            return jsonify({"error": "Not authenticated"}), 401
        return None

    @app.teardown_appcontext
    def release_session(exc):
        get_state().db.disconnect()

    logger.debug("Created app with %s auth", config.auth_provider)
    return app
