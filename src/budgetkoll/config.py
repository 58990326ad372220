"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

AUTH_PROVIDERS = ("session", "header")

TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in TRUE_VALUES


@dataclass
class AppConfig:
    """Settings shared by the REST server and the CLI.

    Attributes:
        database_url: SQLAlchemy URL; takes precedence over ``db_path``
        db_path: SQLite file used when no URL is set
        auth_provider: ``"session"`` or ``"header"``
        secret_key: Flask session signing key
        allow_database_configuration: Whether ``configure-database`` may switch databases
        log_level: Logging level name
        user: User the CLI acts as
    """

    database_url: Optional[str] = None
    db_path: Optional[str] = None
    auth_provider: str = "session"
    secret_key: str = "budgetkoll-dev"
    allow_database_configuration: bool = False
    log_level: str = "WARNING"
    user: str = "local"
    user_id_header: str = "X-Auth-User-Id"
    user_email_header: str = "X-Auth-Email"
    user_first_name_header: str = "X-Auth-First-Name"
    user_last_name_header: str = "X-Auth-Last-Name"

    def __post_init__(self) -> None:
        if self.auth_provider not in AUTH_PROVIDERS:
            raise ValueError(
                f"Unknown auth provider '{self.auth_provider}', expected one of {', '.join(AUTH_PROVIDERS)}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build a config from ``BUDGETKOLL_*`` environment variables."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            database_url=env.get("BUDGETKOLL_DATABASE_URL") or None,
            db_path=env.get("BUDGETKOLL_DB_PATH") or None,
            auth_provider=env.get("BUDGETKOLL_AUTH_PROVIDER", defaults.auth_provider).strip().lower(),
            secret_key=env.get("BUDGETKOLL_SECRET_KEY", defaults.secret_key),
            allow_database_configuration=_flag(env.get("BUDGETKOLL_ALLOW_DATABASE_CONFIGURATION")),
            log_level=env.get("BUDGETKOLL_LOG_LEVEL", defaults.log_level).upper(),
            user=env.get("BUDGETKOLL_USER", defaults.user),
        )
