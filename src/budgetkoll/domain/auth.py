"""Authentication providers.

One ``AuthProvider`` interface with a variant chosen by configuration:

* ``SessionAuthProvider`` keeps the signed-in user in the server session,
  set by an explicit login call.
* ``HeaderAuthProvider`` trusts identity headers added by an authenticating
  reverse proxy in front of the service.

Providers only identify users; the user row itself is kept up to date by
``AuthService``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping, Optional

from budgetkoll.config import AppConfig
from budgetkoll.database.base import Database
from budgetkoll.domain.entities import User
from budgetkoll.domain.errors import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

SESSION_KEY = "budgetkoll_user"


@dataclass(frozen=True)
class Identity:
    """Who the identity provider says the caller is."""

    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AuthProvider(ABC):
    """Identifies the caller of a request."""

    name = "abstract"

    @abstractmethod
    def identify(self, headers: Mapping[str, str], session: MutableMapping[str, Any]) -> Optional[Identity]:
        """Return the caller's identity, or None when unauthenticated."""
        pass

    def login(self, session: MutableMapping[str, Any], payload: Mapping[str, Any]) -> Identity:
        """Start a session for the identity in ``payload``."""
        raise AuthenticationError(f"Login is handled by the identity provider ({self.name})")

    def logout(self, session: MutableMapping[str, Any]) -> None:
        """End the caller's session."""
        pass


class SessionAuthProvider(AuthProvider):
    """Signed-in user stored in the (signed cookie) server session."""

    name = "session"

    def identify(self, headers, session):
        data = session.get(SESSION_KEY)
        if not data or not data.get("user_id"):
            return None
        return Identity(
            user_id=data["user_id"],
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )

    def login(self, session, payload):
        user_id = (payload.get("userId") or payload.get("email") or "").strip()
        if not user_id:
            raise ValidationError("userId or email is required to log in")
        identity = Identity(
            user_id=user_id,
            email=payload.get("email"),
            first_name=payload.get("firstName"),
            last_name=payload.get("lastName"),
        )
        session[SESSION_KEY] = {
            "user_id": identity.user_id,
            "email": identity.email,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
        }
        logger.info("User %s logged in", identity.user_id)
        return identity

    def logout(self, session):
        data = session.pop(SESSION_KEY, None)
        if data:
            logger.info("User %s logged out", data.get("user_id"))


class HeaderAuthProvider(AuthProvider):
    """Identity taken from headers set by an authenticating proxy."""

    name = "header"

    def __init__(
        self,
        user_id_header: str = "X-Auth-User-Id",
        email_header: str = "X-Auth-Email",
        first_name_header: str = "X-Auth-First-Name",
        last_name_header: str = "X-Auth-Last-Name",
    ):
        self.user_id_header = user_id_header
        self.email_header = email_header
        self.first_name_header = first_name_header
        self.last_name_header = last_name_header

    def identify(self, headers, session):
        user_id = (headers.get(self.user_id_header) or "").strip()
        if not user_id:
            return None
        return Identity(
            user_id=user_id,
            email=headers.get(self.email_header) or None,
            first_name=headers.get(self.first_name_header) or None,
            last_name=headers.get(self.last_name_header) or None,
        )


def create_auth_provider(config: AppConfig) -> AuthProvider:
    """Instantiate the provider named by ``config.auth_provider``."""
    if config.auth_provider == "header":
        return HeaderAuthProvider(
            user_id_header=config.user_id_header,
            email_header=config.user_email_header,
            first_name_header=config.user_first_name_header,
            last_name_header=config.user_last_name_header,
        )
    return SessionAuthProvider()


class AuthService:
    """Resolves the caller to a stored ``User``."""

    def __init__(self, db: Database, provider: AuthProvider):
        self.db = db
        self.provider = provider

    def current_user(
        self, headers: Mapping[str, str], session: MutableMapping[str, Any]
    ) -> Optional[User]:
        """Return the caller's user row, creating it on first sight."""
        identity = self.provider.identify(headers, session)
        if identity is None:
            return None
        return self.sync_user(identity)

    def sync_user(self, identity: Identity) -> User:
        """Create the user or refresh changed profile fields."""
        user = self.db.get_user(identity.user_id)
        if user is not None and (
            (identity.email or user.email) == user.email
            and (identity.first_name or user.first_name) == user.first_name
            and (identity.last_name or user.last_name) == user.last_name
        ):
            return user
        return self.db.upsert_user(
            identity.user_id,
            email=identity.email,
            first_name=identity.first_name,
            last_name=identity.last_name,
        )

    def login(self, session: MutableMapping[str, Any], payload: Mapping[str, Any]) -> User:
        return self.sync_user(self.provider.login(session, payload))

    def logout(self, session: MutableMapping[str, Any]) -> None:
        self.provider.logout(session)
