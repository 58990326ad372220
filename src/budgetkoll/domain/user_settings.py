"""User settings domain service."""

import logging
from typing import Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import UserSetting
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found

logger = logging.getLogger(__name__)


class UserSettingsService:
    """Key/value settings, one value per key and user."""

    def __init__(self, db: Database, user_id: str):
        self.db = db
        self.user_id = user_id

    @staticmethod
    def _check_key(setting_key: str) -> str:
        setting_key = (setting_key or "").strip()
        if not setting_key:
            raise ValidationError("Setting key must not be empty")
        return setting_key

    def list_settings(self) -> list[UserSetting]:
        return self.db.list_user_settings(self.user_id)

    def get_setting(self, setting_key: str) -> Optional[UserSetting]:
        return self.db.get_user_setting(self.user_id, self._check_key(setting_key))

    def get_value(self, setting_key: str, default: Optional[str] = None) -> Optional[str]:
        setting = self.get_setting(setting_key)
        return setting.setting_value if setting is not None else default

    def set_setting(self, setting_key: str, setting_value: object) -> UserSetting:
        """Create or replace a setting. Non-string values are stored as text.

        Booleans are stored as ``"true"``/``"false"``.
        """
        setting_key = self._check_key(setting_key)
        if setting_value is None:
            raise ValidationError("Setting value must not be null")
        if isinstance(setting_value, bool):
            setting_value = "true" if setting_value else "false"
        setting = self.db.set_user_setting(self.user_id, setting_key, str(setting_value))
        logger.info("Saved setting %s", setting_key)
        return setting

    def delete_setting(self, setting_key: str) -> None:
        setting_key = self._check_key(setting_key)
        if self.db.get_user_setting(self.user_id, setting_key) is None:
            raise NotFoundError(not_found("User setting", setting_key))
        self.db.delete_user_setting(self.user_id, setting_key)
        logger.info("Deleted setting %s", setting_key)
