"""
Preference Store.

Per-user learning configuration, created lazily with defaults on first
access. First-access races are settled by the unique user_id index plus an
insert that ignores conflicts, never by check-then-insert.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .constants import (
    DEFAULT_LEARNING_INTENSITY,
    DEFAULT_MIN_OVERALL_RATING,
    DEFAULT_MIN_PLATFORM_RATING,
)
from .database import commit_or_raise
from .db_models import DBUserContentPreferences
from .exceptions import ConfigurationError, ValidationError
from .models import PreferencesUpdate

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PreferenceStore:
    """Reads and patches UserContentPreferences rows."""

    def __init__(self, db: Session):
        self.db = db

    def _insert_defaults(self, user_id: int) -> None:
        dialect = self.db.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise ConfigurationError("DATABASE_URL", f"preference upsert is not supported on {dialect}")

        now = datetime.utcnow()
        stmt = insert(DBUserContentPreferences).values(
            user_id=user_id,
            use_smart_learning=True,
            learning_intensity=DEFAULT_LEARNING_INTENSITY,
            min_overall_rating=DEFAULT_MIN_OVERALL_RATING,
            min_platform_rating=DEFAULT_MIN_PLATFORM_RATING,
            personalized_weights=None,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["user_id"])

        self.db.execute(stmt)
        commit_or_raise(self.db, "get_or_create_preferences")

    def get(self, user_id: int):
        return self.db.query(DBUserContentPreferences).filter(
            DBUserContentPreferences.user_id == user_id
        ).first()

    def get_or_create(self, user_id: int) -> DBUserContentPreferences:
        """
        Preferences for user_id, inserting the defaults on first access.

        Safe under concurrent first calls: exactly one row survives.
        """
        prefs = self.get(user_id)
        if prefs is not None:
            return prefs

        self._insert_defaults(user_id)
        logger.info(f"Initialized default learning preferences for user {user_id}")
        return self.get(user_id)

    def update(
        self,
        user_id: int,
        patch: Union[Dict[str, Any], PreferencesUpdate]
    ) -> DBUserContentPreferences:
        """
        Apply a partial patch and stamp updated_at.

        Args:
            user_id: Owner of the preferences
            patch: Field -> value, snake_case or camelCase keys

        Raises:
            ValidationError: Unknown field, bad intensity or threshold outside 1-100
        """
        if not isinstance(patch, PreferencesUpdate):
            try:
                patch = PreferencesUpdate.model_validate(patch)
            except PydanticValidationError as e:
                first = e.errors()[0]
                field_name = ".".join(str(p) for p in first["loc"]) or "preferences"
                raise ValidationError(field_name, first["msg"]) from e

        # Only personalized_weights may be cleared; None elsewhere means "unchanged".
        changes = {
            name: value
            for name, value in patch.model_dump(exclude_unset=True, mode="json").items()
            if value is not None or name == "personalized_weights"
        }
        prefs = self.get_or_create(user_id)

        for name, value in changes.items():
            setattr(prefs, name, value)
        prefs.updated_at = datetime.utcnow()

        commit_or_raise(self.db, "update_preferences")
        self.db.refresh(prefs)

        logger.info(f"Updated learning preferences for user {user_id}: {sorted(changes)}")
        return prefs
