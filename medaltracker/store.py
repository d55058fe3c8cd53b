# File: store.py
"""In-memory profile and achievement stores.

Profiles (and the achievement list they carry under ``prerequisites``) are
kept in a plain dict that can be exported with ``data`` and restored with
``from_data()``; the on-disk format belongs to whoever persists that dict.

Every mutation replaces the affected list instead of editing it in place, so
a snapshot handed to the engines never changes underneath them.
"""

from __future__ import annotations

from typing import Any, cast

from . import const
from .data_builders import (
    AchievementValidationError,
    build_achievement,
    build_guest_profile,
    build_profile,
    build_unlock_record,
)
from .type_defs import AchievementData, ProfileData, ProfileFeatures, UnlockRecord
from .utils.dt_utils import dt_now_iso


class ProfileStore:
    """Holds user profiles and the currently selected one.

    ``current_profile`` falls back to a guest profile when nothing is
    selected; the guest keeps its data for the lifetime of the store.
    """

    def __init__(
        self,
        profiles: list[dict[str, Any]] | None = None,
        current_user_id: str | None = None,
    ) -> None:
        """Initialize the store from raw profile dicts."""
        self._profiles: dict[str, ProfileData] = {}
        self._guest: ProfileData = build_guest_profile()
        self._current_user_id: str | None = None

        for raw in profiles or []:
            self.add_profile(raw)
        if current_user_id is not None:
            self.select_profile(current_user_id)

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return the empty storage structure."""
        return {const.DATA_PROFILES: {}, const.DATA_CURRENT_USER_ID: None}

    @classmethod
    def from_data(cls, data: dict[str, Any] | None) -> ProfileStore:
        """Restore a store exported with ``data``."""
        data = data or cls.get_default_structure()
        profiles = data.get(const.DATA_PROFILES) or {}
        return cls(
            list(profiles.values()),
            current_user_id=data.get(const.DATA_CURRENT_USER_ID),
        )

    @property
    def data(self) -> dict[str, Any]:
        """Exportable snapshot of all stored profiles."""
        return {
            const.DATA_PROFILES: {
                user_id: dict(profile) for user_id, profile in self._profiles.items()
            },
            const.DATA_CURRENT_USER_ID: self._current_user_id,
        }

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def add_profile(self, user_input: dict[str, Any]) -> ProfileData:
        """Create (or replace) a profile and return it."""
        profile = build_profile(user_input)
        self._profiles[profile[const.DATA_PROFILE_USER_ID]] = profile
        const.LOGGER.debug(
            "Stored profile %s", profile[const.DATA_PROFILE_USER_ID]
        )
        return profile

    def select_profile(self, user_id: str | None) -> None:
        """Select the current profile; None selects the guest.

        Raises:
            KeyError: if ``user_id`` is not a stored profile
        """
        if user_id is not None and user_id not in self._profiles:
            raise KeyError(user_id)
        self._current_user_id = user_id

    def get_profile(self, user_id: str) -> ProfileData | None:
        """Stored profile by id, or None."""
        return self._profiles.get(user_id)

    @property
    def current_profile(self) -> ProfileData:
        """Selected profile, or the guest profile."""
        if self._current_user_id is None:
            return self._guest
        return self._profiles[self._current_user_id]

    @property
    def features(self) -> ProfileFeatures:
        """Feature flags of the current profile."""
        return self.current_profile[const.DATA_PROFILE_FEATURES]

    def set_feature(self, feature: str, enabled: bool) -> None:
        """Toggle one feature flag on the current profile.

        Raises:
            KeyError: for an unknown feature name
        """
        if feature not in const.DEFAULT_PROFILE_FEATURES:
            raise KeyError(feature)
        features = dict(self.features)
        features[feature] = bool(enabled)
        self._replace_current(
            {const.DATA_PROFILE_FEATURES: cast("ProfileFeatures", features)}
        )

    # -------------------------------------------------------------------------
    # Unlock records
    # -------------------------------------------------------------------------

    def unlock_medal(
        self,
        medal_id: str,
        unlocked_date: str,
        achievement_ids: list[str] | None = None,
    ) -> bool:
        """Record an unlock; returns False when the medal is already unlocked."""
        records = self.current_profile[const.DATA_PROFILE_UNLOCKED_MEDALS]
        if any(r.get(const.DATA_UNLOCK_MEDAL_ID) == medal_id for r in records):
            return False
        record = build_unlock_record(medal_id, unlocked_date, achievement_ids)
        self._replace_current({const.DATA_PROFILE_UNLOCKED_MEDALS: [*records, record]})
        const.LOGGER.debug("Unlocked medal %s on %s", medal_id, unlocked_date)
        return True

    def lock_medal(self, medal_id: str) -> bool:
        """Remove an unlock record; returns False when there was none."""
        records = self.current_profile[const.DATA_PROFILE_UNLOCKED_MEDALS]
        remaining = [r for r in records if r.get(const.DATA_UNLOCK_MEDAL_ID) != medal_id]
        if len(remaining) == len(records):
            return False
        self._replace_current({const.DATA_PROFILE_UNLOCKED_MEDALS: remaining})
        const.LOGGER.debug("Locked medal %s", medal_id)
        return True

    def get_unlock_record(self, medal_id: str) -> UnlockRecord | None:
        """Unlock record of the current profile for ``medal_id``."""
        for record in self.current_profile[const.DATA_PROFILE_UNLOCKED_MEDALS]:
            if record.get(const.DATA_UNLOCK_MEDAL_ID) == medal_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Achievement list
    # -------------------------------------------------------------------------

    def replace_achievements(self, achievements: list[AchievementData]) -> None:
        """Swap the current profile's achievement list in one step."""
        self._replace_current({const.DATA_PROFILE_PREREQUISITES: list(achievements)})

    def _replace_current(self, changes: dict[str, Any]) -> None:
        """Replace the current profile with an updated copy."""
        updated = cast(
            "ProfileData",
            {
                **self.current_profile,
                **changes,
                const.DATA_PROFILE_LAST_MODIFIED: dt_now_iso(),
            },
        )
        if self._current_user_id is None:
            self._guest = updated
        else:
            self._profiles[self._current_user_id] = updated


class AchievementStore:
    """Achievement list of the current profile.

    ``add`` and ``update`` are the validation boundary: entries that break
    the business rules raise AchievementValidationError and never reach the
    engines.
    """

    def __init__(self, profile_store: ProfileStore) -> None:
        """Bind to the profile store holding the achievement lists."""
        self._profile_store = profile_store

    def list(self) -> list[AchievementData]:
        """Current achievements (a new list; entries are shared)."""
        return list(
            self._profile_store.current_profile[const.DATA_PROFILE_PREREQUISITES]
        )

    def get(self, achievement_id: str) -> AchievementData | None:
        """Achievement by id, or None."""
        for achievement in self.list():
            if achievement.get(const.DATA_ACHIEVEMENT_ID) == achievement_id:
                return achievement
        return None

    def add(self, user_input: dict[str, Any]) -> AchievementData:
        """Validate and append a new achievement.

        Raises:
            AchievementValidationError: on invalid data or a duplicate id
        """
        achievements = self.list()
        achievement_id = user_input.get(const.DATA_ACHIEVEMENT_ID)
        if achievement_id and self.get(achievement_id) is not None:
            raise AchievementValidationError(
                const.DATA_ACHIEVEMENT_ID, f"Duplicate achievement id {achievement_id}"
            )
        achievement = build_achievement(user_input, validate=True)
        self._profile_store.replace_achievements([*achievements, achievement])
        const.LOGGER.debug(
            "Added %s achievement %s",
            achievement[const.DATA_ACHIEVEMENT_TYPE],
            achievement[const.DATA_ACHIEVEMENT_ID],
        )
        return achievement

    def update(self, user_input: dict[str, Any]) -> AchievementData:
        """Validate and replace an existing achievement (matched by id).

        Raises:
            AchievementValidationError: on invalid data or an unknown id
        """
        achievement_id = user_input.get(const.DATA_ACHIEVEMENT_ID)
        existing = self.get(achievement_id) if achievement_id else None
        if existing is None:
            raise AchievementValidationError(
                const.DATA_ACHIEVEMENT_ID, f"Unknown achievement id {achievement_id}"
            )
        updated = build_achievement(user_input, existing, validate=True)
        self._profile_store.replace_achievements(
            [
                updated if a.get(const.DATA_ACHIEVEMENT_ID) == achievement_id else a
                for a in self.list()
            ]
        )
        const.LOGGER.debug("Updated achievement %s", achievement_id)
        return updated

    def remove(self, achievement_id: str) -> bool:
        """Remove an achievement; returns False when the id is unknown."""
        achievements = self.list()
        remaining = [
            a for a in achievements if a.get(const.DATA_ACHIEVEMENT_ID) != achievement_id
        ]
        if len(remaining) == len(achievements):
            return False
        self._profile_store.replace_achievements(remaining)
        const.LOGGER.debug("Removed achievement %s", achievement_id)
        return True
