"""Base manager class for medal tracker managers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_current_year, dt_year_of

if TYPE_CHECKING:
    from ..catalog import MedalCatalog
    from ..store import AchievementStore, ProfileStore
    from ..type_defs import EvaluationContext, MedalData


class MedalNotFoundError(KeyError):
    """Raised when a medal id is not in the catalog."""

    def __init__(self, medal_id: str) -> None:
        """Keep the requested id."""
        self.medal_id = medal_id
        super().__init__(medal_id)

    def __str__(self) -> str:
        return f"Medal not found: {self.medal_id}"


class BaseManager:
    """Base class for managers that read collaborators and call engines.

    Provides:
    - Access to the catalog, profile store and achievement store
    - One consistent EvaluationContext snapshot per public operation
    - Medal lookup raising MedalNotFoundError
    """

    def __init__(
        self,
        catalog: MedalCatalog,
        profile_store: ProfileStore,
        achievement_store: AchievementStore,
    ) -> None:
        """Initialize manager.

        Args:
            catalog: Loaded, immutable medal catalog
            profile_store: Holder of the current profile and unlock records
            achievement_store: Achievement list of the current profile
        """
        self.catalog = catalog
        self.profile_store = profile_store
        self.achievement_store = achievement_store

    def _get_medal(self, medal_id: str) -> MedalData:
        """Catalog lookup that raises for unknown ids."""
        medal = self.catalog.get_medal_by_id(medal_id)
        if medal is None:
            raise MedalNotFoundError(medal_id)
        return medal

    def _build_evaluation_context(self) -> EvaluationContext:
        """Build the evaluation snapshot from the collaborators.

        Everything is copied at call time, so one operation never sees a
        partially applied store mutation.

        Returns:
            EvaluationContext for the current profile
        """
        profile = self.profile_store.current_profile

        unlocked_years: dict[str, int] = {}
        unlocked_dates: dict[str, str] = {}
        for record in profile.get(const.DATA_PROFILE_UNLOCKED_MEDALS) or []:
            medal_id = record.get(const.DATA_UNLOCK_MEDAL_ID)
            if not medal_id:
                continue
            unlocked_dates[medal_id] = record.get(const.DATA_UNLOCK_DATE, "")
            year = record.get(const.DATA_UNLOCK_YEAR)
            if not isinstance(year, int):
                year = dt_year_of(record.get(const.DATA_UNLOCK_DATE))
            if year is not None:
                unlocked_years[medal_id] = year

        return {
            "achievements": self.achievement_store.list(),
            "date_of_birth": profile.get(const.DATA_PROFILE_DATE_OF_BIRTH) or None,
            "sex": profile.get(const.DATA_PROFILE_SEX),
            "features": dict(profile[const.DATA_PROFILE_FEATURES]),  # type: ignore[typeddict-item]
            "unlocked_years": unlocked_years,
            "unlocked_dates": unlocked_dates,
            "medals_by_id": self.catalog.medals_by_id,
            "current_year": dt_current_year(),
        }
