"""Unlock Manager - Recording and removing medal unlocks.

Unlock policy (per profile feature flag ``allow_manual_unlock``):
- Automatic (default): only a year returned by the eligibility scan is
  accepted; without an explicit year the earliest eligible year is used.
- Manual: the caller may pick any year between YEAR_MIN and the current
  year, ignoring the scan's lower bounds. That year must still pass
  check_prerequisites; without a year the forward scan picks the first
  satisfying one.

Removal is guarded: a medal cannot be re-locked while any medal that
transitively depends on it is still unlocked.

Refusals are returned as structured results, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..data_builders import get_medal_full_name
from ..engines.dependency_engine import DependencyEngine
from ..engines.eligibility_engine import EligibilityEngine
from ..engines.requirement_engine import RequirementEngine
from ..utils.dt_utils import dt_today_iso, dt_year_end_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import (
        DependencyIndex,
        RemovalCheck,
        RemovalResult,
        UnlockResult,
    )


class UnlockManager(BaseManager):
    """Manager for unlock and re-lock workflows."""

    def unlock_medal(
        self,
        medal_id: str,
        year: int | None = None,
        unlocked_date: str | None = None,
    ) -> UnlockResult:
        """Unlock a medal for ``year`` under the profile's unlock policy.

        The achievements that satisfied the requirement tree in that year are
        stored with the unlock as its receipt.

        Args:
            medal_id: Catalog medal id
            year: Unlock year; None picks the earliest satisfying year
            unlocked_date: Explicit ISO date to record

        Returns:
            UnlockResult (ok False with a reason when refused)

        Raises:
            MedalNotFoundError: for an unknown medal id
        """
        medal = self._get_medal(medal_id)
        context = self._build_evaluation_context()
        current_year = context["current_year"]
        manual = bool(context["features"].get(const.FEATURE_ALLOW_MANUAL_UNLOCK))

        if medal_id in context["unlocked_dates"]:
            return {"ok": False, "reason": const.REASON_ALREADY_UNLOCKED}
        if medal.get(const.DATA_MEDAL_STATUS) == const.MEDAL_STATUS_PLACEHOLDER:
            return {"ok": False, "reason": const.REASON_PLACEHOLDER}
        if EligibilityEngine.get_unmet_medal_prerequisites(context, medal):
            return {"ok": False, "reason": const.REASON_PREREQUISITES_NOT_MET}

        if manual:
            if year is None:
                year = EligibilityEngine.find_first_unlock_year(context, medal)
            if year is None:
                return {"ok": False, "year": None, "reason": const.REASON_NOT_ELIGIBLE}
            if not const.YEAR_MIN <= year <= current_year:
                return {"ok": False, "year": year, "reason": const.REASON_INVALID_YEAR}
        else:
            eligible_years = EligibilityEngine.get_eligible_years(context, medal)
            if year is None:
                year = eligible_years[0] if eligible_years else None
            if year is None or year not in eligible_years:
                return {"ok": False, "year": year, "reason": const.REASON_NOT_ELIGIBLE}

        check = EligibilityEngine.check_prerequisites(context, medal, year)
        if not check["all_met"]:
            # Manual years skip the scan bounds but not the single-year check
            return {"ok": False, "year": year, "reason": const.REASON_NOT_ELIGIBLE}
        achievement_ids = RequirementEngine.collect_matching_achievement_ids(
            check["tree"]
        )
        if unlocked_date is None:
            unlocked_date = (
                dt_today_iso() if year == current_year else dt_year_end_iso(year)
            )

        self.profile_store.unlock_medal(medal_id, unlocked_date, achievement_ids)
        const.LOGGER.debug(
            "Medal %s (%s) unlocked for %s (%s policy, %s achievements)",
            medal_id,
            get_medal_full_name(medal),
            year,
            "manual" if manual else "automatic",
            len(achievement_ids),
        )
        return {
            "ok": True,
            "year": year,
            "unlocked_date": unlocked_date,
            "achievement_ids": achievement_ids,
            "manual": manual,
        }

    def can_remove(self, medal_id: str) -> RemovalCheck:
        """Whether the unlock of ``medal_id`` can be removed.

        Returns:
            RemovalCheck with the unlocked dependents blocking removal
        """
        return DependencyEngine.can_remove(
            medal_id, self._dependency_index(), self._unlocked_ids()
        )

    def try_remove(self, medal_id: str) -> RemovalResult:
        """Re-lock ``medal_id`` unless unlocked dependents block it."""
        if medal_id not in self._unlocked_ids():
            return {"ok": False, "reason": const.REASON_NOT_UNLOCKED}

        check = self.can_remove(medal_id)
        if not check["can_remove"]:
            const.LOGGER.warning(
                "Refusing to remove medal %s: unlocked dependents %s",
                medal_id,
                check["blocking"],
            )
            return {
                "ok": False,
                "blocking": check["blocking"],
                "reason": const.REASON_BLOCKED_BY_DEPENDENTS,
            }

        self.profile_store.lock_medal(medal_id)
        return {"ok": True}

    def _dependency_index(self) -> DependencyIndex:
        return DependencyEngine.build_dependency_index(self.catalog.get_all_medals())

    def _unlocked_ids(self) -> set[str]:
        return {
            record[const.DATA_UNLOCK_MEDAL_ID]
            for record in self.profile_store.current_profile[
                const.DATA_PROFILE_UNLOCKED_MEDALS
            ]
        }
