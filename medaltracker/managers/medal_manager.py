"""Medal Manager - Status, eligibility and receipt queries.

Read-only orchestration for the UI:
- evaluate_medal / evaluate_all_medals: four-state status with details
- get_eligible_years / check_prerequisites: year-level checks
- get_unlocked_date / get_receipt: what was recorded at unlock time

ARCHITECTURE:
- MedalManager = STATEFUL access to catalog and stores
- StatusEngine / EligibilityEngine = pure evaluation (STATELESS)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..engines.eligibility_engine import EligibilityEngine
from ..engines.status_engine import StatusEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import (
        MedalData,
        MedalEvaluation,
        PrerequisiteCheck,
        Receipt,
        StatusBuckets,
    )


class MedalManager(BaseManager):
    """Manager for medal status and eligibility queries."""

    def evaluate_medal(self, medal_id: str) -> MedalEvaluation:
        """Status and details of one medal.

        Raises:
            MedalNotFoundError: for an unknown medal id
        """
        medal = self._get_medal(medal_id)
        evaluation = StatusEngine.evaluate(self._build_evaluation_context(), medal)
        const.LOGGER.debug(
            "Medal %s evaluated as %s (eligible year %s)",
            medal_id,
            evaluation["status"],
            evaluation.get("eligible_year"),
        )
        return evaluation

    def evaluate_all_medals(self) -> StatusBuckets:
        """Every catalog medal bucketed by status, against one snapshot."""
        context = self._build_evaluation_context()
        buckets = StatusEngine.evaluate_all(context, self.catalog.get_all_medals())
        const.LOGGER.debug(
            "Evaluated %s medals: %s",
            len(self.catalog),
            {status: len(buckets[status]) for status in const.STATUS_ORDER},  # type: ignore[literal-required]
        )
        return buckets

    def get_eligible_years(self, medal_id: str) -> list[int]:
        """Ascending eligible years (empty once unlocked).

        Raises:
            MedalNotFoundError: for an unknown medal id
        """
        medal = self._get_medal(medal_id)
        return EligibilityEngine.get_eligible_years(
            self._build_evaluation_context(), medal
        )

    def check_prerequisites(
        self, medal: MedalData | str, year: int
    ) -> PrerequisiteCheck:
        """Single-year prerequisite and requirement check.

        Accepts a medal id or a catalog entry.
        """
        if isinstance(medal, str):
            medal = self._get_medal(medal)
        return EligibilityEngine.check_prerequisites(
            self._build_evaluation_context(), medal, year
        )

    def get_unlocked_date(self, medal_id: str) -> str | None:
        """ISO date of the unlock record, or None when not unlocked."""
        record = self.profile_store.get_unlock_record(medal_id)
        if record is None:
            return None
        return record.get(const.DATA_UNLOCK_DATE) or None

    def get_receipt(self, medal_id: str) -> Receipt | None:
        """Achievements recorded as credited toward an unlock.

        Receipts are historical: ids whose achievement was edited away or
        deleted are reported in ``stale_ids`` instead of being re-checked.
        """
        record = self.profile_store.get_unlock_record(medal_id)
        if record is None:
            return None

        by_id = {
            a.get(const.DATA_ACHIEVEMENT_ID): a for a in self.achievement_store.list()
        }
        achievements = []
        stale_ids = []
        for achievement_id in record.get(const.DATA_UNLOCK_ACHIEVEMENT_IDS) or []:
            achievement = by_id.get(achievement_id)
            if achievement is None:
                stale_ids.append(achievement_id)
            else:
                achievements.append(achievement)

        return {
            "medal_id": medal_id,
            "unlocked_date": record.get(const.DATA_UNLOCK_DATE),
            "achievements": achievements,
            "stale_ids": stale_ids,
        }
