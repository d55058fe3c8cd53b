"""Status Engine - Four-state medal classification.

States, evaluated fresh on every call and never stored:
- unlocked: the profile has an unlock record (overrides everything else)
- locked: placeholder medal, or a medal-type prerequisite is not unlocked
- available: reachable, but the requirements are not met in any year
- eligible: met in at least one year and not yet unlocked

ARCHITECTURE: Stateless, pure Python. Details (items / missing_items) are
computed once per evaluation and shared by summary and detail views.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from .. import const
from .eligibility_engine import EligibilityEngine

if TYPE_CHECKING:
    from ..type_defs import (
        EvaluationContext,
        MedalData,
        MedalDetails,
        MedalEvaluation,
        PrerequisiteCheck,
        StatusBuckets,
    )


class StatusEngine:
    """Pure logic for medal status classification."""

    @staticmethod
    def evaluate(context: EvaluationContext, medal: MedalData) -> MedalEvaluation:
        """Classify one medal for one profile snapshot.

        Args:
            context: Profile snapshot
            medal: Catalog entry

        Returns:
            MedalEvaluation with status, details and status-specific fields
        """
        medal_id = medal.get(const.DATA_MEDAL_ID, "")
        current_year = context["current_year"]

        unlocked_date = context["unlocked_dates"].get(medal_id)
        if unlocked_date is not None:
            year = context["unlocked_years"].get(medal_id, current_year)
            check = EligibilityEngine.check_prerequisites(context, medal, year)
            return {
                "medal_id": medal_id,
                "status": const.STATUS_UNLOCKED,
                "details": StatusEngine._details(check),
                "unlocked_date": unlocked_date,
            }

        if medal.get(const.DATA_MEDAL_STATUS) == const.MEDAL_STATUS_PLACEHOLDER:
            return {
                "medal_id": medal_id,
                "status": const.STATUS_LOCKED,
                "details": {"items": [], "missing_items": []},
                "reason": const.REASON_PLACEHOLDER,
            }

        missing_medals = EligibilityEngine.get_unmet_medal_prerequisites(context, medal)
        if missing_medals:
            check = EligibilityEngine.check_prerequisites(context, medal, current_year)
            details = StatusEngine._details(check)
            details["missing_medals"] = missing_medals
            return {
                "medal_id": medal_id,
                "status": const.STATUS_LOCKED,
                "details": details,
                "reason": const.REASON_PREREQUISITES_NOT_MET,
            }

        eligible_years = EligibilityEngine.get_eligible_years(context, medal)
        if not eligible_years:
            check = EligibilityEngine.check_prerequisites(context, medal, current_year)
            return {
                "medal_id": medal_id,
                "status": const.STATUS_AVAILABLE,
                "details": StatusEngine._details(check),
                "reason": const.REASON_REQUIREMENTS_NOT_MET,
                "eligible_year": None,
            }

        check = EligibilityEngine.check_prerequisites(context, medal, eligible_years[0])
        return {
            "medal_id": medal_id,
            "status": const.STATUS_ELIGIBLE,
            "details": StatusEngine._details(check),
            "eligible_year": eligible_years[0],
        }

    @staticmethod
    def evaluate_all(
        context: EvaluationContext, medals: list[MedalData]
    ) -> StatusBuckets:
        """Evaluate every medal and bucket the results by status."""
        buckets: dict[str, list[MedalEvaluation]] = {
            status: [] for status in const.STATUS_ORDER
        }
        for medal in medals:
            evaluation = StatusEngine.evaluate(context, medal)
            buckets[evaluation["status"]].append(evaluation)
        return cast("StatusBuckets", buckets)

    @staticmethod
    def _details(check: PrerequisiteCheck) -> MedalDetails:
        return {"items": check["items"], "missing_items": check["missing_items"]}
