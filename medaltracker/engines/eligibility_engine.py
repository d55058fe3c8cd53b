"""Eligibility Engine - Year scanning and prerequisite checks.

Answers "in which calendar years could this medal be unlocked?" for one
profile snapshot. A year is eligible when:
- every medal-type prerequisite was unlocked in or before that year (and at
  least `year_offset` years earlier)
- every age_requirement prerequisite holds at Dec 31 of that year
- the medal's requirement tree is met for that year

ARCHITECTURE: Stateless, pure Python. All data comes via EvaluationContext;
the requirement tree itself is evaluated by RequirementEngine.

Year ranges are bounded by a human lifetime, so the scanners are plain
O(years) loops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..data_builders import iter_requirement_leaves
from ..utils.dt_utils import dt_age_at_year_end, dt_year_of
from ..utils.math_utils import is_number
from .requirement_engine import RequirementEngine

if TYPE_CHECKING:
    from ..type_defs import (
        DetailItem,
        EvaluationContext,
        LeafResult,
        MedalData,
        MedalPrerequisite,
        PrerequisiteCheck,
    )


class EligibilityEngine:
    """Pure logic for single-year checks and eligible-year scans.

    All methods are static - no instance state.
    """

    # =========================================================================
    # SINGLE-YEAR CHECK
    # =========================================================================

    @staticmethod
    def check_prerequisites(
        context: EvaluationContext, medal: MedalData, year: int
    ) -> PrerequisiteCheck:
        """Evaluate prerequisites and the requirement tree for exactly one year.

        Used by manual unlock validation and by the forward scan.

        Args:
            context: Profile snapshot
            medal: Catalog entry
            year: Candidate calendar year

        Returns:
            PrerequisiteCheck with all_met, per-item details and the tree result
        """
        items: list[DetailItem] = [
            EligibilityEngine._check_prerequisite_entry(context, prereq, year)
            for prereq in medal.get(const.DATA_MEDAL_PREREQUISITES) or []
        ]

        tree = RequirementEngine.evaluate_medal_tree(
            context,
            medal,
            year,
            min_start_year=RequirementEngine.get_earliest_counting_year(context, medal),
        )
        items.extend(
            EligibilityEngine.leaf_to_detail_item(leaf)
            for leaf in RequirementEngine.flatten_leaves(tree)
        )

        missing_items = [item for item in items if not item["is_met"]]
        prereqs_met = all(
            item["is_met"] for item in items if item["kind"] == "prerequisite"
        )
        return {
            "all_met": prereqs_met and tree["is_met"],
            "year": year,
            "items": items,
            "missing_items": missing_items,
            "tree": tree,
        }

    @staticmethod
    def _check_prerequisite_entry(
        context: EvaluationContext, prereq: MedalPrerequisite, year: int
    ) -> DetailItem:
        """Check one prerequisite entry against ``year``."""
        prereq_type = prereq.get(const.DATA_PREREQ_TYPE)
        item: dict[str, Any] = {
            "kind": "prerequisite",
            "type": prereq_type or "unknown",
            "is_met": False,
            "description": prereq.get(const.DATA_PREREQ_DESCRIPTION),
        }

        if prereq_type == const.PREREQ_TYPE_MEDAL:
            medal_id = prereq.get(const.DATA_PREREQ_MEDAL_ID, "")
            item["medal_id"] = medal_id
            unlocked_year = context["unlocked_years"].get(medal_id)
            if unlocked_year is None:
                item["reason"] = const.REASON_NOT_UNLOCKED
            else:
                offset = prereq.get(const.DATA_PREREQ_YEAR_OFFSET)
                gap = int(offset) if is_number(offset) else 0
                item["is_met"] = (
                    unlocked_year <= year and (year - unlocked_year) >= gap
                )

        elif prereq_type == const.PREREQ_TYPE_AGE_REQUIREMENT:
            age = dt_age_at_year_end(context.get("date_of_birth"), year)
            if age is None:
                item["reason"] = const.REASON_PROFILE_INCOMPLETE
            else:
                min_age = prereq.get(const.DATA_PREREQ_MIN_AGE)
                max_age = prereq.get(const.DATA_PREREQ_MAX_AGE)
                min_ok = age >= min_age if is_number(min_age) else True
                max_ok = age <= max_age if is_number(max_age) else True
                item["is_met"] = min_ok and max_ok

        else:
            const.LOGGER.warning("Unknown prerequisite type: %s", prereq_type)
            item["reason"] = const.REASON_UNSUPPORTED_REQUIREMENT_TYPE

        return cast("DetailItem", item)

    @staticmethod
    def leaf_to_detail_item(leaf: LeafResult) -> DetailItem:
        """Convert a leaf result to the shared detail item shape."""
        item: dict[str, Any] = {
            "kind": "requirement",
            "type": leaf.get("type", "unknown"),
            "is_met": bool(leaf.get("is_met")),
            "description": leaf.get("description"),
        }
        if "progress" in leaf:
            item["progress"] = leaf["progress"]
        if leaf.get("reason"):
            item["reason"] = leaf["reason"]
        return cast("DetailItem", item)

    @staticmethod
    def get_unmet_medal_prerequisites(
        context: EvaluationContext, medal: MedalData
    ) -> list[str]:
        """Medal-type prerequisite ids that are not unlocked at all."""
        unlocked = context["unlocked_dates"]
        return [
            prereq.get(const.DATA_PREREQ_MEDAL_ID, "")
            for prereq in medal.get(const.DATA_MEDAL_PREREQUISITES) or []
            if prereq.get(const.DATA_PREREQ_TYPE) == const.PREREQ_TYPE_MEDAL
            and prereq.get(const.DATA_PREREQ_MEDAL_ID) not in unlocked
        ]

    # =========================================================================
    # RULE-DERIVED LOWER BOUNDS
    # =========================================================================

    @staticmethod
    def get_earliest_counting_year_for_medal(
        context: EvaluationContext, medal: MedalData
    ) -> int | None:
        """First year whose achievements may count toward ``medal``.

        One year after the latest unlock among same-type prerequisite medals,
        or None when there is no such bound.
        """
        return RequirementEngine.get_earliest_counting_year(context, medal)

    @staticmethod
    def get_minimal_unlock_year_for_sustained(
        context: EvaluationContext, medal: MedalData
    ) -> int | None:
        """Smallest year a sustained_achievement leaf could first be satisfied.

        Example: last same-type prerequisite unlocked in 2021 and
        years_of_achievement = 3 → 2024.
        """
        sustained = next(
            (
                leaf
                for leaf in iter_requirement_leaves(
                    medal.get(const.DATA_MEDAL_REQUIREMENTS) or {}
                )
                if leaf.get(const.DATA_REQ_TYPE)
                == const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT
            ),
            None,
        )
        if sustained is None:
            return None

        unlocked_years = context["unlocked_years"]
        years = [
            unlocked_years[medal_id]
            for medal_id in RequirementEngine.get_same_type_prereq_medal_ids(
                context, medal
            )
            if medal_id in unlocked_years
        ]
        if not years:
            return None

        default_years = (
            const.DEFAULT_SUSTAINED_PER_YEAR_YEARS
            if sustained.get(const.DATA_REQ_PER_YEAR) is not None
            else const.DEFAULT_SUSTAINED_YEARS
        )
        required = sustained.get(const.DATA_REQ_YEARS_OF_ACHIEVEMENT)
        if not is_number(required):
            required = default_years
        return max(years) + int(required)

    @staticmethod
    def get_scan_start_year(context: EvaluationContext, medal: MedalData) -> int:
        """First year of the eligibility scan.

        The base is the birth year, else the oldest achievement year, else the
        current year; rule-derived bounds may push it later.
        """
        current_year = context["current_year"]
        base = dt_year_of(context.get("date_of_birth"))
        if base is None:
            years = [
                a.get(const.DATA_ACHIEVEMENT_YEAR)
                for a in context["achievements"]
                if isinstance(a.get(const.DATA_ACHIEVEMENT_YEAR), int)
            ]
            base = min(years) if years else current_year

        bounds = [
            bound
            for bound in (
                EligibilityEngine.get_earliest_counting_year_for_medal(context, medal),
                EligibilityEngine.get_minimal_unlock_year_for_sustained(
                    context, medal
                ),
            )
            if bound is not None
        ]
        return max([base, const.YEAR_MIN, *bounds])

    # =========================================================================
    # YEAR SCANS
    # =========================================================================

    @staticmethod
    def get_eligible_years(context: EvaluationContext, medal: MedalData) -> list[int]:
        """Ascending years in [scan start, current year] where all checks pass.

        Already-unlocked and placeholder medals have no eligible years.
        """
        medal_id = medal.get(const.DATA_MEDAL_ID, "")
        if medal_id in context["unlocked_dates"]:
            return []
        if medal.get(const.DATA_MEDAL_STATUS) == const.MEDAL_STATUS_PLACEHOLDER:
            return []

        start = EligibilityEngine.get_scan_start_year(context, medal)
        end = context["current_year"]
        return [
            year
            for year in range(start, end + 1)
            if EligibilityEngine.check_prerequisites(context, medal, year)["all_met"]
        ]

    @staticmethod
    def find_first_unlock_year(
        context: EvaluationContext, medal: MedalData
    ) -> int | None:
        """Forward scan that stops at the first satisfying year."""
        if medal.get(const.DATA_MEDAL_STATUS) == const.MEDAL_STATUS_PLACEHOLDER:
            return None
        start = EligibilityEngine.get_scan_start_year(context, medal)
        for year in range(start, context["current_year"] + 1):
            if EligibilityEngine.check_prerequisites(context, medal, year)["all_met"]:
                return year
        return None
