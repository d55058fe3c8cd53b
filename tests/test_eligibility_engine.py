"""Unit tests for EligibilityEngine - single-year checks and year scans.

Test Categories:
- Prerequisite entries (medal, year_offset, age_requirement, unknown)
- check_prerequisites() aggregation
- Rule-derived lower bounds and scan start
- get_eligible_years() / find_first_unlock_year()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

import pytest

from medaltracker import const
from medaltracker.data_builders import build_medal
from medaltracker.engines.eligibility_engine import EligibilityEngine

if TYPE_CHECKING:
    from medaltracker.type_defs import EvaluationContext, MedalData

# =============================================================================
# TEST FIXTURES - Minimal context builders
# =============================================================================


def make_series(year: int, points: int = 40, **fields: Any) -> dict[str, Any]:
    """Build one precision series achievement."""
    return {
        const.DATA_ACHIEVEMENT_ID: f"series-{year}-{points}",
        const.DATA_ACHIEVEMENT_TYPE: const.ACHIEVEMENT_TYPE_PRECISION_SERIES,
        const.DATA_ACHIEVEMENT_YEAR: year,
        const.DATA_ACHIEVEMENT_WEAPON_GROUP: "A",
        const.DATA_ACHIEVEMENT_POINTS: points,
        **fields,
    }


def make_medal(medal_id: str, min_points: int = 32, **extra: Any) -> MedalData:
    """Pistol mark medal with one precision leaf."""
    extra.setdefault(
        const.DATA_MEDAL_REQUIREMENTS,
        [
            {
                const.DATA_REQ_TYPE: const.ACHIEVEMENT_TYPE_PRECISION_SERIES,
                const.DATA_REQ_POINT_THRESHOLDS: {"A": {"min": min_points}},
            }
        ],
    )
    return build_medal(
        {const.DATA_MEDAL_ID: medal_id, const.DATA_MEDAL_TYPE: "pistol_mark", **extra}
    )


def make_context(
    *,
    achievements: list[dict[str, Any]] | None = None,
    date_of_birth: str | None = "2000-01-01",
    features: dict[str, bool] | None = None,
    unlocked_years: dict[str, int] | None = None,
    medals: list[MedalData] | None = None,
    current_year: int = 2025,
) -> EvaluationContext:
    """Build a minimal EvaluationContext for testing."""
    unlocked = unlocked_years or {}
    return cast(
        "EvaluationContext",
        {
            "achievements": achievements or [],
            "date_of_birth": date_of_birth,
            "sex": const.SEX_MALE,
            "features": {**const.DEFAULT_PROFILE_FEATURES, **(features or {})},
            "unlocked_years": dict(unlocked),
            "unlocked_dates": {k: f"{v}-12-31" for k, v in unlocked.items()},
            "medals_by_id": {m[const.DATA_MEDAL_ID]: m for m in medals or []},
            "current_year": current_year,
        },
    )


BRONZE = make_medal("bronze")
SILVER = make_medal(
    "silver",
    min_points=38,
    prerequisites=[{"type": "medal", "medal_id": "bronze"}],
)


# =============================================================================
# TEST: prerequisite entries
# =============================================================================


class TestPrerequisiteEntries:
    """Tests for individual prerequisite checks."""

    def test_medal_prerequisite_met_from_unlock_year_on(self) -> None:
        """A prerequisite unlocked in 2023 holds for 2023 and every later year."""
        context = make_context(unlocked_years={"bronze": 2023}, medals=[BRONZE, SILVER])

        met = [
            EligibilityEngine.check_prerequisites(context, SILVER, year)["items"][0][
                "is_met"
            ]
            for year in range(2021, 2027)
        ]

        assert met == [False, False, True, True, True, True]

    def test_medal_prerequisite_not_unlocked(self) -> None:
        """Missing unlocks report not_unlocked."""
        context = make_context(medals=[BRONZE, SILVER])
        item = EligibilityEngine.check_prerequisites(context, SILVER, 2025)["items"][0]

        assert item["kind"] == "prerequisite"
        assert item["medal_id"] == "bronze"
        assert item["is_met"] is False
        assert item["reason"] == const.REASON_NOT_UNLOCKED

    def test_year_offset(self) -> None:
        """year_offset requires a gap between the two unlocks."""
        medal = make_medal(
            "gap",
            prerequisites=[{"type": "medal", "medal_id": "bronze", "year_offset": 2}],
        )
        context = make_context(unlocked_years={"bronze": 2023}, medals=[BRONZE, medal])

        assert not EligibilityEngine.check_prerequisites(context, medal, 2024)["items"][
            0
        ]["is_met"]
        assert EligibilityEngine.check_prerequisites(context, medal, 2025)["items"][0][
            "is_met"
        ]

    @pytest.mark.parametrize(
        ("year", "expected"), [(2025, False), (2026, True), (2030, True)]
    )
    def test_age_requirement_at_year_end(self, year: int, expected: bool) -> None:
        """Age is taken on Dec 31 of the candidate year."""
        medal = make_medal(
            "adult", prerequisites=[{"type": "age_requirement", "min_age": 18}]
        )
        context = make_context(date_of_birth="2008-06-01", current_year=2030)
        item = EligibilityEngine.check_prerequisites(context, medal, year)["items"][0]

        assert item["is_met"] is expected

    def test_age_requirement_with_max_age(self) -> None:
        """max_age is inclusive."""
        medal = make_medal(
            "junior", prerequisites=[{"type": "age_requirement", "max_age": 20}]
        )
        context = make_context(date_of_birth="2005-03-03")

        assert EligibilityEngine.check_prerequisites(context, medal, 2025)["items"][0][
            "is_met"
        ]
        assert not EligibilityEngine.check_prerequisites(context, medal, 2026)[
            "items"
        ][0]["is_met"]

    def test_age_requirement_without_birth_date(self) -> None:
        """Unknown birth dates make the profile incomplete."""
        medal = make_medal(
            "adult", prerequisites=[{"type": "age_requirement", "min_age": 18}]
        )
        item = EligibilityEngine.check_prerequisites(
            make_context(date_of_birth=None), medal, 2025
        )["items"][0]

        assert item["is_met"] is False
        assert item["reason"] == const.REASON_PROFILE_INCOMPLETE

    def test_unknown_prerequisite_type(self, caplog: pytest.LogCaptureFixture) -> None:
        """Unknown prerequisite types are unmet and logged."""
        medal = make_medal("odd", prerequisites=[{"type": "club_membership"}])

        with caplog.at_level(logging.WARNING):
            item = EligibilityEngine.check_prerequisites(
                make_context(), medal, 2025
            )["items"][0]

        assert item["is_met"] is False
        assert item["reason"] == const.REASON_UNSUPPORTED_REQUIREMENT_TYPE
        assert "Unknown prerequisite type: club_membership" in caplog.text


# =============================================================================
# TEST: single-year aggregation
# =============================================================================


class TestCheckPrerequisites:
    """Tests for the combined single-year check."""

    def test_all_met(self) -> None:
        """Prerequisites and tree both met."""
        context = make_context(
            achievements=[make_series(2024, 40)],
            unlocked_years={"bronze": 2023},
            medals=[BRONZE, SILVER],
        )
        check = EligibilityEngine.check_prerequisites(context, SILVER, 2024)

        assert check["all_met"] is True
        assert check["year"] == 2024
        assert check["missing_items"] == []
        assert [item["kind"] for item in check["items"]] == [
            "prerequisite",
            "requirement",
        ]
        assert check["tree"]["is_met"] is True

    def test_missing_items_are_the_unmet_items(self) -> None:
        """missing_items lists exactly the unmet items."""
        context = make_context(achievements=[make_series(2024, 35)], medals=[BRONZE, SILVER])
        check = EligibilityEngine.check_prerequisites(context, SILVER, 2024)

        assert check["all_met"] is False
        assert len(check["missing_items"]) == 2
        assert all(not item["is_met"] for item in check["missing_items"])
        requirement = check["missing_items"][1]
        assert requirement["type"] == const.ACHIEVEMENT_TYPE_PRECISION_SERIES
        assert requirement["progress"] == {"current": 0, "required": 1}

    def test_enforced_current_year_blocks_past_years(self) -> None:
        """With the feature flag a sustained medal can only qualify this year."""
        medal = make_medal(
            "sustained",
            requirements=[
                {
                    const.DATA_REQ_TYPE: const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT,
                    const.DATA_REQ_YEARS_OF_ACHIEVEMENT: 1,
                    const.DATA_REQ_POINT_THRESHOLDS: {"A": {"min": 40}},
                }
            ],
        )
        context = make_context(
            achievements=[make_series(2024, 42), make_series(2025, 42)],
            features={const.FEATURE_ENFORCE_CURRENT_YEAR_FOR_SUSTAINED: True},
        )

        assert not EligibilityEngine.check_prerequisites(context, medal, 2024)["all_met"]
        assert EligibilityEngine.check_prerequisites(context, medal, 2025)["all_met"]
        assert EligibilityEngine.get_eligible_years(context, medal) == [2025]

    def test_unmet_medal_prerequisites(self) -> None:
        """Only medal prerequisites without any unlock are listed."""
        context = make_context(medals=[BRONZE, SILVER])

        assert EligibilityEngine.get_unmet_medal_prerequisites(context, SILVER) == [
            "bronze"
        ]
        assert EligibilityEngine.get_unmet_medal_prerequisites(context, BRONZE) == []


# =============================================================================
# TEST: lower bounds & scan start
# =============================================================================


class TestScanBounds:
    """Tests for rule-derived lower bounds."""

    def test_minimal_unlock_year_for_sustained(self) -> None:
        """Bronze unlocked in 2021 plus three years gives 2024."""
        gold = make_medal(
            "gold",
            prerequisites=[{"type": "medal", "medal_id": "bronze"}],
            requirements=[
                {
                    const.DATA_REQ_TYPE: const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT,
                    const.DATA_REQ_YEARS_OF_ACHIEVEMENT: 3,
                }
            ],
        )
        context = make_context(unlocked_years={"bronze": 2021}, medals=[BRONZE, gold])

        assert EligibilityEngine.get_minimal_unlock_year_for_sustained(context, gold) == 2024
        assert EligibilityEngine.get_earliest_counting_year_for_medal(context, gold) == 2022
        assert EligibilityEngine.get_scan_start_year(context, gold) == 2024

    def test_minimal_unlock_year_per_year_default(self) -> None:
        """Per-year mode defaults to one year."""
        medal = make_medal(
            "per-year",
            prerequisites=[{"type": "medal", "medal_id": "bronze"}],
            requirements=[
                {
                    const.DATA_REQ_TYPE: const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT,
                    const.DATA_REQ_PER_YEAR: {
                        const.DATA_REQ_TYPE: const.ACHIEVEMENT_TYPE_PRECISION_SERIES
                    },
                }
            ],
        )
        context = make_context(unlocked_years={"bronze": 2021}, medals=[BRONZE, medal])

        assert EligibilityEngine.get_minimal_unlock_year_for_sustained(context, medal) == 2022

    def test_no_sustained_bound(self) -> None:
        """Medals without sustained leaves have no sustained bound."""
        context = make_context(unlocked_years={"bronze": 2021}, medals=[BRONZE, SILVER])

        assert EligibilityEngine.get_minimal_unlock_year_for_sustained(context, SILVER) is None

    @pytest.mark.parametrize(
        ("date_of_birth", "achievements", "expected"),
        [
            ("1990-05-05", [make_series(2015)], 1990),
            (None, [make_series(2018), make_series(2015)], 2015),
            (None, [], 2025),
            ("1850-01-01", [], const.YEAR_MIN),
        ],
    )
    def test_scan_start_base(
        self,
        date_of_birth: str | None,
        achievements: list[dict[str, Any]],
        expected: int,
    ) -> None:
        """Birth year, else oldest achievement year, else current year."""
        context = make_context(date_of_birth=date_of_birth, achievements=achievements)

        assert EligibilityEngine.get_scan_start_year(context, BRONZE) == expected


# =============================================================================
# TEST: year scans
# =============================================================================


class TestYearScans:
    """Tests for eligible year scans."""

    def test_eligible_years_ascending(self) -> None:
        """Every satisfying year up to the current year is listed."""
        context = make_context(achievements=[make_series(2024), make_series(2022)])

        assert EligibilityEngine.get_eligible_years(context, BRONZE) == [2022, 2024]
        assert EligibilityEngine.find_first_unlock_year(context, BRONZE) == 2022

    def test_no_satisfying_year(self) -> None:
        """Nothing qualifies without achievements."""
        context = make_context()

        assert EligibilityEngine.get_eligible_years(context, BRONZE) == []
        assert EligibilityEngine.find_first_unlock_year(context, BRONZE) is None

    def test_unlocked_medal_has_no_eligible_years(self) -> None:
        """Unlocked medals are never eligible again."""
        context = make_context(
            achievements=[make_series(2024)], unlocked_years={"bronze": 2024}
        )

        assert EligibilityEngine.get_eligible_years(context, BRONZE) == []

    def test_placeholder_has_no_eligible_years(self) -> None:
        """Placeholders are never actionable."""
        placeholder = make_medal("future", status=const.MEDAL_STATUS_PLACEHOLDER)
        context = make_context(achievements=[make_series(2024)])

        assert EligibilityEngine.get_eligible_years(context, placeholder) == []
        assert EligibilityEngine.find_first_unlock_year(context, placeholder) is None

    def test_eligible_years_respect_prerequisite_unlock(self) -> None:
        """Years before the prerequisite unlock never qualify."""
        context = make_context(
            achievements=[make_series(2022), make_series(2024)],
            unlocked_years={"bronze": 2023},
            medals=[BRONZE, SILVER],
        )

        assert EligibilityEngine.get_eligible_years(context, SILVER) == [2024]

    def test_earlier_achievements_keep_window_years(self) -> None:
        """Adding older qualifying series never removes an eligible year."""
        medal = make_medal(
            "window",
            requirements=[
                {
                    const.DATA_REQ_TYPE: const.ACHIEVEMENT_TYPE_PRECISION_SERIES,
                    const.DATA_REQ_POINT_THRESHOLDS: {"A": {"min": 32}},
                    const.DATA_REQ_MIN_ACHIEVEMENTS: 3,
                    const.DATA_REQ_TIME_WINDOW_YEARS: 3,
                }
            ],
        )
        recent = [make_series(2024, id=f"recent-{n}") for n in range(3)]
        older = [
            make_series(2021, id="older-1"),
            make_series(2021, id="older-2"),
            make_series(2022, id="older-3"),
        ]

        before = EligibilityEngine.get_eligible_years(
            make_context(achievements=recent), medal
        )
        after = EligibilityEngine.get_eligible_years(
            make_context(achievements=recent + older), medal
        )

        assert 2024 in before
        assert set(before) <= set(after)

    def test_earlier_achievements_keep_sustained_years(self) -> None:
        """Adding an older qualifying year never removes a sustained year."""
        gold = make_medal(
            "gold",
            prerequisites=[{"type": "medal", "medal_id": "silver"}],
            requirements=[
                {
                    const.DATA_REQ_TYPE: const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT,
                    const.DATA_REQ_YEARS_OF_ACHIEVEMENT: 3,
                }
            ],
        )
        medals = [BRONZE, SILVER, gold]
        unlocked = {"bronze": 2019, "silver": 2020}
        recent = [make_series(year) for year in (2022, 2023, 2024)]

        before = EligibilityEngine.get_eligible_years(
            make_context(achievements=recent, unlocked_years=unlocked, medals=medals),
            gold,
        )
        after = EligibilityEngine.get_eligible_years(
            make_context(
                achievements=[make_series(2021), *recent],
                unlocked_years=unlocked,
                medals=medals,
            ),
            gold,
        )

        assert before == [2024]
        assert set(before) <= set(after)
