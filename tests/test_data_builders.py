"""Tests for data_builders - normalization and validation helpers."""

from __future__ import annotations

from freezegun import freeze_time
import pytest

from medaltracker import const
from medaltracker.data_builders import (
    AchievementValidationError,
    build_achievement,
    build_medal,
    build_profile,
    get_medal_full_name,
    iter_requirement_leaves,
    normalize_requirement_spec,
    validate_achievement_data,
)

LEAF_A = {"type": "precision_series"}
LEAF_B = {"type": "standard_medal"}


class TestNormalizeRequirementSpec:
    """Tests for requirement tree normalization."""

    def test_list_is_and(self) -> None:
        """Lists become AND groups."""
        node = normalize_requirement_spec([LEAF_A, LEAF_B])

        assert node["node"] == "and"
        assert [c["requirement"] for c in node["children"]] == [LEAF_A, LEAF_B]

    def test_nested_operators(self) -> None:
        """and/or objects nest."""
        node = normalize_requirement_spec({"or": [LEAF_A, {"and": [LEAF_A, LEAF_B]}]})

        assert node["node"] == "or"
        assert node["children"][1]["node"] == "and"
        assert iter_requirement_leaves(node) == [LEAF_A, LEAF_A, LEAF_B]

    def test_single_child_collapses(self) -> None:
        """One-child groups are replaced by the child."""
        assert normalize_requirement_spec({"and": [{"or": [LEAF_A]}]}) == {
            "node": "leaf",
            "requirement": LEAF_A,
        }

    def test_normalized_input_passes_through(self) -> None:
        """Already normalized nodes are returned unchanged."""
        node = normalize_requirement_spec([LEAF_A, LEAF_B])

        assert normalize_requirement_spec(node) is node

    def test_per_year_normalized(self) -> None:
        """Sustained per_year subtrees are normalized with the leaf."""
        node = normalize_requirement_spec(
            {"type": "sustained_achievement", "per_year": [LEAF_A, LEAF_B]}
        )

        assert node["requirement"]["per_year"]["node"] == "and"

    def test_unusable_spec_becomes_empty_leaf(self) -> None:
        """Scalars turn into a leaf without a type."""
        assert normalize_requirement_spec("precision") == {
            "node": "leaf",
            "requirement": {},
        }


class TestBuildMedal:
    """Tests for catalog entry normalization."""

    def test_full_name_includes_tier(self) -> None:
        """Tiers are appended in parentheses."""
        medal = build_medal({"id": "m", "type": "x", "displayName": "Pistol Mark", "tier": "silver"})

        assert medal["display_name"] == "Pistol Mark"
        assert get_medal_full_name(medal) == "Pistol Mark (Silver)"

    def test_unknown_status_defaults_to_reviewed(self) -> None:
        """Only known statuses are kept."""
        medal = build_medal({"id": "m", "type": "x", "status": "draft"})

        assert medal["status"] == const.MEDAL_STATUS_REVIEWED

    def test_reference_rules_kept(self) -> None:
        """Age-conditional medal references keep their rule object."""
        rules = {
            "when": [{"if": {"age": {"gte": 55}}, "refs": ["senior"]}],
            "otherwise": ["open"],
        }

        assert build_medal({"id": "m", "type": "x", "references": rules})[
            "references"
        ] == rules
        assert build_medal({"id": "m", "type": "x", "references": "open"})[
            "references"
        ] == []

    def test_non_dict_prerequisites_dropped(self) -> None:
        """Malformed prerequisite entries are ignored."""
        medal = build_medal(
            {"id": "m", "type": "x", "prerequisites": ["a", {"type": "medal", "medal_id": "a"}]}
        )

        assert medal["prerequisites"] == [{"type": "medal", "medal_id": "a"}]


@freeze_time("2025-06-15 12:00:00", tz_offset=0)
class TestAchievements:
    """Tests for achievement build and validation."""

    def test_valid_precision_series(self) -> None:
        """A complete series passes validation."""
        data = build_achievement({"type": "precision_series", "year": 2025, "points": 50})

        assert validate_achievement_data(data) == {}

    def test_string_year_coerced(self) -> None:
        """Form-style years are converted to int."""
        data = build_achievement({"type": "precision_series", "year": "2024", "points": 30})

        assert data["year"] == 2024

    def test_unparsable_number_dropped(self) -> None:
        """Fields that are not numbers are removed before validation."""
        data = build_achievement({"type": "precision_series", "year": 2024, "points": "abc"})

        assert "points" not in data
        assert "points" in validate_achievement_data(data)

    @pytest.mark.parametrize(
        ("user_input", "error_field"),
        [
            ({"type": "shooting_round", "year": 2025, "total_points": 151}, "total_points"),
            ({"type": "air_pistol_precision", "year": 2025, "points": 101}, "points"),
            ({"type": "qualification_result", "year": 2025, "score": 300}, "weapon"),
            ({"type": "event", "year": 2025}, "event_name"),
            (
                {"type": "competition_result", "year": 2025, "score": 300, "series_count": 8},
                "series_count",
            ),
            (
                {
                    "type": "competition_performance",
                    "year": 2025,
                    "discipline_type": "field",
                    "score": 120,
                    "max_score": 100,
                },
                "score",
            ),
            ({"type": "competition_performance", "year": 2025}, "discipline_type"),
        ],
    )
    def test_type_rules(self, user_input: dict[str, object], error_field: str) -> None:
        """Each type reports its own invalid field."""
        with pytest.raises(AchievementValidationError) as exc_info:
            build_achievement(user_input, validate=True)

        assert error_field in exc_info.value.errors

    def test_participants_cleaned(self) -> None:
        """Empty participant names are dropped."""
        data = build_achievement(
            {
                "type": "team_event",
                "year": 2025,
                "team_name": "Club",
                "position": 2,
                "participants": ["Ann", "", None, "Bo"],
            },
            validate=True,
        )

        assert data["participants"] == ["Ann", "Bo"]


class TestBuildProfile:
    """Tests for profile defaults."""

    def test_defaults(self) -> None:
        """Missing fields get defaults."""
        profile = build_profile({"user_id": "u"})

        assert profile["date_of_birth"] == ""
        assert profile["prerequisites"] == []
        assert profile["unlocked_medals"] == []
        assert profile["features"] == const.DEFAULT_PROFILE_FEATURES
        assert profile["is_guest"] is False

    def test_unknown_features_ignored(self) -> None:
        """Only known feature flags are kept."""
        profile = build_profile(
            {"user_id": "u", "features": {"allow_manual_unlock": 1, "beta": True}}
        )

        assert profile["features"] == {
            "allow_manual_unlock": True,
            "enforce_current_year_for_sustained": False,
        }
