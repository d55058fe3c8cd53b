"""Shared fixtures for medal tracker tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from medaltracker import const
from medaltracker.catalog import MedalCatalog
from medaltracker.engines.requirement_engine import RequirementEngine
from medaltracker.managers import MedalManager, UnlockManager
from medaltracker.store import AchievementStore, ProfileStore

PRECISION_THRESHOLDS_BRONZE = {
    "A": {"min": 32},
    "B": {"min": 33},
    "C": {"min": 31},
    "R": {"min": 34},
}
PRECISION_THRESHOLDS_SILVER = {
    "A": {"min": 38},
    "B": {"min": 39},
    "C": {"min": 37},
    "R": {"min": 40},
}

# bronze <- silver <- gold (same type), plus unrelated medals
SAMPLE_MEDALS: list[dict[str, Any]] = [
    {
        "id": "pistol-bronze",
        "display_name": "Pistol Mark",
        "type": "pistol_mark",
        "tier": "bronze",
        "requirements": [
            {
                "type": "precision_series",
                "min_achievements": 3,
                "point_thresholds": PRECISION_THRESHOLDS_BRONZE,
                "description": "Three precision series",
            }
        ],
    },
    {
        "id": "pistol-silver",
        "display_name": "Pistol Mark",
        "type": "pistol_mark",
        "tier": "silver",
        "prerequisites": [{"type": "medal", "medal_id": "pistol-bronze"}],
        "requirements": [
            {
                "type": "precision_series",
                "min_achievements": 3,
                "point_thresholds": PRECISION_THRESHOLDS_SILVER,
            }
        ],
    },
    {
        "id": "pistol-gold",
        "display_name": "Pistol Mark",
        "type": "pistol_mark",
        "tier": "gold",
        "prerequisites": [{"type": "medal", "medal_id": "pistol-silver"}],
        "requirements": [
            {"type": "sustained_achievement", "years_of_achievement": 3}
        ],
    },
    {
        "id": "field-badge",
        "display_name": "Field Shooting Badge",
        "type": "field",
        "requirements": {
            "or": [
                {
                    "type": "competition_performance",
                    "discipline_type": "field",
                    "point_threshold_percent": {"A": {"min": 60}},
                },
                {
                    "type": "standard_medal",
                    "discipline_type": "field",
                    "medal_tier": "silver",
                },
            ]
        },
    },
    {
        "id": "team-medal",
        "display_name": "Team Medal",
        "type": "team",
        "is_team_medal": True,
        "requirements": [{"type": "team_event", "max_position": 3}],
    },
    {
        "id": "future-medal",
        "display_name": "Future Medal",
        "type": "future",
        "status": "placeholder",
        "requirements": [],
    },
]


@pytest.fixture(autouse=True)
def reset_engine_registries() -> Any:
    """Keep leaf handler and custom criterion registrations local to each test."""
    leaf_handlers = dict(RequirementEngine._LEAF_HANDLERS)
    yield
    RequirementEngine._LEAF_HANDLERS = leaf_handlers
    RequirementEngine._CUSTOM_CRITERIA.clear()


@pytest.fixture
def sample_medals() -> list[dict[str, Any]]:
    """Raw catalog entries (deep copy per test)."""
    return copy.deepcopy(SAMPLE_MEDALS)


@pytest.fixture
def catalog(sample_medals: list[dict[str, Any]]) -> MedalCatalog:
    """Loaded sample catalog."""
    return MedalCatalog(sample_medals, strict=True)


@pytest.fixture
def profile_store() -> ProfileStore:
    """Profile store with one selected shooter."""
    return ProfileStore(
        [
            {
                const.DATA_PROFILE_USER_ID: "shooter-1",
                const.DATA_PROFILE_DISPLAY_NAME: "Test Shooter",
                const.DATA_PROFILE_DATE_OF_BIRTH: "1990-03-10",
                const.DATA_PROFILE_SEX: const.SEX_MALE,
            }
        ],
        current_user_id="shooter-1",
    )


@pytest.fixture
def achievement_store(profile_store: ProfileStore) -> AchievementStore:
    """Achievement store bound to the profile store."""
    return AchievementStore(profile_store)


@pytest.fixture
def medal_manager(
    catalog: MedalCatalog,
    profile_store: ProfileStore,
    achievement_store: AchievementStore,
) -> MedalManager:
    """Medal manager over the sample data."""
    return MedalManager(catalog, profile_store, achievement_store)


@pytest.fixture
def unlock_manager(
    catalog: MedalCatalog,
    profile_store: ProfileStore,
    achievement_store: AchievementStore,
) -> UnlockManager:
    """Unlock manager over the sample data."""
    return UnlockManager(catalog, profile_store, achievement_store)
