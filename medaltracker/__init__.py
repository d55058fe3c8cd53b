"""Medal requirement evaluation and eligibility engine for sport shooting.

Given a medal catalog, a user profile and that user's logged achievements,
determines which medals are locked, available, eligible or unlocked, in
which years they could be unlocked, and whether an unlock may be removed.
"""

from .catalog import CatalogValidationError, MedalCatalog
from .data_builders import AchievementValidationError
from .engines import DependencyEngine, EligibilityEngine, RequirementEngine, StatusEngine
from .managers import MedalManager, MedalNotFoundError, UnlockManager
from .store import AchievementStore, ProfileStore

__all__ = [
    "AchievementStore",
    "AchievementValidationError",
    "CatalogValidationError",
    "DependencyEngine",
    "EligibilityEngine",
    "MedalCatalog",
    "MedalManager",
    "MedalNotFoundError",
    "ProfileStore",
    "RequirementEngine",
    "StatusEngine",
    "UnlockManager",
]
