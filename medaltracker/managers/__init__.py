"""Manager modules for the medal tracker.

Managers read one consistent snapshot from the catalog and stores, and
delegate all evaluation to the stateless engines.
"""

from .base_manager import BaseManager, MedalNotFoundError
from .medal_manager import MedalManager
from .unlock_manager import UnlockManager

__all__ = [
    "BaseManager",
    "MedalManager",
    "MedalNotFoundError",
    "UnlockManager",
]
