"""Engine modules for the medal tracker.

Contains stateless computation engines:
- requirement_engine: Leaf evaluators, age categories, AND/OR tree evaluation
- eligibility_engine: Single-year checks and eligible-year scans
- status_engine: locked / available / eligible / unlocked classification
- dependency_engine: Prerequisite graph, descendants and the unlock guard
"""

from .dependency_engine import DependencyEngine
from .eligibility_engine import EligibilityEngine
from .requirement_engine import RequirementEngine
from .status_engine import StatusEngine

__all__ = [
    "DependencyEngine",
    "EligibilityEngine",
    "RequirementEngine",
    "StatusEngine",
]
