# File: utils/__init__.py
"""Pure Python utilities for the medal tracker.

Submodules:
    - dt_utils: Date parsing, current calendar year, age at year end
    - math_utils: Percentages and bounds checks for achievement values

Usage:
    from . import dt_utils
    from .math_utils import calculate_percentage
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
