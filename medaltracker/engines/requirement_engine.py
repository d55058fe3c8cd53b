"""Requirement Engine - Pure logic for medal requirement tree evaluation.

This engine provides stateless, pure Python functions for:
- Leaf evaluation per achievement type (precision series, application series,
  competitions, team events, sustained achievements, ...)
- Age-category threshold resolution
- Boolean AND/OR tree evaluation with progress aggregation
- Collecting the achievements that satisfied a tree (unlock receipts)

ARCHITECTURE: This is a pure logic engine. All functions are static or class
methods that operate on passed-in data. Managers build the EvaluationContext
(profile snapshot, unlock years, catalog lookup, current year).

PURITY REQUIREMENT: This engine receives ALL data via the context parameter.
It never reads the clock, the stores or the catalog loader.

Leaf Types:
- precision_series, speed_shooting_series, air_pistol_precision: points >= min
- application_series: hits >= min_hits AND time <= max_time_seconds
- shooting_round: total points >= min
- running_shooting_course: points <= max (lower is better, by sex/age)
- standard_medal: discipline + tier at or above the required tier
- competition_result / cumulative_competition_score: competition filters,
  PPC class / series count / weapon group thresholds
- qualification_result, team_event, event, custom: shape constraints
- competition_performance: field percentage or running/skiing points
- sustained_achievement, sustained_reference: multi-year conditions
- custom_criterion: handlers registered at runtime
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..data_builders import normalize_requirement_spec
from ..utils.dt_utils import dt_age_at_year_end
from ..utils.math_utils import calculate_percentage, is_number, within_bounds

if TYPE_CHECKING:
    from ..type_defs import (
        AchievementData,
        CustomCriterionHandler,
        EvaluationContext,
        EvaluationScope,
        LeafResult,
        MedalData,
        NodeResult,
        RequirementNode,
    )


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler function signature: (context, requirement, scope) -> LeafResult
LeafHandler = Callable[
    ["EvaluationContext", dict[str, Any], "EvaluationScope"], "LeafResult"
]


# =============================================================================
# REQUIREMENT ENGINE
# =============================================================================


class RequirementEngine:
    """Pure logic engine for requirement tree evaluation.

    All methods are static or class methods - no instance state.

    PURITY CONTRACT:
    - All data comes via `context` and `scope` parameters
    - No side effects, no store access, no state mutation
    - Repeated calls with the same inputs return equal results

    Evaluation Flow:
        1. Manager builds an EvaluationContext for one profile snapshot
        2. evaluate_node() walks the normalized tree for one candidate year
        3. Each leaf is dispatched by its `type` through _LEAF_HANDLERS
        4. Groups aggregate children by boolean logic with {met, total} progress

    Configuration errors (unknown leaf type, missing thresholds, incomplete
    profile) never raise: the leaf is reported as unmet with a reason code.
    """

    # =========================================================================
    # LEAF HANDLER REGISTRY
    # =========================================================================

    # Maps leaf requirement type to handler function
    _LEAF_HANDLERS: dict[str, LeafHandler] = {}

    # Named handlers for custom_criterion leaves
    _CUSTOM_CRITERIA: dict[str, CustomCriterionHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Register all built-in leaf handlers.

        Called lazily before evaluation to populate _LEAF_HANDLERS.
        """
        if cls._LEAF_HANDLERS:
            return  # Already registered

        cls._LEAF_HANDLERS = {
            # Points-based series
            const.ACHIEVEMENT_TYPE_PRECISION_SERIES: cls._evaluate_precision_series,
            const.ACHIEVEMENT_TYPE_SPEED_SHOOTING_SERIES: (
                cls._evaluate_speed_shooting_series
            ),
            const.ACHIEVEMENT_TYPE_AIR_PISTOL_PRECISION: (
                cls._evaluate_air_pistol_precision
            ),
            const.ACHIEVEMENT_TYPE_SHOOTING_ROUND: cls._evaluate_shooting_round,
            const.ACHIEVEMENT_TYPE_APPLICATION_SERIES: (
                cls._evaluate_application_series
            ),
            const.ACHIEVEMENT_TYPE_RUNNING_SHOOTING_COURSE: (
                cls._evaluate_running_shooting_course
            ),
            # Medals and competitions
            const.ACHIEVEMENT_TYPE_STANDARD_MEDAL: cls._evaluate_standard_medal,
            const.ACHIEVEMENT_TYPE_COMPETITION_RESULT: (
                cls._evaluate_competition_result
            ),
            const.REQUIREMENT_TYPE_CUMULATIVE_COMPETITION_SCORE: (
                cls._evaluate_competition_result
            ),
            const.ACHIEVEMENT_TYPE_QUALIFICATION_RESULT: (
                cls._evaluate_qualification_result
            ),
            const.ACHIEVEMENT_TYPE_COMPETITION_PERFORMANCE: (
                cls._evaluate_competition_performance
            ),
            # Shape-only entries
            const.ACHIEVEMENT_TYPE_TEAM_EVENT: cls._evaluate_team_event,
            const.ACHIEVEMENT_TYPE_EVENT: cls._evaluate_event,
            const.ACHIEVEMENT_TYPE_CUSTOM: cls._evaluate_event,
            # Multi-year
            const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT: (
                cls._evaluate_sustained_achievement
            ),
            const.REQUIREMENT_TYPE_SUSTAINED_REFERENCE: (
                cls._evaluate_sustained_reference
            ),
            # Runtime extensions
            const.REQUIREMENT_TYPE_CUSTOM_CRITERION: cls._evaluate_custom_criterion,
        }

    @classmethod
    def register_leaf_handler(cls, leaf_type: str, handler: LeafHandler) -> None:
        """Register (or replace) the evaluator for a leaf type.

        New achievement types plug in here without touching existing handlers.
        """
        if not isinstance(leaf_type, str) or not leaf_type:
            raise ValueError("leaf type must be a non-empty string")
        if not callable(handler):
            raise ValueError("leaf handler must be callable")
        cls._register_handlers()
        cls._LEAF_HANDLERS[leaf_type] = handler

    @classmethod
    def register_custom_criterion(
        cls, name: str, handler: CustomCriterionHandler
    ) -> None:
        """Register a named handler for ``custom_criterion`` leaves.

        The handler receives a dict with ``context``, ``year``,
        ``min_start_year`` and ``params`` and returns a bool or a dict with an
        ``is_met`` key.

        Raises:
            ValueError: if the name is empty or the handler is not callable
        """
        if not isinstance(name, str) or not name:
            raise ValueError("custom_criterion name must be a non-empty string")
        if not callable(handler):
            raise ValueError("custom_criterion handler must be a function")
        cls._CUSTOM_CRITERIA[name] = handler

    @classmethod
    def unregister_custom_criterion(cls, name: str) -> None:
        """Remove a named custom criterion handler if present."""
        cls._CUSTOM_CRITERIA.pop(name, None)

    # =========================================================================
    # TREE EVALUATION
    # =========================================================================

    @classmethod
    def evaluate_node(
        cls,
        context: EvaluationContext,
        node: RequirementNode,
        scope: EvaluationScope,
    ) -> NodeResult:
        """Evaluate a normalized requirement node for one candidate year.

        Recursion depth is bounded by the tree's own nesting.

        Args:
            context: Profile snapshot
            node: Requirement tree node (raw specs are normalized first)
            scope: Candidate year, parent medal and optional window floor

        Returns:
            NodeResult with is_met, group progress, child results or leaf result
        """
        node = normalize_requirement_spec(node)
        kind = node.get(const.NODE_KEY)

        if kind in (const.NODE_AND, const.NODE_OR):
            children = [
                cls.evaluate_node(context, child, scope)
                for child in node.get(const.NODE_CHILDREN) or []
            ]
            met_count = sum(1 for child in children if child["is_met"])
            if kind == const.NODE_AND:
                is_met = met_count == len(children)
            else:
                is_met = met_count > 0
            return {
                "node": kind,
                "is_met": is_met,
                "progress": {"met": met_count, "total": len(children)},
                "children": children,
            }

        requirement = node.get(const.NODE_REQUIREMENT) or {}
        leaf = cls.evaluate_leaf(context, requirement, scope)
        return {"node": const.NODE_LEAF, "is_met": bool(leaf["is_met"]), "leaf": leaf}

    @classmethod
    def evaluate_leaf(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Dispatch one leaf requirement to its type handler."""
        cls._register_handlers()

        leaf_type = requirement.get(const.DATA_REQ_TYPE)
        handler = cls._LEAF_HANDLERS.get(leaf_type) if leaf_type else None

        if handler is None:
            medal = scope.get("medal") or {}
            const.LOGGER.warning(
                "Unknown requirement type: %s for medal %s",
                leaf_type,
                medal.get(const.DATA_MEDAL_ID, "unknown"),
            )
            return {
                "type": leaf_type or "unknown",
                "is_met": False,
                "description": requirement.get(const.DATA_REQ_DESCRIPTION),
                "reason": const.REASON_UNSUPPORTED_REQUIREMENT_TYPE,
            }

        return handler(context, requirement, scope)

    @classmethod
    def evaluate_medal_tree(
        cls,
        context: EvaluationContext,
        medal: MedalData,
        year: int,
        *,
        min_start_year: int | None = None,
        reference_chain: tuple[str, ...] = (),
    ) -> NodeResult:
        """Evaluate a medal's full requirement tree for ``year``."""
        scope: EvaluationScope = {
            "year": year,
            "medal": medal,
            "min_start_year": min_start_year,
            "reference_chain": reference_chain,
        }
        return cls.evaluate_node(
            context, medal.get(const.DATA_MEDAL_REQUIREMENTS) or [], scope
        )

    @staticmethod
    def flatten_leaves(result: NodeResult) -> list[LeafResult]:
        """Collect all leaf results of an evaluated tree, in tree order."""
        if result.get("node") == const.NODE_LEAF:
            leaf = result.get("leaf")
            return [leaf] if leaf is not None else []
        leaves: list[LeafResult] = []
        for child in result.get("children") or []:
            leaves.extend(RequirementEngine.flatten_leaves(child))
        return leaves

    @staticmethod
    def collect_matching_achievement_ids(result: NodeResult) -> list[str]:
        """Unique achievement ids credited by the met leaves of a tree."""
        ids: list[str] = []
        seen: set[str] = set()
        for leaf in RequirementEngine.flatten_leaves(result):
            if not leaf.get("is_met"):
                continue
            for achievement_id in leaf.get("matching_achievement_ids") or []:
                if achievement_id and achievement_id not in seen:
                    seen.add(achievement_id)
                    ids.append(achievement_id)
        return ids

    # =========================================================================
    # AGE-CATEGORY RESOLUTION
    # =========================================================================

    @staticmethod
    def resolve_age_category(
        requirement: dict[str, Any], age: int | None
    ) -> dict[str, Any] | None:
        """Return the first age category containing ``age``, by declaration order.

        Missing bounds default to 0 and 999. Returns None when the leaf has no
        categories, the age is unknown or no category matches.
        """
        categories = requirement.get(const.DATA_REQ_AGE_CATEGORIES)
        if not isinstance(categories, list) or not categories or age is None:
            return None

        for category in categories:
            if not isinstance(category, dict):
                continue
            age_min = category.get(const.DATA_AGE_CATEGORY_AGE_MIN)
            age_max = category.get(const.DATA_AGE_CATEGORY_AGE_MAX)
            if not is_number(age_min):
                age_min = const.AGE_MIN_DEFAULT
            if not is_number(age_max):
                age_max = const.AGE_MAX_DEFAULT
            if age_min <= age <= age_max:
                return category
        return None

    @staticmethod
    def resolve_thresholds(
        requirement: dict[str, Any],
        age: int | None,
        key: str = const.DATA_REQ_POINT_THRESHOLDS,
    ) -> Any:
        """Resolve the effective threshold set ``key`` for ``age``.

        The matched category's value for ``key`` overrides the leaf default;
        the leaf's own value is the fallback.

        Example:
            categories [{0-54: min 32}, {55-64: min 31}, {65-999: min 30}]
            resolve_thresholds(req, 60) → {"A": {"min": 31}}
        """
        category = RequirementEngine.resolve_age_category(requirement, age)
        if category is not None and category.get(key) is not None:
            return category[key]
        return requirement.get(key)

    # =========================================================================
    # POINTS-BASED HANDLERS
    # =========================================================================

    @staticmethod
    def _evaluate_points_series(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
        *,
        achievement_type: str,
        points_field: str,
        points_max: float | None,
        threshold_key: str,
        fallback_min_key: str | None = None,
        count_keys: tuple[str, ...] = (const.DATA_REQ_MIN_ACHIEVEMENTS,),
    ) -> LeafResult:
        """Core logic for "points >= per-weapon-group minimum" leaves.

        Achievements outside the points domain [0, points_max] never count.
        A weapon group with no threshold (after age resolution) never matches.

        Args:
            context: EvaluationContext with achievements and birth date
            requirement: Leaf requirement
            scope: Candidate year and window floor
            achievement_type: Achievement type to match
            points_field: Achievement field holding the points
            points_max: Upper bound of the points domain, None if unbounded
            threshold_key: Leaf key with {group: {"min": n}} thresholds
            fallback_min_key: Optional flat minimum used when no group threshold
            count_keys: Leaf keys holding the required count, first wins

        Returns:
            LeafResult with count progress
        """
        year = scope["year"]
        age = RequirementEngine._age_at(context, year)
        thresholds = RequirementEngine.resolve_thresholds(requirement, age, threshold_key)
        fallback_min = (
            requirement.get(fallback_min_key) if fallback_min_key else None
        )

        candidates = []
        for achievement in RequirementEngine._in_window(
            RequirementEngine._achievements_of_type(context, achievement_type),
            requirement,
            scope,
        ):
            points = achievement.get(points_field)
            if not within_bounds(points, 0, points_max):
                continue
            minimum = RequirementEngine._group_threshold(
                thresholds, RequirementEngine._weapon_group(achievement)
            )
            if minimum is None and is_number(fallback_min):
                minimum = fallback_min
            if minimum is not None and points >= minimum:
                candidates.append(achievement)

        return RequirementEngine._make_count_result(
            requirement.get(const.DATA_REQ_TYPE, achievement_type),
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement, *count_keys),
            age=age,
        )

    @staticmethod
    def _evaluate_precision_series(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Precision series: points (0-50) >= resolved group minimum."""
        return RequirementEngine._evaluate_points_series(
            context,
            requirement,
            scope,
            achievement_type=const.ACHIEVEMENT_TYPE_PRECISION_SERIES,
            points_field=const.DATA_ACHIEVEMENT_POINTS,
            points_max=const.PRECISION_SERIES_POINTS_MAX,
            threshold_key=const.DATA_REQ_POINT_THRESHOLDS,
        )

    @staticmethod
    def _evaluate_speed_shooting_series(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Speed shooting series: points (0-50) >= resolved group minimum."""
        return RequirementEngine._evaluate_points_series(
            context,
            requirement,
            scope,
            achievement_type=const.ACHIEVEMENT_TYPE_SPEED_SHOOTING_SERIES,
            points_field=const.DATA_ACHIEVEMENT_POINTS,
            points_max=const.SPEED_SHOOTING_POINTS_MAX,
            threshold_key=const.DATA_REQ_POINT_THRESHOLDS,
        )

    @staticmethod
    def _evaluate_air_pistol_precision(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Air pistol precision: points (0-100) per series.

        Uses group thresholds when present, else the flat min_points_per_series.
        """
        return RequirementEngine._evaluate_points_series(
            context,
            requirement,
            scope,
            achievement_type=const.ACHIEVEMENT_TYPE_AIR_PISTOL_PRECISION,
            points_field=const.DATA_ACHIEVEMENT_POINTS,
            points_max=const.AIR_PISTOL_POINTS_MAX,
            threshold_key=const.DATA_REQ_POINT_THRESHOLDS,
            fallback_min_key=const.DATA_REQ_MIN_POINTS_PER_SERIES,
            count_keys=(const.DATA_REQ_MIN_SERIES, const.DATA_REQ_MIN_ACHIEVEMENTS),
        )

    @staticmethod
    def _evaluate_shooting_round(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Shooting round: total points (0-150) >= resolved group minimum."""
        return RequirementEngine._evaluate_points_series(
            context,
            requirement,
            scope,
            achievement_type=const.ACHIEVEMENT_TYPE_SHOOTING_ROUND,
            points_field=const.DATA_ACHIEVEMENT_TOTAL_POINTS,
            points_max=const.SHOOTING_ROUND_POINTS_MAX,
            threshold_key=const.DATA_REQ_TOTAL_POINT_THRESHOLDS,
        )

    @staticmethod
    def _evaluate_application_series(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Application series: hits >= min_hits AND time <= max_time_seconds.

        Thresholds live under `thresholds` keyed by weapon group and may be
        overridden per age category (e.g. 40s instead of 15s for 65+).
        """
        year = scope["year"]
        age = RequirementEngine._age_at(context, year)
        thresholds = RequirementEngine.resolve_thresholds(
            requirement, age, const.DATA_REQ_THRESHOLDS
        )

        def passes(achievement: AchievementData) -> bool:
            group_thresholds = (
                thresholds.get(RequirementEngine._weapon_group(achievement))
                if isinstance(thresholds, dict)
                else None
            )
            if not isinstance(group_thresholds, dict):
                return False
            hits = achievement.get(const.DATA_ACHIEVEMENT_HITS)
            time_seconds = achievement.get(const.DATA_ACHIEVEMENT_TIME_SECONDS)
            if not within_bounds(hits, 0, None):
                return False
            if not is_number(time_seconds) or time_seconds <= 0:
                return False
            min_hits = group_thresholds.get(const.THRESHOLD_MIN_HITS)
            max_time = group_thresholds.get(const.THRESHOLD_MAX_TIME_SECONDS)
            hits_ok = hits >= min_hits if is_number(min_hits) else True
            time_ok = time_seconds <= max_time if is_number(max_time) else True
            return hits_ok and time_ok

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(
                    context, const.ACHIEVEMENT_TYPE_APPLICATION_SERIES
                ),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            const.ACHIEVEMENT_TYPE_APPLICATION_SERIES,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement),
            age=age,
        )

    @staticmethod
    def _evaluate_running_shooting_course(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Running shooting course: points <= max (lower is better).

        The maximum is keyed by sex and may be overridden per age category, so
        both sex and date of birth are required on the profile.
        """
        year = scope["year"]
        sex = context.get("sex")
        age = RequirementEngine._age_at(context, year)
        leaf_type = const.ACHIEVEMENT_TYPE_RUNNING_SHOOTING_COURSE
        required = RequirementEngine._required_count(requirement)

        if sex not in const.SEX_OPTIONS or age is None:
            return RequirementEngine._make_unmet_result(
                leaf_type, requirement, const.REASON_PROFILE_INCOMPLETE, required
            )

        max_points_by_sex = RequirementEngine.resolve_thresholds(
            requirement, age, const.DATA_REQ_MAX_POINTS
        )
        max_points = (
            max_points_by_sex.get(sex) if isinstance(max_points_by_sex, dict) else None
        )
        if not is_number(max_points):
            return RequirementEngine._make_unmet_result(
                leaf_type, requirement, const.REASON_MISSING_THRESHOLDS, required
            )

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(context, leaf_type),
                requirement,
                scope,
            )
            if within_bounds(a.get(const.DATA_ACHIEVEMENT_POINTS), 0, max_points)
        ]
        return RequirementEngine._make_count_result(
            leaf_type, requirement, scope, candidates, required, age=age
        )

    # =========================================================================
    # MEDAL & COMPETITION HANDLERS
    # =========================================================================

    @staticmethod
    def _evaluate_standard_medal(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Standard medal: required discipline at or above the required tier.

        Tier order is bronze < silver < gold; a gold medal satisfies a silver
        requirement. Unknown tiers never match.
        """
        discipline = requirement.get(const.DATA_REQ_DISCIPLINE_TYPE)
        required_tier = requirement.get(const.DATA_REQ_MEDAL_TIER)
        order = const.STANDARD_MEDAL_TIER_ORDER
        min_rank = order.index(required_tier) if required_tier in order else None

        def passes(achievement: AchievementData) -> bool:
            if discipline and (
                achievement.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE) != discipline
            ):
                return False
            tier = achievement.get(const.DATA_ACHIEVEMENT_MEDAL_TYPE)
            if tier not in order:
                return False
            return min_rank is None or order.index(tier) >= min_rank

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(
                    context, const.ACHIEVEMENT_TYPE_STANDARD_MEDAL
                ),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            const.ACHIEVEMENT_TYPE_STANDARD_MEDAL,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement),
        )

    @staticmethod
    def _evaluate_competition_result(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Competition result (also cumulative_competition_score).

        An achievement counts when:
        - competition_type is in the allowed set (if the leaf restricts it)
        - discipline_type is in the allowed set (if the leaf restricts it)
        - score is numeric
        - PPC results carry a non-empty ppc_class
        - series_count, when given, is one of 6, 7, 10
        - the score reaches the applicable threshold, chosen in order:
          ppc_thresholds[class], series_based_thresholds[count][group],
          point_thresholds[group]. Without any threshold table every valid
          result counts.
        """
        leaf_type = requirement.get(
            const.DATA_REQ_TYPE, const.ACHIEVEMENT_TYPE_COMPETITION_RESULT
        )
        allowed_competitions = RequirementEngine._allowed_values(
            requirement, const.DATA_REQ_COMPETITION_TYPES, const.DATA_REQ_COMPETITION_TYPE
        )
        allowed_disciplines = RequirementEngine._allowed_values(
            requirement, const.DATA_REQ_DISCIPLINE_TYPES, const.DATA_REQ_DISCIPLINE_TYPE
        )
        year = scope["year"]
        age = RequirementEngine._age_at(context, year)
        ppc_thresholds = requirement.get(const.DATA_REQ_PPC_THRESHOLDS)
        series_thresholds = requirement.get(const.DATA_REQ_SERIES_BASED_THRESHOLDS)
        point_thresholds = RequirementEngine.resolve_thresholds(
            requirement, age, const.DATA_REQ_POINT_THRESHOLDS
        )
        has_thresholds = any(
            isinstance(table, dict)
            for table in (ppc_thresholds, series_thresholds, point_thresholds)
        )

        def passes(achievement: AchievementData) -> bool:
            competition = achievement.get(const.DATA_ACHIEVEMENT_COMPETITION_TYPE)
            discipline = achievement.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE)
            score = achievement.get(const.DATA_ACHIEVEMENT_SCORE)
            if allowed_competitions and competition not in allowed_competitions:
                return False
            if allowed_disciplines and discipline not in allowed_disciplines:
                return False
            if not is_number(score):
                return False
            ppc_class = achievement.get(const.DATA_ACHIEVEMENT_PPC_CLASS)
            if discipline == const.DISCIPLINE_TYPE_PPC and not ppc_class:
                return False
            series_count = achievement.get(const.DATA_ACHIEVEMENT_SERIES_COUNT)
            if (
                series_count is not None
                and series_count not in const.ALLOWED_SERIES_COUNTS
            ):
                return False
            if not has_thresholds:
                return True

            group = RequirementEngine._weapon_group(achievement)
            if discipline == const.DISCIPLINE_TYPE_PPC and isinstance(
                ppc_thresholds, dict
            ):
                minimum = RequirementEngine._group_threshold(ppc_thresholds, ppc_class)
            elif isinstance(series_thresholds, dict):
                minimum = RequirementEngine._group_threshold(
                    series_thresholds.get(str(series_count or "")), group
                )
            else:
                minimum = RequirementEngine._group_threshold(point_thresholds, group)
            return minimum is not None and score >= minimum

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(
                    context, const.ACHIEVEMENT_TYPE_COMPETITION_RESULT
                ),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            leaf_type,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(
                requirement,
                const.DATA_REQ_MIN_COMPETITIONS,
                const.DATA_REQ_MIN_ACHIEVEMENTS,
            ),
            age=age,
        )

    @staticmethod
    def _evaluate_qualification_result(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Qualification result: non-empty weapon and numeric score.

        Optional leaf filters: `weapon` (exact match), `min_score` or group
        `point_thresholds`.
        """
        required_weapon = requirement.get(const.DATA_REQ_WEAPON)
        min_score = requirement.get(const.DATA_REQ_MIN_SCORE)
        point_thresholds = requirement.get(const.DATA_REQ_POINT_THRESHOLDS)

        def passes(achievement: AchievementData) -> bool:
            weapon = achievement.get(const.DATA_ACHIEVEMENT_WEAPON)
            score = achievement.get(const.DATA_ACHIEVEMENT_SCORE)
            if not weapon or not is_number(score):
                return False
            if required_weapon and weapon != required_weapon:
                return False
            if is_number(min_score) and score < min_score:
                return False
            if isinstance(point_thresholds, dict):
                minimum = RequirementEngine._group_threshold(
                    point_thresholds, RequirementEngine._weapon_group(achievement)
                )
                return minimum is not None and score >= minimum
            return True

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(
                    context, const.ACHIEVEMENT_TYPE_QUALIFICATION_RESULT
                ),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            const.ACHIEVEMENT_TYPE_QUALIFICATION_RESULT,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement),
        )

    @staticmethod
    def _evaluate_competition_performance(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Competition performance, branching on discipline.

        - running / skiing (or any leaf with `max_points`): points <= max for
          the profile's sex, lower is better
        - field (or any leaf with `point_threshold_percent`): score percent of
          max_score >= the weapon group minimum
        - otherwise any result in the discipline counts
        """
        leaf_type = const.ACHIEVEMENT_TYPE_COMPETITION_PERFORMANCE
        discipline = requirement.get(const.DATA_REQ_DISCIPLINE_TYPE)
        max_points = requirement.get(const.DATA_REQ_MAX_POINTS)
        percent_thresholds = requirement.get(const.DATA_REQ_POINT_THRESHOLD_PERCENT)
        required = RequirementEngine._required_count(
            requirement, const.DATA_REQ_MIN_COMPETITIONS, const.DATA_REQ_MIN_ACHIEVEMENTS
        )
        lower_is_better = (
            discipline in const.LOWER_IS_BETTER_DISCIPLINES
            or max_points is not None
        )
        sex = context.get("sex")

        if lower_is_better and sex not in const.SEX_OPTIONS:
            return RequirementEngine._make_unmet_result(
                leaf_type, requirement, const.REASON_PROFILE_INCOMPLETE, required
            )

        def passes(achievement: AchievementData) -> bool:
            if discipline and (
                achievement.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE) != discipline
            ):
                return False

            if lower_is_better:
                limit = max_points.get(sex) if isinstance(max_points, dict) else None
                return is_number(limit) and within_bounds(
                    achievement.get(const.DATA_ACHIEVEMENT_POINTS), 0, limit
                )

            if percent_thresholds is not None or discipline == const.DISCIPLINE_TYPE_FIELD:
                minimum = RequirementEngine._group_threshold(
                    percent_thresholds, RequirementEngine._weapon_group(achievement)
                )
                percent = RequirementEngine._score_percent(achievement)
                return minimum is not None and percent is not None and percent >= minimum

            return True

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(context, leaf_type),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            leaf_type, requirement, scope, candidates, required
        )

    # =========================================================================
    # SHAPE-ONLY HANDLERS
    # =========================================================================

    @staticmethod
    def _evaluate_team_event(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Team event: team name, position 1-100 (<= max_position), participants."""
        max_position = requirement.get(const.DATA_REQ_MAX_POSITION)
        upper = max_position if is_number(max_position) else const.TEAM_POSITION_MAX

        def passes(achievement: AchievementData) -> bool:
            participants = achievement.get(const.DATA_ACHIEVEMENT_PARTICIPANTS)
            return (
                bool(achievement.get(const.DATA_ACHIEVEMENT_TEAM_NAME))
                and within_bounds(
                    achievement.get(const.DATA_ACHIEVEMENT_POSITION),
                    const.TEAM_POSITION_MIN,
                    min(upper, const.TEAM_POSITION_MAX),
                )
                and isinstance(participants, list)
                and len(participants) > 0
            )

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(
                    context, const.ACHIEVEMENT_TYPE_TEAM_EVENT
                ),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            const.ACHIEVEMENT_TYPE_TEAM_EVENT,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement),
        )

    @staticmethod
    def _evaluate_event(
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Event and custom entries (events need a name; filter is optional)."""
        leaf_type = requirement.get(const.DATA_REQ_TYPE, const.ACHIEVEMENT_TYPE_EVENT)
        wanted_name = requirement.get(const.DATA_REQ_EVENT_NAME)

        def passes(achievement: AchievementData) -> bool:
            name = achievement.get(const.DATA_ACHIEVEMENT_EVENT_NAME)
            if leaf_type == const.ACHIEVEMENT_TYPE_EVENT and not name:
                return False
            if wanted_name:
                return str(name or "").strip().casefold() == str(
                    wanted_name
                ).strip().casefold()
            return True

        candidates = [
            a
            for a in RequirementEngine._in_window(
                RequirementEngine._achievements_of_type(context, leaf_type),
                requirement,
                scope,
            )
            if passes(a)
        ]
        return RequirementEngine._make_count_result(
            leaf_type,
            requirement,
            scope,
            candidates,
            RequirementEngine._required_count(requirement),
        )

    # =========================================================================
    # MULTI-YEAR HANDLERS
    # =========================================================================

    @classmethod
    def _evaluate_sustained_achievement(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Sustained achievement: a per-year condition held over several years.

        The span always ends at the candidate year. Years before the medal's
        earliest counting year (one after the last same-type prerequisite
        unlock) never count.

        Per-year condition, first applicable:
        - `per_year`: a requirement subtree met in that year
        - `references`: every referenced medal's tree met in that year
          (list, or age-conditional rules; falls back to same-type
          prerequisite medals)
        - legacy threshold: a precision series >= group minimum that year

        Options:
        - years_of_achievement: qualifying years needed
        - time_window_years: only the last N years up to the candidate year
        - consecutive: qualifying years must form an unbroken run
        - must_include_current_year: the candidate year itself must qualify

        When the profile enables enforce_current_year_for_sustained, the
        candidate year must be the real current calendar year.
        """
        leaf_type = const.REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT
        year = scope["year"]
        medal = scope.get("medal")
        per_year = requirement.get(const.DATA_REQ_PER_YEAR)
        per_year_node = (
            normalize_requirement_spec(per_year) if per_year is not None else None
        )
        default_years = (
            const.DEFAULT_SUSTAINED_PER_YEAR_YEARS
            if per_year is not None
            else const.DEFAULT_SUSTAINED_YEARS
        )
        required = cls._required_count(
            requirement, const.DATA_REQ_YEARS_OF_ACHIEVEMENT, default=default_years
        )

        enforce_current = bool(
            context["features"].get(const.FEATURE_ENFORCE_CURRENT_YEAR_FOR_SUSTAINED)
        )
        if enforce_current and year != context["current_year"]:
            return cls._make_unmet_result(
                leaf_type, requirement, const.REASON_CURRENT_YEAR_REQUIRED, required
            )

        earliest = cls.get_earliest_counting_year(context, medal)
        references: list[str] = []
        if per_year is None:
            references = cls.resolve_sustained_references(context, requirement, medal, year)

        require_current = (
            requirement.get(const.DATA_REQ_MUST_INCLUDE_CURRENT_YEAR) is True
            or bool((medal or {}).get(const.DATA_MEDAL_MUST_INCLUDE_CURRENT_YEAR))
            or bool(references)
            or enforce_current
        )

        candidate_years = {
            y
            for y in cls._achievement_years(context)
            if y <= year and (earliest is None or y >= earliest)
        }
        if earliest is None or year >= earliest:
            candidate_years.add(year)

        def qualifies(candidate: int) -> bool:
            if per_year_node is not None:
                sub_scope: EvaluationScope = {
                    "year": candidate,
                    "medal": medal,
                    "min_start_year": earliest,
                    "reference_chain": scope.get("reference_chain", ()),
                }
                return cls.evaluate_node(context, per_year_node, sub_scope)["is_met"]
            if references:
                return cls._references_met(
                    context, references, candidate, scope, min_start_year=earliest
                )
            return cls._legacy_precision_year_met(context, requirement, candidate)

        qualifying = {y for y in candidate_years if qualifies(y)}

        window = requirement.get(const.DATA_REQ_TIME_WINDOW_YEARS)
        if is_number(window) and window > 0:
            window_start = year - int(window) + 1
            qualifying_in_span = {y for y in qualifying if y >= window_start}
        else:
            qualifying_in_span = qualifying

        if requirement.get(const.DATA_REQ_CONSECUTIVE) is True:
            current = 0
            while (year - current) in qualifying_in_span:
                current += 1
        else:
            current = len(qualifying_in_span)

        met = current >= required
        if met and require_current and year not in qualifying:
            met = False

        result: LeafResult = {
            "type": leaf_type,
            "is_met": met,
            "description": requirement.get(const.DATA_REQ_DESCRIPTION),
            "progress": {"current": current, "required": required},
            "window_year": year if met else None,
        }
        return result

    @classmethod
    def _evaluate_sustained_reference(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Met iff every referenced medal's tree is met in the candidate year."""
        leaf_type = const.REQUIREMENT_TYPE_SUSTAINED_REFERENCE
        year = scope["year"]
        references = cls.resolve_sustained_references(
            context, requirement, scope.get("medal"), year
        )
        if not references:
            return cls._make_unmet_result(
                leaf_type, requirement, const.REASON_NO_REFERENCES
            )

        met = cls._references_met(
            context, references, year, scope, min_start_year=scope.get("min_start_year")
        )
        return {
            "type": leaf_type,
            "is_met": met,
            "description": requirement.get(const.DATA_REQ_DESCRIPTION),
            "window_year": year if met else None,
        }

    @classmethod
    def resolve_sustained_references(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        medal: MedalData | None,
        year: int,
    ) -> list[str]:
        """Resolve the medal ids a sustained requirement refers to.

        - A list of ids (or {"medal_id": ...} dicts) is used as is
        - {"when": [{"if": {"age": {...}}, "refs": [...]}], "otherwise": [...]}
          picks the first rule whose age condition holds at Dec 31 of `year`
        - Otherwise the parent medal's same-type prerequisite medals are used
        """
        config = requirement.get(const.DATA_REQ_REFERENCES)
        if config is None and medal and medal.get(const.DATA_MEDAL_REFERENCES):
            config = medal.get(const.DATA_MEDAL_REFERENCES)

        selected: Any = None
        if isinstance(config, list):
            selected = config
        elif isinstance(config, dict):
            age = cls._age_at(context, year)
            for rule in config.get(const.DATA_REFS_WHEN) or []:
                if not isinstance(rule, dict):
                    continue
                condition = rule.get(const.DATA_REFS_IF) or {}
                if cls._age_condition_matches(condition.get(const.DATA_REFS_AGE), age):
                    selected = rule.get(const.DATA_REFS_REFS)
                    break
            if selected is None:
                selected = config.get(const.DATA_REFS_OTHERWISE)
        elif config is not None:
            const.LOGGER.warning(
                "Invalid sustained references for medal %s: expected list or object",
                (medal or {}).get(const.DATA_MEDAL_ID, "unknown"),
            )

        ids = cls._normalize_reference_ids(selected)
        if ids:
            return ids
        return cls.get_same_type_prereq_medal_ids(context, medal)

    @classmethod
    def _evaluate_custom_criterion(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> LeafResult:
        """Delegate to a handler registered with register_custom_criterion()."""
        leaf_type = const.REQUIREMENT_TYPE_CUSTOM_CRITERION
        name = requirement.get(const.DATA_REQ_NAME)
        handler = cls._CUSTOM_CRITERIA.get(name) if isinstance(name, str) else None
        if handler is None:
            return cls._make_unmet_result(
                leaf_type, requirement, const.REASON_UNKNOWN_CUSTOM_CRITERION
            )

        year = scope["year"]
        try:
            outcome = handler(
                {
                    "context": context,
                    "year": year,
                    "min_start_year": scope.get("min_start_year"),
                    "params": requirement.get(const.DATA_REQ_PARAMS) or {},
                }
            )
        except Exception as err:  # pylint: disable=broad-except
            const.LOGGER.warning("Custom criterion %s failed: %s", name, err)
            result = cls._make_unmet_result(
                leaf_type, requirement, const.REASON_CUSTOM_CRITERION_ERROR
            )
            result["error"] = str(err)
            return result

        met = bool(outcome.get("is_met")) if isinstance(outcome, dict) else bool(outcome)
        return {
            "type": leaf_type,
            "is_met": met,
            "description": requirement.get(const.DATA_REQ_DESCRIPTION),
            "window_year": year if met else None,
        }

    # =========================================================================
    # PREREQUISITE-CHAIN HELPERS
    # =========================================================================

    @staticmethod
    def get_same_type_prereq_medal_ids(
        context: EvaluationContext, medal: MedalData | None
    ) -> list[str]:
        """Prerequisite medal ids whose medal has the same type as ``medal``."""
        if not medal or not medal.get(const.DATA_MEDAL_TYPE):
            return []
        medals_by_id = context["medals_by_id"]
        ids = []
        for prereq in medal.get(const.DATA_MEDAL_PREREQUISITES) or []:
            if prereq.get(const.DATA_PREREQ_TYPE) != const.PREREQ_TYPE_MEDAL:
                continue
            prereq_medal = medals_by_id.get(prereq.get(const.DATA_PREREQ_MEDAL_ID, ""))
            if prereq_medal and prereq_medal.get(const.DATA_MEDAL_TYPE) == medal.get(
                const.DATA_MEDAL_TYPE
            ):
                ids.append(prereq_medal[const.DATA_MEDAL_ID])
        return ids

    @staticmethod
    def get_earliest_counting_year(
        context: EvaluationContext, medal: MedalData | None
    ) -> int | None:
        """One year after the latest unlock among same-type prerequisite medals.

        Achievements credited to the previous tier cannot count again, so the
        next tier only sees years after that unlock. None when no same-type
        prerequisite has been unlocked.
        """
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
        return max(years) + 1

    @classmethod
    def _references_met(
        cls,
        context: EvaluationContext,
        references: list[str],
        year: int,
        scope: EvaluationScope,
        *,
        min_start_year: int | None,
    ) -> bool:
        """Whether every referenced medal's tree is met in ``year``."""
        medal = scope.get("medal") or {}
        chain = tuple(scope.get("reference_chain", ())) + (
            medal.get(const.DATA_MEDAL_ID, ""),
        )
        for medal_id in references:
            if medal_id in chain:
                const.LOGGER.warning(
                    "Sustained reference cycle detected at medal %s (chain %s)",
                    medal_id,
                    " -> ".join(chain),
                )
                return False
            referenced = context["medals_by_id"].get(medal_id)
            if referenced is None:
                return False
            result = cls.evaluate_medal_tree(
                context,
                referenced,
                year,
                min_start_year=min_start_year,
                reference_chain=chain,
            )
            if not result["is_met"]:
                return False
        return True

    @classmethod
    def _legacy_precision_year_met(
        cls,
        context: EvaluationContext,
        requirement: dict[str, Any],
        year: int,
    ) -> bool:
        """Any precision series in ``year`` at or above the group minimum."""
        thresholds = requirement.get(const.DATA_REQ_POINT_THRESHOLDS)
        fallback = requirement.get(
            const.DATA_REQ_MIN_POINTS_PER_YEAR, const.DEFAULT_MIN_POINTS_PER_YEAR
        )
        for achievement in cls._achievements_of_type(
            context, const.ACHIEVEMENT_TYPE_PRECISION_SERIES
        ):
            if achievement.get(const.DATA_ACHIEVEMENT_YEAR) != year:
                continue
            points = achievement.get(const.DATA_ACHIEVEMENT_POINTS)
            if not within_bounds(points, 0, const.PRECISION_SERIES_POINTS_MAX):
                continue
            minimum = cls._group_threshold(thresholds, cls._weapon_group(achievement))
            if minimum is None:
                minimum = fallback if is_number(fallback) else 0
            if points >= minimum:
                return True
        return False

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    @staticmethod
    def _achievements_of_type(
        context: EvaluationContext, *types: str
    ) -> list[AchievementData]:
        """Achievements of the given types with a usable integer year.

        Malformed entries are skipped rather than failing the evaluation.
        """
        matches = []
        for achievement in context["achievements"]:
            if not isinstance(achievement, dict):
                continue
            if achievement.get(const.DATA_ACHIEVEMENT_TYPE) not in types:
                continue
            year = achievement.get(const.DATA_ACHIEVEMENT_YEAR)
            if not isinstance(year, int) or isinstance(year, bool):
                continue
            matches.append(achievement)
        return matches

    @staticmethod
    def _achievement_years(context: EvaluationContext) -> list[int]:
        """Sorted distinct years present in the achievement list."""
        years = {
            a.get(const.DATA_ACHIEVEMENT_YEAR)
            for a in context["achievements"]
            if isinstance(a, dict)
            and isinstance(a.get(const.DATA_ACHIEVEMENT_YEAR), int)
            and not isinstance(a.get(const.DATA_ACHIEVEMENT_YEAR), bool)
        }
        return sorted(cast("set[int]", years))

    @staticmethod
    def _in_window(
        achievements: Iterable[AchievementData],
        requirement: dict[str, Any],
        scope: EvaluationScope,
    ) -> list[AchievementData]:
        """Constrain achievements to the leaf's year window ending at scope year.

        Without `time_window_years` (or with 1) only the candidate year counts.
        Multi-year windows are clipped below by `min_start_year`.
        """
        year = scope["year"]
        window = requirement.get(const.DATA_REQ_TIME_WINDOW_YEARS)
        if is_number(window) and window > 1:
            start = year - int(window) + 1
            min_start_year = scope.get("min_start_year")
            if min_start_year is not None:
                start = max(start, min_start_year)
            return [
                a
                for a in achievements
                if start <= a.get(const.DATA_ACHIEVEMENT_YEAR, 0) <= year
            ]
        return [a for a in achievements if a.get(const.DATA_ACHIEVEMENT_YEAR) == year]

    @staticmethod
    def _weapon_group(achievement: AchievementData) -> str:
        """Achievement weapon group, defaulting to A."""
        return achievement.get(const.DATA_ACHIEVEMENT_WEAPON_GROUP) or (
            const.DEFAULT_WEAPON_GROUP
        )

    @staticmethod
    def _group_threshold(thresholds: Any, group: Any) -> float | None:
        """Return thresholds[group]["min"] when it is a number, else None."""
        if not isinstance(thresholds, dict) or group is None:
            return None
        entry = thresholds.get(group)
        if not isinstance(entry, dict):
            return None
        minimum = entry.get(const.THRESHOLD_MIN)
        return minimum if is_number(minimum) else None

    @staticmethod
    def _allowed_values(
        requirement: dict[str, Any], list_key: str, single_key: str
    ) -> set[Any]:
        """Allowed set from a list key, or a single-value key."""
        values = requirement.get(list_key)
        if isinstance(values, list) and values:
            return set(values)
        single = requirement.get(single_key)
        return {single} if single else set()

    @staticmethod
    def _score_percent(achievement: AchievementData) -> float | None:
        """Stored score_percent, or score / max_score * 100."""
        stored = achievement.get(const.DATA_ACHIEVEMENT_SCORE_PERCENT)
        if is_number(stored):
            return stored
        score = achievement.get(const.DATA_ACHIEVEMENT_SCORE)
        max_score = achievement.get(const.DATA_ACHIEVEMENT_MAX_SCORE)
        if is_number(score) and is_number(max_score) and max_score > 0:
            return calculate_percentage(score, max_score, precision=None)
        return None

    @staticmethod
    def _age_at(context: EvaluationContext, year: int) -> int | None:
        """Profile age at Dec 31 of ``year``."""
        return dt_age_at_year_end(context.get("date_of_birth"), year)

    @staticmethod
    def _age_condition_matches(condition: Any, age: int | None) -> bool:
        """Evaluate {"gte", "gt", "lte", "lt", "eq"} bounds against ``age``."""
        if not isinstance(condition, dict) or age is None:
            return False
        checks = {
            "gte": lambda bound: age >= bound,
            "gt": lambda bound: age > bound,
            "lte": lambda bound: age <= bound,
            "lt": lambda bound: age < bound,
            "eq": lambda bound: age == bound,
        }
        for operator, check in checks.items():
            bound = condition.get(operator)
            if bound is not None and not check(bound):
                return False
        return True

    @staticmethod
    def _normalize_reference_ids(refs: Any) -> list[str]:
        """Accept ["id", {"medal_id": "id"}] style reference lists."""
        if not isinstance(refs, list):
            return []
        ids = []
        for ref in refs:
            if isinstance(ref, str) and ref:
                ids.append(ref)
            elif isinstance(ref, dict):
                medal_id = ref.get(const.DATA_PREREQ_MEDAL_ID) or ref.get("medalId")
                if medal_id:
                    ids.append(medal_id)
        return ids

    @staticmethod
    def _required_count(
        requirement: dict[str, Any],
        *keys: str,
        default: int = const.DEFAULT_MIN_ACHIEVEMENTS,
    ) -> int:
        """First numeric count among ``keys`` (min_achievements if none given)."""
        for key in keys or (const.DATA_REQ_MIN_ACHIEVEMENTS,):
            value = requirement.get(key)
            if is_number(value):
                return int(value)
        return default

    @staticmethod
    def _make_count_result(
        leaf_type: str,
        requirement: dict[str, Any],
        scope: EvaluationScope,
        candidates: list[AchievementData],
        required: int,
        *,
        age: int | None = None,
    ) -> LeafResult:
        """Create a standardized LeafResult for count-based leaves.

        Args:
            leaf_type: Requirement type tag
            requirement: Leaf requirement (for description and age categories)
            scope: Evaluation scope (candidate year)
            candidates: Achievements satisfying the leaf
            required: Number of matching achievements needed
            age: Profile age used for threshold resolution, if any

        Returns:
            LeafResult with progress and the first `required` matching ids
        """
        met = len(candidates) >= required
        result: LeafResult = {
            "type": leaf_type,
            "is_met": met,
            "description": requirement.get(const.DATA_REQ_DESCRIPTION),
            "progress": {"current": len(candidates), "required": required},
            "window_year": scope["year"] if met else None,
            "matching_achievement_ids": [
                a[const.DATA_ACHIEVEMENT_ID]
                for a in candidates[:required]
                if a.get(const.DATA_ACHIEVEMENT_ID)
            ],
        }
        if age is not None:
            result["age"] = age
        if requirement.get(const.DATA_REQ_AGE_CATEGORIES):
            category = RequirementEngine.resolve_age_category(requirement, age)
            result["matched_age_category"] = (
                category.get(const.DATA_AGE_CATEGORY_NAME) if category else None
            )
        return result

    @staticmethod
    def _make_unmet_result(
        leaf_type: str,
        requirement: dict[str, Any],
        reason: str,
        required: int | None = None,
    ) -> LeafResult:
        """Create an unmet LeafResult carrying a reason code."""
        result: LeafResult = {
            "type": leaf_type,
            "is_met": False,
            "description": requirement.get(const.DATA_REQ_DESCRIPTION),
            "reason": reason,
            "window_year": None,
        }
        if required is not None:
            result["progress"] = {"current": 0, "required": required}
        return result
