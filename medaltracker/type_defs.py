"""Type definitions for medal tracker data structures.

TypedDict is used for structures whose keys are fixed at design time (catalog
entries, achievements, profiles, evaluation results). Leaf requirements carry
type-specific threshold fields, so they are typed loosely as
``dict[str, Any]`` with the shared keys documented on ``RequirementLeaf``.

This file must NOT import from engines, managers or stores to avoid circular
dependencies. Only import from typing.

NOTE: TypedDict is STATIC ANALYSIS ONLY. All runtime defensiveness (``.get()``
defaults, type checks on achievement fields) stays in the engines.
"""

from collections.abc import Callable
from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

MedalId = str
AchievementId = str
ISODate = str  # ISO 8601 date string (no time) "2025-06-15"
WeaponGroup = Literal["A", "B", "C", "R"]
MedalStatus = Literal["locked", "available", "eligible", "unlocked"]

# prerequisite medal id -> ids of medals that list it as a prerequisite
DependencyIndex = dict[MedalId, set[MedalId]]


# =============================================================================
# Catalog
# =============================================================================


class AgeCategory(TypedDict):
    """Age-bounded threshold override for a leaf requirement.

    Any threshold key present here (point_thresholds, thresholds, max_points,
    ...) replaces the leaf's own value of the same key.
    """

    name: NotRequired[str]
    age_min: NotRequired[int]
    age_max: NotRequired[int]
    point_thresholds: NotRequired[dict[str, dict[str, float]]]
    thresholds: NotRequired[dict[str, dict[str, float]]]
    max_points: NotRequired[dict[str, float]]


class RequirementLeaf(TypedDict):
    """Shared leaf keys; type-specific thresholds are extra keys."""

    type: str
    description: NotRequired[str]
    min_achievements: NotRequired[int]
    time_window_years: NotRequired[int]
    age_categories: NotRequired[list[AgeCategory]]


class RequirementNode(TypedDict):
    """Normalized requirement tree node (discriminated by ``node``)."""

    node: Literal["and", "or", "leaf"]
    children: NotRequired[list["RequirementNode"]]
    requirement: NotRequired[dict[str, Any]]


class MedalPrerequisite(TypedDict):
    """Prerequisite entry: another medal, or an age constraint."""

    type: Literal["medal", "age_requirement"]
    medal_id: NotRequired[MedalId]
    year_offset: NotRequired[int]
    min_age: NotRequired[int]
    max_age: NotRequired[int]
    description: NotRequired[str]


class MedalData(TypedDict):
    """Immutable catalog entry after normalization."""

    id: MedalId
    display_name: str
    name: NotRequired[str]
    type: str
    tier: NotRequired[str | None]
    status: str
    requirements: RequirementNode
    prerequisites: list[MedalPrerequisite]
    references: NotRequired[list[Any] | dict[str, Any]]
    is_team_medal: bool
    is_event_only: bool
    must_include_current_year: NotRequired[bool]
    description: NotRequired[str]


# =============================================================================
# Profile & Achievements
# =============================================================================


class AchievementData(TypedDict):
    """Logged achievement; type-specific fields are optional."""

    id: AchievementId
    type: str
    year: int
    weapon_group: WeaponGroup
    date: NotRequired[ISODate]
    medal_id: NotRequired[MedalId | None]
    notes: NotRequired[str]
    points: NotRequired[float]
    total_points: NotRequired[float]
    score: NotRequired[float]
    max_score: NotRequired[float]
    score_percent: NotRequired[float]
    time_seconds: NotRequired[float]
    hits: NotRequired[int]
    discipline_type: NotRequired[str]
    medal_type: NotRequired[str]
    competition_type: NotRequired[str]
    competition_name: NotRequired[str]
    ppc_class: NotRequired[str]
    series_count: NotRequired[int]
    weapon: NotRequired[str]
    team_name: NotRequired[str]
    position: NotRequired[int]
    participants: NotRequired[list[str]]
    event_name: NotRequired[str]
    created_at: NotRequired[str]
    updated_at: NotRequired[str]


class UnlockRecord(TypedDict):
    """One entry of ``ProfileData.unlocked_medals`` (unique per medal)."""

    medal_id: MedalId
    unlocked_date: ISODate
    year: NotRequired[int]
    achievement_ids: NotRequired[list[AchievementId]]


class ProfileFeatures(TypedDict):
    """Per-profile feature flags threaded into evaluation."""

    allow_manual_unlock: bool
    enforce_current_year_for_sustained: bool


class ProfileData(TypedDict):
    """User profile. ``prerequisites`` is the achievement list."""

    user_id: str
    display_name: str
    date_of_birth: str
    sex: NotRequired[str | None]
    prerequisites: list[AchievementData]
    unlocked_medals: list[UnlockRecord]
    features: ProfileFeatures
    is_guest: bool
    last_modified: NotRequired[str]


# =============================================================================
# Evaluation Context
# =============================================================================


class EvaluationContext(TypedDict):
    """Consistent snapshot handed to engines by managers.

    Engines never read stores; everything they need is here.
    """

    achievements: list[AchievementData]
    date_of_birth: str | None
    sex: str | None
    features: ProfileFeatures
    # medal_id -> unlock year (records without a parsable date are omitted)
    unlocked_years: dict[MedalId, int]
    unlocked_dates: dict[MedalId, ISODate]
    medals_by_id: dict[MedalId, MedalData]
    current_year: int


class EvaluationScope(TypedDict):
    """Per-call evaluation parameters for one candidate year."""

    year: int
    medal: MedalData | None
    min_start_year: int | None
    # medal ids whose trees are being evaluated through sustained references
    reference_chain: NotRequired[tuple[MedalId, ...]]


# Custom criterion handler: (params dict) -> bool or {"is_met": bool}
CustomCriterionHandler = Callable[[dict[str, Any]], Any]


# =============================================================================
# Evaluation Results
# =============================================================================


class Progress(TypedDict):
    """Count-based leaf progress, e.g. 2 of 3 series."""

    current: int
    required: int


class GroupProgress(TypedDict):
    """AND/OR group progress: satisfied children out of all children."""

    met: int
    total: int


class LeafResult(TypedDict):
    """Result of one leaf evaluator."""

    type: str
    is_met: bool
    description: NotRequired[str | None]
    progress: NotRequired[Progress]
    reason: NotRequired[str]
    window_year: NotRequired[int | None]
    matching_achievement_ids: NotRequired[list[AchievementId]]
    age: NotRequired[int]
    matched_age_category: NotRequired[str | None]
    error: NotRequired[str]


class NodeResult(TypedDict):
    """Evaluated requirement tree node."""

    node: Literal["and", "or", "leaf"]
    is_met: bool
    progress: NotRequired[GroupProgress]
    children: NotRequired[list["NodeResult"]]
    leaf: NotRequired[LeafResult]


class DetailItem(TypedDict):
    """One met/missing item shown in medal details."""

    kind: Literal["requirement", "prerequisite"]
    type: str
    is_met: bool
    description: NotRequired[str | None]
    progress: NotRequired[Progress]
    medal_id: NotRequired[MedalId]
    reason: NotRequired[str]


class PrerequisiteCheck(TypedDict):
    """Single-year prerequisite + requirement tree check."""

    all_met: bool
    year: int
    items: list[DetailItem]
    missing_items: list[DetailItem]
    tree: NodeResult


class MedalDetails(TypedDict):
    """Detail payload shared by summary and detail views."""

    items: list[DetailItem]
    missing_items: list[DetailItem]
    missing_medals: NotRequired[list[MedalId]]


class MedalEvaluation(TypedDict):
    """Status of one medal for one profile snapshot."""

    medal_id: MedalId
    status: MedalStatus
    details: MedalDetails
    reason: NotRequired[str]
    eligible_year: NotRequired[int | None]
    unlocked_date: NotRequired[ISODate | None]


class StatusBuckets(TypedDict):
    """All medals bucketed by status."""

    locked: list[MedalEvaluation]
    available: list[MedalEvaluation]
    eligible: list[MedalEvaluation]
    unlocked: list[MedalEvaluation]


class RemovalCheck(TypedDict):
    """Whether an unlocked medal can be re-locked."""

    can_remove: bool
    blocking: list[MedalId]


class RemovalResult(TypedDict):
    """Outcome of a re-lock attempt."""

    ok: bool
    blocking: NotRequired[list[MedalId]]
    reason: NotRequired[str]


class UnlockResult(TypedDict):
    """Outcome of an unlock attempt."""

    ok: bool
    year: NotRequired[int | None]
    unlocked_date: NotRequired[ISODate]
    achievement_ids: NotRequired[list[AchievementId]]
    manual: NotRequired[bool]
    reason: NotRequired[str]


class Receipt(TypedDict):
    """Achievements credited toward an unlock."""

    medal_id: MedalId
    unlocked_date: ISODate | None
    achievements: list[AchievementData]
    stale_ids: list[AchievementId]
