"""Entity normalization and validation helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Catalog entry defaults (medals, prerequisites)
- Requirement tree normalization (list / and / or / leaf specs)
- Achievement defaults and validation rules
- Profile defaults (feature flags, unlock records)

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes raw data (catalog JSON, form input, stored dicts)
- Applies field defaults
- Returns a complete dict ready for the engines

### Validation Functions
`validate_achievement_data()` performs business rule validation and returns a
dict of errors (empty if valid). It is the validation boundary in front of
the engines: stores call it before accepting an achievement.

Consumers:
- catalog.py (medal loading)
- store.py (achievement and profile stores)
- managers (snapshot building)
"""

from __future__ import annotations

from typing import Any, cast
import uuid

from . import const
from .type_defs import (
    AchievementData,
    MedalData,
    MedalPrerequisite,
    ProfileData,
    ProfileFeatures,
    RequirementNode,
    UnlockRecord,
)
from .utils.dt_utils import dt_current_year, dt_is_future, dt_now_iso, dt_year_of
from .utils.math_utils import is_number, within_bounds

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_list_field(value: Any) -> list[Any]:
    """Return ``value`` as a list; None and scalars become an empty list."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, tuple):
        return list(value)
    return []


def _normalize_references(value: Any) -> list[Any] | dict[str, Any]:
    """Keep reference lists and age-conditional {"when", "otherwise"} rules."""
    if isinstance(value, dict):
        return dict(value)
    return _normalize_list_field(value)


def _coerce_number(value: Any) -> float | int | None:
    """Coerce form-style numeric input ("32", 32, 32.0) to a number."""
    if is_number(value):
        return cast("float | int", value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() else number
    return None


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class AchievementValidationError(Exception):
    """Validation error with field-specific information for form highlighting.

    Attributes:
        field: The DATA_ACHIEVEMENT_* key that failed validation
        message: Human-readable error message
        errors: Every field error found, keyed by field
    """

    def __init__(
        self,
        field: str,
        message: str,
        errors: dict[str, str] | None = None,
    ) -> None:
        """Initialize AchievementValidationError.

        Args:
            field: The key of the first field that failed validation
            message: Error message for that field
            errors: Optional full error dict
        """
        self.field = field
        self.message = message
        self.errors = errors or {field: message}
        super().__init__(f"{field}: {message}")


# ==============================================================================
# REQUIREMENT TREES
# ==============================================================================


def normalize_requirement_spec(spec: Any) -> RequirementNode:
    """Normalize a catalog requirement spec into a boolean expression tree.

    - Lists become an implicit AND
    - ``{"and": [...]}`` and ``{"or": [...]}`` become operator nodes
    - Any other object is a leaf requirement with a ``type``
    - Groups with exactly one child collapse into that child

    Args:
        spec: Raw requirement spec from the catalog

    Returns:
        Normalized RequirementNode
    """
    if isinstance(spec, list):
        return _make_group(const.NODE_AND, spec)

    if isinstance(spec, dict):
        if _is_normalized(spec):
            return cast("RequirementNode", spec)
        if isinstance(spec.get(const.REQ_SPEC_AND), list):
            return _make_group(const.NODE_AND, spec[const.REQ_SPEC_AND])
        if isinstance(spec.get(const.REQ_SPEC_OR), list):
            return _make_group(const.NODE_OR, spec[const.REQ_SPEC_OR])
        requirement = dict(spec)
        per_year = requirement.get(const.DATA_REQ_PER_YEAR)
        if per_year is not None and not _is_normalized(per_year):
            # Sustained per-year subtrees are normalized together with the medal
            requirement[const.DATA_REQ_PER_YEAR] = normalize_requirement_spec(per_year)
        return {const.NODE_KEY: const.NODE_LEAF, const.NODE_REQUIREMENT: requirement}

    # Anything else is unusable; keep it as an empty leaf so evaluation
    # reports it as an unsupported requirement instead of failing.
    return {const.NODE_KEY: const.NODE_LEAF, const.NODE_REQUIREMENT: {}}


def _is_normalized(spec: Any) -> bool:
    """Whether ``spec`` already is a RequirementNode."""
    return isinstance(spec, dict) and spec.get(const.NODE_KEY) in (
        const.NODE_AND,
        const.NODE_OR,
        const.NODE_LEAF,
    )


def _make_group(kind: str, children: list[Any]) -> RequirementNode:
    """Build an AND/OR node, collapsing single-child groups."""
    normalized = [normalize_requirement_spec(child) for child in children]
    if len(normalized) == 1:
        return normalized[0]
    return cast(
        "RequirementNode",
        {const.NODE_KEY: kind, const.NODE_CHILDREN: normalized},
    )


def iter_requirement_leaves(node: RequirementNode) -> list[dict[str, Any]]:
    """Return every leaf requirement dict of a normalized tree, in order."""
    if node.get(const.NODE_KEY) == const.NODE_LEAF:
        return [node.get(const.NODE_REQUIREMENT) or {}]
    leaves: list[dict[str, Any]] = []
    for child in node.get(const.NODE_CHILDREN) or []:
        leaves.extend(iter_requirement_leaves(child))
    return leaves


# ==============================================================================
# MEDALS
# ==============================================================================


def build_prerequisite(raw: dict[str, Any]) -> MedalPrerequisite:
    """Normalize one prerequisite entry (``medalId`` accepted as alias)."""
    prereq: dict[str, Any] = {
        const.DATA_PREREQ_TYPE: raw.get(const.DATA_PREREQ_TYPE),
    }
    medal_id = raw.get(const.DATA_PREREQ_MEDAL_ID, raw.get("medalId"))
    if medal_id:
        prereq[const.DATA_PREREQ_MEDAL_ID] = medal_id
    for key in (
        const.DATA_PREREQ_YEAR_OFFSET,
        const.DATA_PREREQ_MIN_AGE,
        const.DATA_PREREQ_MAX_AGE,
        const.DATA_PREREQ_DESCRIPTION,
    ):
        if raw.get(key) is not None:
            prereq[key] = raw[key]
    return cast("MedalPrerequisite", prereq)


def build_medal(raw: dict[str, Any]) -> MedalData:
    """Build a normalized, immutable-by-convention catalog entry.

    The requirement tree is normalized exactly once here, so evaluation never
    has to re-detect list specs or redundant single-child groups.

    Args:
        raw: Medal dict as loaded from the catalog

    Returns:
        MedalData with every field defaulted
    """
    status = raw.get(const.DATA_MEDAL_STATUS)
    if status not in const.MEDAL_STATUS_OPTIONS:
        status = const.MEDAL_STATUS_REVIEWED

    medal_id = raw.get(const.DATA_MEDAL_ID, "")
    display_name = (
        raw.get(const.DATA_MEDAL_DISPLAY_NAME)
        or raw.get("displayName")
        or raw.get(const.DATA_MEDAL_NAME)
        or medal_id
    )

    medal: dict[str, Any] = {
        const.DATA_MEDAL_ID: medal_id,
        const.DATA_MEDAL_DISPLAY_NAME: display_name,
        const.DATA_MEDAL_TYPE: raw.get(const.DATA_MEDAL_TYPE, ""),
        const.DATA_MEDAL_TIER: raw.get(const.DATA_MEDAL_TIER),
        const.DATA_MEDAL_STATUS: status,
        const.DATA_MEDAL_REQUIREMENTS: normalize_requirement_spec(
            raw.get(const.DATA_MEDAL_REQUIREMENTS) or []
        ),
        const.DATA_MEDAL_PREREQUISITES: [
            build_prerequisite(p)
            for p in _normalize_list_field(raw.get(const.DATA_MEDAL_PREREQUISITES))
            if isinstance(p, dict)
        ],
        const.DATA_MEDAL_REFERENCES: _normalize_references(
            raw.get(const.DATA_MEDAL_REFERENCES)
        ),
        const.DATA_MEDAL_IS_TEAM_MEDAL: bool(
            raw.get(const.DATA_MEDAL_IS_TEAM_MEDAL, False)
        ),
        const.DATA_MEDAL_IS_EVENT_ONLY: bool(
            raw.get(const.DATA_MEDAL_IS_EVENT_ONLY, False)
        ),
        const.DATA_MEDAL_MUST_INCLUDE_CURRENT_YEAR: bool(
            raw.get(const.DATA_MEDAL_MUST_INCLUDE_CURRENT_YEAR, False)
        ),
        const.DATA_MEDAL_DESCRIPTION: raw.get(const.DATA_MEDAL_DESCRIPTION, ""),
    }
    if raw.get(const.DATA_MEDAL_NAME):
        medal[const.DATA_MEDAL_NAME] = raw[const.DATA_MEDAL_NAME]
    return cast("MedalData", medal)


def get_medal_full_name(medal: MedalData) -> str:
    """Human-readable display name with tier, e.g. "Pistol Mark (Silver)"."""
    display_name = medal.get(const.DATA_MEDAL_DISPLAY_NAME) or medal.get(
        const.DATA_MEDAL_ID, ""
    )
    tier = medal.get(const.DATA_MEDAL_TIER)
    if not tier:
        return display_name
    tier_name = str(tier).replace("_", " ", 1)
    return f"{display_name} ({tier_name[:1].upper()}{tier_name[1:]})"


# ==============================================================================
# ACHIEVEMENTS
# ==============================================================================

# Numeric fields coerced from form-style strings
_NUMERIC_ACHIEVEMENT_FIELDS = (
    const.DATA_ACHIEVEMENT_POINTS,
    const.DATA_ACHIEVEMENT_TOTAL_POINTS,
    const.DATA_ACHIEVEMENT_SCORE,
    const.DATA_ACHIEVEMENT_MAX_SCORE,
    const.DATA_ACHIEVEMENT_SCORE_PERCENT,
    const.DATA_ACHIEVEMENT_TIME_SECONDS,
    const.DATA_ACHIEVEMENT_HITS,
    const.DATA_ACHIEVEMENT_POSITION,
    const.DATA_ACHIEVEMENT_SERIES_COUNT,
)


def validate_achievement_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate achievement business rules - SINGLE SOURCE OF TRUTH.

    Works with DATA_ACHIEVEMENT_* keys after defaults have been applied.

    Args:
        data: Achievement dict

    Returns:
        Dict of errors: {field: message}. Empty dict means validation passed.

    Validation Rules:
        1. Type is a non-empty string
        2. Year is an integer between YEAR_MIN and the current year
        3. Weapon group is one of A/B/C/R
        4. Date (when present) parses and is not in the future
        5. Type-specific required fields and value bounds
    """
    errors: dict[str, str] = {}
    current_year = dt_current_year()

    achievement_type = data.get(const.DATA_ACHIEVEMENT_TYPE)
    if not achievement_type or not isinstance(achievement_type, str):
        errors[const.DATA_ACHIEVEMENT_TYPE] = "Invalid type"

    year = data.get(const.DATA_ACHIEVEMENT_YEAR)
    if (
        not isinstance(year, int)
        or isinstance(year, bool)
        or not const.YEAR_MIN <= year <= current_year
    ):
        errors[const.DATA_ACHIEVEMENT_YEAR] = (
            f"Year must be between {const.YEAR_MIN} and {current_year}"
        )

    if data.get(const.DATA_ACHIEVEMENT_WEAPON_GROUP) not in const.WEAPON_GROUPS:
        errors[const.DATA_ACHIEVEMENT_WEAPON_GROUP] = (
            "Invalid weapon group. Must be A, B, C, or R."
        )

    date_str = data.get(const.DATA_ACHIEVEMENT_DATE)
    if date_str and dt_is_future(date_str):
        errors[const.DATA_ACHIEVEMENT_DATE] = "Date is invalid or in the future"

    errors.update(_validate_type_specific_fields(achievement_type, data))
    return errors


def _validate_type_specific_fields(
    achievement_type: Any, data: dict[str, Any]
) -> dict[str, str]:
    """Required fields and value domains per achievement type."""
    errors: dict[str, str] = {}
    points = data.get(const.DATA_ACHIEVEMENT_POINTS)
    score = data.get(const.DATA_ACHIEVEMENT_SCORE)

    if achievement_type == const.ACHIEVEMENT_TYPE_PRECISION_SERIES:
        if not within_bounds(points, 0, const.PRECISION_SERIES_POINTS_MAX):
            errors[const.DATA_ACHIEVEMENT_POINTS] = "Points must be between 0 and 50"

    elif achievement_type == const.ACHIEVEMENT_TYPE_SPEED_SHOOTING_SERIES:
        if not within_bounds(points, 0, const.SPEED_SHOOTING_POINTS_MAX):
            errors[const.DATA_ACHIEVEMENT_POINTS] = "Points must be between 0 and 50"

    elif achievement_type == const.ACHIEVEMENT_TYPE_AIR_PISTOL_PRECISION:
        if not within_bounds(points, 0, const.AIR_PISTOL_POINTS_MAX):
            errors[const.DATA_ACHIEVEMENT_POINTS] = "Points must be between 0 and 100"

    elif achievement_type == const.ACHIEVEMENT_TYPE_RUNNING_SHOOTING_COURSE:
        if not within_bounds(points, 0, None):
            errors[const.DATA_ACHIEVEMENT_POINTS] = "Points cannot be negative"

    elif achievement_type == const.ACHIEVEMENT_TYPE_SHOOTING_ROUND:
        total = data.get(const.DATA_ACHIEVEMENT_TOTAL_POINTS)
        if not within_bounds(total, 0, const.SHOOTING_ROUND_POINTS_MAX):
            errors[const.DATA_ACHIEVEMENT_TOTAL_POINTS] = (
                "Total points must be between 0 and 150"
            )

    elif achievement_type == const.ACHIEVEMENT_TYPE_APPLICATION_SERIES:
        hits = data.get(const.DATA_ACHIEVEMENT_HITS)
        time_seconds = data.get(const.DATA_ACHIEVEMENT_TIME_SECONDS)
        if not within_bounds(hits, 0, None):
            errors[const.DATA_ACHIEVEMENT_HITS] = "Hits cannot be negative"
        if not is_number(time_seconds) or time_seconds <= 0:
            errors[const.DATA_ACHIEVEMENT_TIME_SECONDS] = "Time must be positive"

    elif achievement_type == const.ACHIEVEMENT_TYPE_STANDARD_MEDAL:
        if not data.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE):
            errors[const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE] = "Discipline is required"
        if data.get(const.DATA_ACHIEVEMENT_MEDAL_TYPE) not in (
            const.STANDARD_MEDAL_TIER_ORDER
        ):
            errors[const.DATA_ACHIEVEMENT_MEDAL_TYPE] = (
                "Medal type must be bronze, silver or gold"
            )

    elif achievement_type == const.ACHIEVEMENT_TYPE_COMPETITION_RESULT:
        if not within_bounds(score, 0, None):
            errors[const.DATA_ACHIEVEMENT_SCORE] = "Enter a valid score/points"
        discipline = data.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE)
        if discipline == const.DISCIPLINE_TYPE_PPC and not data.get(
            const.DATA_ACHIEVEMENT_PPC_CLASS
        ):
            errors[const.DATA_ACHIEVEMENT_PPC_CLASS] = "PPC class is required"
        series_count = data.get(const.DATA_ACHIEVEMENT_SERIES_COUNT)
        if (
            series_count is not None
            and series_count not in const.ALLOWED_SERIES_COUNTS
        ):
            errors[const.DATA_ACHIEVEMENT_SERIES_COUNT] = (
                "Series count must be 6, 7 or 10"
            )

    elif achievement_type == const.ACHIEVEMENT_TYPE_QUALIFICATION_RESULT:
        if not data.get(const.DATA_ACHIEVEMENT_WEAPON):
            errors[const.DATA_ACHIEVEMENT_WEAPON] = "Weapon is required"
        if not is_number(score):
            errors[const.DATA_ACHIEVEMENT_SCORE] = "Enter a valid score"

    elif achievement_type == const.ACHIEVEMENT_TYPE_TEAM_EVENT:
        if not data.get(const.DATA_ACHIEVEMENT_TEAM_NAME):
            errors[const.DATA_ACHIEVEMENT_TEAM_NAME] = "Team name is required"
        if not within_bounds(
            data.get(const.DATA_ACHIEVEMENT_POSITION),
            const.TEAM_POSITION_MIN,
            const.TEAM_POSITION_MAX,
        ):
            errors[const.DATA_ACHIEVEMENT_POSITION] = (
                "Enter a valid position (1-100)"
            )

    elif achievement_type == const.ACHIEVEMENT_TYPE_EVENT:
        if not data.get(const.DATA_ACHIEVEMENT_EVENT_NAME):
            errors[const.DATA_ACHIEVEMENT_EVENT_NAME] = "Event name is required"

    elif achievement_type == const.ACHIEVEMENT_TYPE_COMPETITION_PERFORMANCE:
        discipline = data.get(const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE)
        if discipline in const.LOWER_IS_BETTER_DISCIPLINES:
            if not within_bounds(points, 0, None):
                errors[const.DATA_ACHIEVEMENT_POINTS] = "Points cannot be negative"
        elif discipline == const.DISCIPLINE_TYPE_FIELD:
            max_score = data.get(const.DATA_ACHIEVEMENT_MAX_SCORE)
            if not within_bounds(score, 0, None):
                errors[const.DATA_ACHIEVEMENT_SCORE] = "Enter a valid score"
            if not is_number(max_score) or max_score <= 0:
                errors[const.DATA_ACHIEVEMENT_MAX_SCORE] = "Enter a valid max score"
            elif is_number(score) and score > max_score:
                errors[const.DATA_ACHIEVEMENT_SCORE] = "Score exceeds max score"
        else:
            errors[const.DATA_ACHIEVEMENT_DISCIPLINE_TYPE] = "Discipline is required"

    return errors


def build_achievement(
    user_input: dict[str, Any],
    existing: AchievementData | None = None,
    *,
    validate: bool = False,
) -> AchievementData:
    """Build achievement data for create or update operations.

    One function handles both create (existing=None) and update.
    - ``year`` is derived from ``date`` when not given as a number
    - ``weapon_group`` defaults to "A"
    - numeric fields given as strings are coerced

    Args:
        user_input: Raw achievement fields (form input or import)
        existing: Current achievement when updating
        validate: Raise AchievementValidationError if business rules fail

    Returns:
        AchievementData ready for the store

    Raises:
        AchievementValidationError: when ``validate`` is set and data is invalid
    """
    now_iso = dt_now_iso()
    data: dict[str, Any] = dict(existing) if existing else {}
    data.update(user_input)

    if not data.get(const.DATA_ACHIEVEMENT_ID):
        data[const.DATA_ACHIEVEMENT_ID] = f"achievement-{uuid.uuid4()}"

    year = _coerce_number(data.get(const.DATA_ACHIEVEMENT_YEAR))
    if year is None or not float(year).is_integer():
        year = dt_year_of(data.get(const.DATA_ACHIEVEMENT_DATE))
    data[const.DATA_ACHIEVEMENT_YEAR] = int(year) if year is not None else None

    if not data.get(const.DATA_ACHIEVEMENT_WEAPON_GROUP):
        data[const.DATA_ACHIEVEMENT_WEAPON_GROUP] = const.DEFAULT_WEAPON_GROUP

    for field in _NUMERIC_ACHIEVEMENT_FIELDS:
        if field in data and data[field] is not None and not is_number(data[field]):
            coerced = _coerce_number(data[field])
            if coerced is None:
                data.pop(field)
            else:
                data[field] = coerced

    participants = data.get(const.DATA_ACHIEVEMENT_PARTICIPANTS)
    if participants is not None:
        data[const.DATA_ACHIEVEMENT_PARTICIPANTS] = [
            str(p) for p in _normalize_list_field(participants) if p
        ]

    data.setdefault(const.DATA_ACHIEVEMENT_NOTES, "")
    data.setdefault(const.DATA_ACHIEVEMENT_CREATED_AT, now_iso)
    data[const.DATA_ACHIEVEMENT_UPDATED_AT] = now_iso

    if validate:
        errors = validate_achievement_data(data)
        if errors:
            field, message = next(iter(errors.items()))
            raise AchievementValidationError(field, message, errors)

    return cast("AchievementData", data)


# ==============================================================================
# PROFILES
# ==============================================================================


def build_features(raw: dict[str, Any] | None) -> ProfileFeatures:
    """Merge profile feature flags over the defaults."""
    features = dict(const.DEFAULT_PROFILE_FEATURES)
    for key in const.DEFAULT_PROFILE_FEATURES:
        if raw and key in raw:
            features[key] = bool(raw[key])
    return cast("ProfileFeatures", features)


def build_unlock_record(
    medal_id: str,
    unlocked_date: str,
    achievement_ids: list[str] | None = None,
) -> UnlockRecord:
    """Build one unlock record (the receipt ids are optional)."""
    record: dict[str, Any] = {
        const.DATA_UNLOCK_MEDAL_ID: medal_id,
        const.DATA_UNLOCK_DATE: unlocked_date,
    }
    if achievement_ids:
        record[const.DATA_UNLOCK_ACHIEVEMENT_IDS] = list(achievement_ids)
    return cast("UnlockRecord", record)


def build_profile(user_input: dict[str, Any] | None = None) -> ProfileData:
    """Build a profile with defaults.

    Duplicate unlock records for the same medal are dropped (first wins), so
    ``unlocked_medals`` stays keyed uniquely by medal id.
    """
    raw = dict(user_input or {})

    unlocked: list[UnlockRecord] = []
    seen: set[str] = set()
    for record in _normalize_list_field(raw.get(const.DATA_PROFILE_UNLOCKED_MEDALS)):
        if not isinstance(record, dict):
            continue
        medal_id = record.get(const.DATA_UNLOCK_MEDAL_ID)
        if not medal_id or medal_id in seen:
            continue
        seen.add(medal_id)
        unlocked.append(cast("UnlockRecord", dict(record)))

    profile: dict[str, Any] = {
        const.DATA_PROFILE_USER_ID: raw.get(const.DATA_PROFILE_USER_ID)
        or f"user-{uuid.uuid4()}",
        const.DATA_PROFILE_DISPLAY_NAME: raw.get(const.DATA_PROFILE_DISPLAY_NAME, ""),
        const.DATA_PROFILE_DATE_OF_BIRTH: raw.get(const.DATA_PROFILE_DATE_OF_BIRTH)
        or "",
        const.DATA_PROFILE_SEX: raw.get(const.DATA_PROFILE_SEX),
        const.DATA_PROFILE_PREREQUISITES: [
            a
            for a in _normalize_list_field(raw.get(const.DATA_PROFILE_PREREQUISITES))
            if isinstance(a, dict)
        ],
        const.DATA_PROFILE_UNLOCKED_MEDALS: unlocked,
        const.DATA_PROFILE_FEATURES: build_features(
            raw.get(const.DATA_PROFILE_FEATURES)
        ),
        const.DATA_PROFILE_IS_GUEST: bool(raw.get(const.DATA_PROFILE_IS_GUEST, False)),
        const.DATA_PROFILE_LAST_MODIFIED: raw.get(const.DATA_PROFILE_LAST_MODIFIED)
        or dt_now_iso(),
    }
    return cast("ProfileData", profile)


def build_guest_profile() -> ProfileData:
    """Profile used when no profile is selected."""
    return build_profile(
        {const.DATA_PROFILE_USER_ID: const.GUEST_USER_ID, const.DATA_PROFILE_IS_GUEST: True}
    )
