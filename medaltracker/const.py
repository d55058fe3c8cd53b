# File: const.py
"""Constants for the medal tracker.

This file centralizes data keys, achievement type tags, requirement node kinds,
statuses, reason codes and defaults for consistency across engines, managers
and stores.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General Information
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Catalog file discovery
CATALOG_FILE_GLOB = "*.medals.json"

# ------------------------------------------------------------------------------------------------
# Medal Catalog Keys
# ------------------------------------------------------------------------------------------------
DATA_MEDALS = "medals"

DATA_MEDAL_ID = "id"
DATA_MEDAL_DISPLAY_NAME = "display_name"
DATA_MEDAL_NAME = "name"
DATA_MEDAL_TYPE = "type"
DATA_MEDAL_TIER = "tier"
DATA_MEDAL_STATUS = "status"
DATA_MEDAL_REQUIREMENTS = "requirements"
DATA_MEDAL_PREREQUISITES = "prerequisites"
DATA_MEDAL_REFERENCES = "references"
DATA_MEDAL_IS_TEAM_MEDAL = "is_team_medal"
DATA_MEDAL_IS_EVENT_ONLY = "is_event_only"
DATA_MEDAL_MUST_INCLUDE_CURRENT_YEAR = "must_include_current_year"
DATA_MEDAL_DESCRIPTION = "description"

# Catalog review status (placeholders are never actionable)
MEDAL_STATUS_PLACEHOLDER = "placeholder"
MEDAL_STATUS_UNDER_REVIEW = "under_review"
MEDAL_STATUS_REVIEWED = "reviewed"
MEDAL_STATUS_OPTIONS = [
    MEDAL_STATUS_PLACEHOLDER,
    MEDAL_STATUS_UNDER_REVIEW,
    MEDAL_STATUS_REVIEWED,
]

# Prerequisite entries
DATA_PREREQ_TYPE = "type"
DATA_PREREQ_MEDAL_ID = "medal_id"
DATA_PREREQ_YEAR_OFFSET = "year_offset"
DATA_PREREQ_MIN_AGE = "min_age"
DATA_PREREQ_MAX_AGE = "max_age"
DATA_PREREQ_DESCRIPTION = "description"

PREREQ_TYPE_MEDAL = "medal"
PREREQ_TYPE_AGE_REQUIREMENT = "age_requirement"

# ------------------------------------------------------------------------------------------------
# Requirement Tree Keys
# ------------------------------------------------------------------------------------------------
# Raw catalog spec operators
REQ_SPEC_AND = "and"
REQ_SPEC_OR = "or"

# Normalized node kinds
NODE_KEY = "node"
NODE_CHILDREN = "children"
NODE_REQUIREMENT = "requirement"
NODE_AND = "and"
NODE_OR = "or"
NODE_LEAF = "leaf"

# Leaf fields
DATA_REQ_TYPE = "type"
DATA_REQ_DESCRIPTION = "description"
DATA_REQ_MIN_ACHIEVEMENTS = "min_achievements"
DATA_REQ_MIN_COMPETITIONS = "min_competitions"
DATA_REQ_MIN_SERIES = "min_series"
DATA_REQ_TIME_WINDOW_YEARS = "time_window_years"
DATA_REQ_AGE_CATEGORIES = "age_categories"
DATA_REQ_POINT_THRESHOLDS = "point_thresholds"
DATA_REQ_THRESHOLDS = "thresholds"
DATA_REQ_TOTAL_POINT_THRESHOLDS = "total_point_thresholds"
DATA_REQ_PPC_THRESHOLDS = "ppc_thresholds"
DATA_REQ_SERIES_BASED_THRESHOLDS = "series_based_thresholds"
DATA_REQ_POINT_THRESHOLD_PERCENT = "point_threshold_percent"
DATA_REQ_MAX_POINTS = "max_points"
DATA_REQ_MIN_POINTS_PER_SERIES = "min_points_per_series"
DATA_REQ_MIN_POINTS_PER_YEAR = "min_points_per_year"
DATA_REQ_MIN_SCORE = "min_score"
DATA_REQ_MAX_POSITION = "max_position"
DATA_REQ_DISCIPLINE_TYPE = "discipline_type"
DATA_REQ_DISCIPLINE_TYPES = "discipline_types"
DATA_REQ_COMPETITION_TYPE = "competition_type"
DATA_REQ_COMPETITION_TYPES = "competition_types"
DATA_REQ_MEDAL_TIER = "medal_tier"
DATA_REQ_WEAPON = "weapon"
DATA_REQ_EVENT_NAME = "event_name"
DATA_REQ_YEARS_OF_ACHIEVEMENT = "years_of_achievement"
DATA_REQ_MUST_INCLUDE_CURRENT_YEAR = "must_include_current_year"
DATA_REQ_CONSECUTIVE = "consecutive"
DATA_REQ_PER_YEAR = "per_year"
DATA_REQ_REFERENCES = "references"
DATA_REQ_NAME = "name"
DATA_REQ_PARAMS = "params"

# Threshold sub-keys
THRESHOLD_MIN = "min"
THRESHOLD_MIN_HITS = "min_hits"
THRESHOLD_MAX_TIME_SECONDS = "max_time_seconds"

# Age category fields
DATA_AGE_CATEGORY_NAME = "name"
DATA_AGE_CATEGORY_AGE_MIN = "age_min"
DATA_AGE_CATEGORY_AGE_MAX = "age_max"

AGE_MIN_DEFAULT = 0
AGE_MAX_DEFAULT = 999

# Sustained reference rules
DATA_REFS_WHEN = "when"
DATA_REFS_IF = "if"
DATA_REFS_REFS = "refs"
DATA_REFS_OTHERWISE = "otherwise"
DATA_REFS_AGE = "age"

# ------------------------------------------------------------------------------------------------
# Achievement Types
# ------------------------------------------------------------------------------------------------
ACHIEVEMENT_TYPE_PRECISION_SERIES = "precision_series"
ACHIEVEMENT_TYPE_APPLICATION_SERIES = "application_series"
ACHIEVEMENT_TYPE_SHOOTING_ROUND = "shooting_round"
ACHIEVEMENT_TYPE_SPEED_SHOOTING_SERIES = "speed_shooting_series"
ACHIEVEMENT_TYPE_STANDARD_MEDAL = "standard_medal"
ACHIEVEMENT_TYPE_COMPETITION_RESULT = "competition_result"
ACHIEVEMENT_TYPE_QUALIFICATION_RESULT = "qualification_result"
ACHIEVEMENT_TYPE_TEAM_EVENT = "team_event"
ACHIEVEMENT_TYPE_EVENT = "event"
ACHIEVEMENT_TYPE_CUSTOM = "custom"
ACHIEVEMENT_TYPE_COMPETITION_PERFORMANCE = "competition_performance"
ACHIEVEMENT_TYPE_AIR_PISTOL_PRECISION = "air_pistol_precision"
ACHIEVEMENT_TYPE_RUNNING_SHOOTING_COURSE = "running_shooting_course"

# Requirement-only leaf types (no achievement of this type is ever logged)
REQUIREMENT_TYPE_SUSTAINED_ACHIEVEMENT = "sustained_achievement"
REQUIREMENT_TYPE_SUSTAINED_REFERENCE = "sustained_reference"
REQUIREMENT_TYPE_CUMULATIVE_COMPETITION_SCORE = "cumulative_competition_score"
REQUIREMENT_TYPE_CUSTOM_CRITERION = "custom_criterion"

# ------------------------------------------------------------------------------------------------
# Achievement Keys
# ------------------------------------------------------------------------------------------------
DATA_ACHIEVEMENT_ID = "id"
DATA_ACHIEVEMENT_TYPE = "type"
DATA_ACHIEVEMENT_YEAR = "year"
DATA_ACHIEVEMENT_DATE = "date"
DATA_ACHIEVEMENT_WEAPON_GROUP = "weapon_group"
DATA_ACHIEVEMENT_MEDAL_ID = "medal_id"
DATA_ACHIEVEMENT_NOTES = "notes"
DATA_ACHIEVEMENT_POINTS = "points"
DATA_ACHIEVEMENT_TOTAL_POINTS = "total_points"
DATA_ACHIEVEMENT_SCORE = "score"
DATA_ACHIEVEMENT_MAX_SCORE = "max_score"
DATA_ACHIEVEMENT_SCORE_PERCENT = "score_percent"
DATA_ACHIEVEMENT_TIME_SECONDS = "time_seconds"
DATA_ACHIEVEMENT_HITS = "hits"
DATA_ACHIEVEMENT_DISCIPLINE_TYPE = "discipline_type"
DATA_ACHIEVEMENT_MEDAL_TYPE = "medal_type"
DATA_ACHIEVEMENT_COMPETITION_TYPE = "competition_type"
DATA_ACHIEVEMENT_COMPETITION_NAME = "competition_name"
DATA_ACHIEVEMENT_PPC_CLASS = "ppc_class"
DATA_ACHIEVEMENT_SERIES_COUNT = "series_count"
DATA_ACHIEVEMENT_WEAPON = "weapon"
DATA_ACHIEVEMENT_TEAM_NAME = "team_name"
DATA_ACHIEVEMENT_POSITION = "position"
DATA_ACHIEVEMENT_PARTICIPANTS = "participants"
DATA_ACHIEVEMENT_EVENT_NAME = "event_name"
DATA_ACHIEVEMENT_CREATED_AT = "created_at"
DATA_ACHIEVEMENT_UPDATED_AT = "updated_at"

# Weapon groups
WEAPON_GROUP_A = "A"
WEAPON_GROUP_B = "B"
WEAPON_GROUP_C = "C"
WEAPON_GROUP_R = "R"
WEAPON_GROUPS = [WEAPON_GROUP_A, WEAPON_GROUP_B, WEAPON_GROUP_C, WEAPON_GROUP_R]
DEFAULT_WEAPON_GROUP = WEAPON_GROUP_A

# Standard medal tiers, lowest first
STANDARD_MEDAL_TIER_BRONZE = "bronze"
STANDARD_MEDAL_TIER_SILVER = "silver"
STANDARD_MEDAL_TIER_GOLD = "gold"
STANDARD_MEDAL_TIER_ORDER = [
    STANDARD_MEDAL_TIER_BRONZE,
    STANDARD_MEDAL_TIER_SILVER,
    STANDARD_MEDAL_TIER_GOLD,
]

# Disciplines
DISCIPLINE_TYPE_PPC = "ppc"
DISCIPLINE_TYPE_FIELD = "field"
DISCIPLINE_TYPE_RUNNING = "running"
DISCIPLINE_TYPE_SKIING = "skiing"
LOWER_IS_BETTER_DISCIPLINES = [DISCIPLINE_TYPE_RUNNING, DISCIPLINE_TYPE_SKIING]

ALLOWED_SERIES_COUNTS = [6, 7, 10]

# Value bounds per achievement type (inclusive); None means unbounded
PRECISION_SERIES_POINTS_MAX = 50
SPEED_SHOOTING_POINTS_MAX = 50
AIR_PISTOL_POINTS_MAX = 100
SHOOTING_ROUND_POINTS_MAX = 150
TEAM_POSITION_MIN = 1
TEAM_POSITION_MAX = 100

# Dates
YEAR_MIN = 1900

# ------------------------------------------------------------------------------------------------
# Profile Keys
# ------------------------------------------------------------------------------------------------
DATA_PROFILE_USER_ID = "user_id"
DATA_PROFILE_DISPLAY_NAME = "display_name"
DATA_PROFILE_DATE_OF_BIRTH = "date_of_birth"
DATA_PROFILE_SEX = "sex"
DATA_PROFILE_PREREQUISITES = "prerequisites"
DATA_PROFILE_UNLOCKED_MEDALS = "unlocked_medals"
DATA_PROFILE_FEATURES = "features"
DATA_PROFILE_IS_GUEST = "is_guest"
DATA_PROFILE_LAST_MODIFIED = "last_modified"

DATA_UNLOCK_MEDAL_ID = "medal_id"
DATA_UNLOCK_DATE = "unlocked_date"
DATA_UNLOCK_YEAR = "year"
DATA_UNLOCK_ACHIEVEMENT_IDS = "achievement_ids"

FEATURE_ALLOW_MANUAL_UNLOCK = "allow_manual_unlock"
FEATURE_ENFORCE_CURRENT_YEAR_FOR_SUSTAINED = "enforce_current_year_for_sustained"
DEFAULT_PROFILE_FEATURES = {
    FEATURE_ALLOW_MANUAL_UNLOCK: False,
    FEATURE_ENFORCE_CURRENT_YEAR_FOR_SUSTAINED: False,
}

SEX_MALE = "male"
SEX_FEMALE = "female"
SEX_OPTIONS = [SEX_MALE, SEX_FEMALE]

GUEST_USER_ID = "guest"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_MIN_ACHIEVEMENTS = 1
DEFAULT_SUSTAINED_YEARS = 3
DEFAULT_SUSTAINED_PER_YEAR_YEARS = 1
DEFAULT_MIN_POINTS_PER_YEAR = 0

# ------------------------------------------------------------------------------------------------
# Medal Statuses
# ------------------------------------------------------------------------------------------------
STATUS_LOCKED = "locked"
STATUS_AVAILABLE = "available"
STATUS_ELIGIBLE = "eligible"
STATUS_UNLOCKED = "unlocked"
STATUS_ORDER = [STATUS_LOCKED, STATUS_AVAILABLE, STATUS_ELIGIBLE, STATUS_UNLOCKED]

# ------------------------------------------------------------------------------------------------
# Reason Codes
# ------------------------------------------------------------------------------------------------
REASON_PLACEHOLDER = "placeholder"
REASON_PREREQUISITES_NOT_MET = "prerequisites_not_met"
REASON_REQUIREMENTS_NOT_MET = "requirements_not_met"
REASON_UNSUPPORTED_REQUIREMENT_TYPE = "unsupported_requirement_type"
REASON_PROFILE_INCOMPLETE = "profile_incomplete"
REASON_MISSING_THRESHOLDS = "missing_thresholds"
REASON_CURRENT_YEAR_REQUIRED = "current_year_required"
REASON_NO_REFERENCES = "no_references"
REASON_UNKNOWN_CUSTOM_CRITERION = "unknown_custom_criterion"
REASON_CUSTOM_CRITERION_ERROR = "custom_criterion_error"
REASON_ALREADY_UNLOCKED = "already_unlocked"
REASON_NOT_ELIGIBLE = "not_eligible"
REASON_INVALID_YEAR = "invalid_year"
REASON_BLOCKED_BY_DEPENDENTS = "blocked_by_dependents"
REASON_NOT_UNLOCKED = "not_unlocked"

# ------------------------------------------------------------------------------------------------
# Storage Keys
# ------------------------------------------------------------------------------------------------
DATA_PROFILES = "profiles"
DATA_CURRENT_USER_ID = "current_user_id"
