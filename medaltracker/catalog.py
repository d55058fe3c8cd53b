# File: catalog.py
"""Medal catalog loading and validation.

The catalog is loaded once at startup (from dicts or ``*.medals.json`` files)
and treated as immutable afterwards. Entries are checked against voluptuous
schemas, normalized through data_builders.build_medal(), and indexed by id.

Validation covers:
- schema violations (missing id/type, malformed prerequisites, age categories)
- duplicate medal ids (first definition wins)
- prerequisite and reference targets that do not exist
- dependency cycles
"""

from __future__ import annotations

from collections.abc import Iterable
import json
from pathlib import Path
from typing import Any

import voluptuous as vol

from . import const
from .data_builders import build_medal, iter_requirement_leaves
from .engines.dependency_engine import DependencyEngine
from .type_defs import MedalData

# ==============================================================================
# SCHEMAS
# ==============================================================================

AGE_CATEGORY_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_AGE_CATEGORY_NAME): str,
        vol.Optional(const.DATA_AGE_CATEGORY_AGE_MIN): vol.All(
            int, vol.Range(min=const.AGE_MIN_DEFAULT)
        ),
        vol.Optional(const.DATA_AGE_CATEGORY_AGE_MAX): vol.All(
            int, vol.Range(min=const.AGE_MIN_DEFAULT)
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

PREREQUISITE_SCHEMA = vol.Schema(
    vol.Any(
        {
            vol.Required(const.DATA_PREREQ_TYPE): const.PREREQ_TYPE_MEDAL,
            vol.Exclusive(const.DATA_PREREQ_MEDAL_ID, "medal_id"): vol.All(
                str, vol.Length(min=1)
            ),
            vol.Exclusive("medalId", "medal_id"): vol.All(str, vol.Length(min=1)),
            vol.Optional(const.DATA_PREREQ_YEAR_OFFSET): vol.All(
                int, vol.Range(min=0)
            ),
            vol.Optional(const.DATA_PREREQ_DESCRIPTION): str,
        },
        {
            vol.Required(const.DATA_PREREQ_TYPE): const.PREREQ_TYPE_AGE_REQUIREMENT,
            vol.Optional(const.DATA_PREREQ_MIN_AGE): vol.All(int, vol.Range(min=0)),
            vol.Optional(const.DATA_PREREQ_MAX_AGE): vol.All(int, vol.Range(min=0)),
            vol.Optional(const.DATA_PREREQ_DESCRIPTION): str,
        },
    ),
    extra=vol.ALLOW_EXTRA,
)

MEDAL_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_MEDAL_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_MEDAL_TYPE): vol.All(str, vol.Length(min=1)),
        vol.Optional(const.DATA_MEDAL_DISPLAY_NAME): str,
        vol.Optional(const.DATA_MEDAL_NAME): str,
        vol.Optional(const.DATA_MEDAL_TIER): vol.Any(None, str),
        vol.Optional(const.DATA_MEDAL_STATUS): vol.In(const.MEDAL_STATUS_OPTIONS),
        vol.Optional(const.DATA_MEDAL_REQUIREMENTS): vol.Any(list, dict),
        vol.Optional(const.DATA_MEDAL_PREREQUISITES): [PREREQUISITE_SCHEMA],
        vol.Optional(const.DATA_MEDAL_REFERENCES): vol.Any(None, list, dict),
        vol.Optional(const.DATA_MEDAL_IS_TEAM_MEDAL): bool,
        vol.Optional(const.DATA_MEDAL_IS_EVENT_ONLY): bool,
        vol.Optional(const.DATA_MEDAL_MUST_INCLUDE_CURRENT_YEAR): bool,
    },
    extra=vol.ALLOW_EXTRA,
)


class CatalogValidationError(Exception):
    """Raised by a strict catalog that failed validation."""

    def __init__(self, errors: list[str]) -> None:
        """Store the collected problems."""
        self.errors = errors
        super().__init__(
            f"Medal catalog has {len(errors)} problem(s): " + "; ".join(errors[:5])
        )


# ==============================================================================
# CATALOG
# ==============================================================================


class MedalCatalog:
    """Read-only medal lookup built once from raw catalog entries.

    Invalid entries are skipped and recorded; ``strict=True`` turns any
    recorded or structural problem into a CatalogValidationError.
    """

    def __init__(
        self, medals: Iterable[dict[str, Any]] | None = None, *, strict: bool = False
    ) -> None:
        """Validate, normalize and index the given medals."""
        self._medals: list[MedalData] = []
        self._medals_by_id: dict[str, MedalData] = {}
        self._load_errors: list[str] = []

        for position, raw in enumerate(medals or []):
            self._add_raw_medal(raw, position)

        if strict:
            errors = self.validate()
            if errors:
                raise CatalogValidationError(errors)

        const.LOGGER.debug("Medal catalog loaded with %s medals", len(self._medals))

    @classmethod
    def from_files(
        cls, directory: str | Path, *, strict: bool = False
    ) -> MedalCatalog:
        """Load and merge every ``*.medals.json`` file in ``directory``.

        Files are read in name order. Each holds ``{"medals": [...]}`` or a
        bare list. Unreadable files are reported like invalid entries.
        """
        raw_medals: list[dict[str, Any]] = []
        file_errors: list[str] = []
        for path in sorted(Path(directory).glob(const.CATALOG_FILE_GLOB)):
            try:
                with path.open(encoding="utf-8") as handle:
                    content = json.load(handle)
            except (OSError, json.JSONDecodeError) as err:
                const.LOGGER.warning("Could not read medal file %s: %s", path, err)
                file_errors.append(f"{path.name}: {err}")
                continue

            entries = (
                content.get(const.DATA_MEDALS) if isinstance(content, dict) else content
            )
            if not isinstance(entries, list):
                const.LOGGER.warning("Medal file %s has no medal list", path)
                file_errors.append(f"{path.name}: no medal list")
                continue
            raw_medals.extend(entries)

        catalog = cls(raw_medals)
        catalog._load_errors = file_errors + catalog._load_errors
        if strict:
            errors = catalog.validate()
            if errors:
                raise CatalogValidationError(errors)
        return catalog

    def _add_raw_medal(self, raw: Any, position: int) -> None:
        """Validate one raw entry and index it, recording problems."""
        if not isinstance(raw, dict):
            self._record_error(f"entry {position}: medal must be an object")
            return
        try:
            MEDAL_SCHEMA(raw)
        except vol.Invalid as err:
            medal_id = raw.get(const.DATA_MEDAL_ID, f"entry {position}")
            self._record_error(f"{medal_id}: {err}")
            return

        medal = build_medal(raw)
        medal_id = medal[const.DATA_MEDAL_ID]
        if medal_id in self._medals_by_id:
            self._record_error(f"{medal_id}: duplicate medal id")
            return
        self._medals.append(medal)
        self._medals_by_id[medal_id] = medal

    def _record_error(self, message: str) -> None:
        const.LOGGER.warning("Medal catalog problem: %s", message)
        self._load_errors.append(message)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_all_medals(self) -> list[MedalData]:
        """All medals in catalog order."""
        return list(self._medals)

    def get_medal_by_id(self, medal_id: str) -> MedalData | None:
        """Medal by id, or None."""
        return self._medals_by_id.get(medal_id)

    def get_medals_by_type(self, medal_type: str) -> list[MedalData]:
        """Medals of one type, in catalog order."""
        return [m for m in self._medals if m.get(const.DATA_MEDAL_TYPE) == medal_type]

    @property
    def medals_by_id(self) -> dict[str, MedalData]:
        """Id to medal mapping (a copy)."""
        return dict(self._medals_by_id)

    def __len__(self) -> int:
        return len(self._medals)

    def __contains__(self, medal_id: object) -> bool:
        return medal_id in self._medals_by_id

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Return every catalog problem found (empty when consistent)."""
        errors = list(self._load_errors)

        for medal in self._medals:
            medal_id = medal[const.DATA_MEDAL_ID]
            for prereq in medal.get(const.DATA_MEDAL_PREREQUISITES) or []:
                if prereq.get(const.DATA_PREREQ_TYPE) != const.PREREQ_TYPE_MEDAL:
                    continue
                target = prereq.get(const.DATA_PREREQ_MEDAL_ID)
                if target not in self._medals_by_id:
                    errors.append(f"{medal_id}: unknown prerequisite medal {target}")

            for leaf in iter_requirement_leaves(medal[const.DATA_MEDAL_REQUIREMENTS]):
                errors.extend(self._validate_leaf(medal_id, leaf))

        index = DependencyEngine.build_dependency_index(self._medals)
        for cycle in DependencyEngine.find_cycles(index):
            errors.append("dependency cycle: " + " -> ".join([*cycle, cycle[0]]))

        for message in errors[len(self._load_errors) :]:
            const.LOGGER.warning("Medal catalog problem: %s", message)
        return errors

    def _validate_leaf(self, medal_id: str, leaf: dict[str, Any]) -> list[str]:
        """Check one leaf's type, age categories and medal references."""
        errors: list[str] = []
        if not isinstance(leaf.get(const.DATA_REQ_TYPE), str):
            errors.append(f"{medal_id}: requirement without a type")

        categories = leaf.get(const.DATA_REQ_AGE_CATEGORIES)
        if categories is not None:
            try:
                vol.Schema([AGE_CATEGORY_SCHEMA])(categories)
            except vol.Invalid as err:
                errors.append(f"{medal_id}: invalid age categories: {err}")

        references = leaf.get(const.DATA_REQ_REFERENCES)
        if isinstance(references, list):
            for ref in references:
                ref_id = ref.get(const.DATA_PREREQ_MEDAL_ID) if isinstance(ref, dict) else ref
                if ref_id not in self._medals_by_id:
                    errors.append(f"{medal_id}: unknown referenced medal {ref_id}")

        per_year = leaf.get(const.DATA_REQ_PER_YEAR)
        if isinstance(per_year, dict):
            for sub_leaf in iter_requirement_leaves(per_year):  # type: ignore[arg-type]
                errors.extend(self._validate_leaf(medal_id, sub_leaf))
        return errors
