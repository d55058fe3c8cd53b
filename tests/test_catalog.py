"""Tests for MedalCatalog loading and validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from medaltracker import const
from medaltracker.catalog import CatalogValidationError, MedalCatalog


def make_raw_medal(medal_id: str, **extra: Any) -> dict[str, Any]:
    """Minimal raw catalog entry."""
    return {
        "id": medal_id,
        "type": extra.pop("type", "pistol_mark"),
        "requirements": extra.pop(
            "requirements",
            [{"type": "precision_series", "point_thresholds": {"A": {"min": 32}}}],
        ),
        **extra,
    }


def write_medal_file(directory: Path, name: str, content: Any) -> None:
    """Write one catalog file."""
    (directory / name).write_text(json.dumps(content), encoding="utf-8")


class TestLoading:
    """Tests for building the catalog."""

    def test_sample_catalog_is_consistent(self, catalog: MedalCatalog) -> None:
        """The shared sample catalog loads strictly."""
        assert len(catalog) == 6
        assert catalog.validate() == []
        assert "pistol-gold" in catalog

    def test_lookups(self, catalog: MedalCatalog) -> None:
        """Lookups by id and by type."""
        silver = catalog.get_medal_by_id("pistol-silver")

        assert silver is not None
        assert silver[const.DATA_MEDAL_REQUIREMENTS][const.NODE_KEY] == const.NODE_LEAF
        assert catalog.get_medal_by_id("nope") is None
        assert [m["id"] for m in catalog.get_medals_by_type("pistol_mark")] == [
            "pistol-bronze",
            "pistol-silver",
            "pistol-gold",
        ]

    def test_medals_by_id_is_a_copy(self, catalog: MedalCatalog) -> None:
        """Mutating the returned mapping does not change the catalog."""
        catalog.medals_by_id.pop("pistol-bronze")

        assert "pistol-bronze" in catalog

    def test_defaults_applied(self) -> None:
        """Missing optional fields get defaults."""
        medal = MedalCatalog([{"id": "bare", "type": "x"}]).get_medal_by_id("bare")

        assert medal is not None
        assert medal["display_name"] == "bare"
        assert medal["status"] == const.MEDAL_STATUS_REVIEWED
        assert medal["prerequisites"] == []
        assert medal["requirements"] == {"node": "and", "children": []}

    def test_medal_id_alias_in_prerequisites(self) -> None:
        """``medalId`` is accepted for prerequisite targets."""
        catalog = MedalCatalog(
            [
                make_raw_medal("a"),
                make_raw_medal("b", prerequisites=[{"type": "medal", "medalId": "a"}]),
            ],
            strict=True,
        )

        medal = catalog.get_medal_by_id("b")
        assert medal is not None
        assert medal["prerequisites"][0]["medal_id"] == "a"


class TestValidation:
    """Tests for catalog problems."""

    def test_invalid_entries_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Schema violations are recorded and the entry is not indexed."""
        with caplog.at_level(logging.WARNING):
            catalog = MedalCatalog(
                [
                    make_raw_medal("ok"),
                    {"type": "pistol_mark"},
                    make_raw_medal("bad-status", status="draft"),
                    "not a medal",
                ]
            )

        assert len(catalog) == 1
        errors = catalog.validate()
        assert len(errors) == 3
        assert any(e.startswith("bad-status:") for e in errors)
        assert "entry 3: medal must be an object" in errors
        assert "Medal catalog problem" in caplog.text

    def test_duplicate_id_keeps_first(self) -> None:
        """The first definition of an id wins."""
        catalog = MedalCatalog(
            [
                make_raw_medal("dup", display_name="First"),
                make_raw_medal("dup", display_name="Second"),
            ]
        )

        medal = catalog.get_medal_by_id("dup")
        assert medal is not None
        assert medal["display_name"] == "First"
        assert catalog.validate() == ["dup: duplicate medal id"]

    def test_unknown_prerequisite(self) -> None:
        """Prerequisites must point at catalog medals."""
        catalog = MedalCatalog(
            [make_raw_medal("b", prerequisites=[{"type": "medal", "medal_id": "ghost"}])]
        )

        assert catalog.validate() == ["b: unknown prerequisite medal ghost"]

    def test_dependency_cycle(self) -> None:
        """Cycles are reported with their path."""
        catalog = MedalCatalog(
            [
                make_raw_medal("x", prerequisites=[{"type": "medal", "medal_id": "y"}]),
                make_raw_medal("y", prerequisites=[{"type": "medal", "medal_id": "x"}]),
            ]
        )

        assert catalog.validate() == ["dependency cycle: x -> y -> x"]

    def test_leaf_problems(self) -> None:
        """Untyped leaves, bad age categories and unknown references."""
        catalog = MedalCatalog(
            [
                make_raw_medal(
                    "m",
                    requirements=[
                        {"points": 3},
                        {
                            "type": "precision_series",
                            "age_categories": [{"age_min": -1}],
                        },
                        {"type": "sustained_reference", "references": ["ghost"]},
                    ],
                )
            ]
        )

        errors = catalog.validate()
        assert errors[0] == "m: requirement without a type"
        assert errors[1].startswith("m: invalid age categories")
        assert errors[2] == "m: unknown referenced medal ghost"

    def test_per_year_leaves_are_checked(self) -> None:
        """Nested per_year trees are validated too."""
        catalog = MedalCatalog(
            [
                make_raw_medal(
                    "m",
                    requirements=[
                        {"type": "sustained_achievement", "per_year": [{"points": 1}]}
                    ],
                )
            ]
        )

        assert catalog.validate() == ["m: requirement without a type"]

    def test_strict_raises(self) -> None:
        """strict=True turns problems into CatalogValidationError."""
        with pytest.raises(CatalogValidationError) as exc_info:
            MedalCatalog(
                [make_raw_medal("b", prerequisites=[{"type": "medal", "medal_id": "x"}])],
                strict=True,
            )

        assert exc_info.value.errors == ["b: unknown prerequisite medal x"]


class TestFromFiles:
    """Tests for loading ``*.medals.json`` files."""

    def test_files_merged_in_name_order(self, tmp_path: Path) -> None:
        """Object and bare-list files are both accepted."""
        write_medal_file(tmp_path, "b.medals.json", [make_raw_medal("second")])
        write_medal_file(tmp_path, "a.medals.json", {"medals": [make_raw_medal("first")]})
        write_medal_file(tmp_path, "notes.json", [make_raw_medal("ignored")])

        catalog = MedalCatalog.from_files(tmp_path, strict=True)

        assert [m["id"] for m in catalog.get_all_medals()] == ["first", "second"]

    def test_unreadable_file_recorded(self, tmp_path: Path) -> None:
        """Broken JSON is reported and the rest still loads."""
        (tmp_path / "broken.medals.json").write_text("{not json", encoding="utf-8")
        write_medal_file(tmp_path, "ok.medals.json", [make_raw_medal("ok")])

        catalog = MedalCatalog.from_files(tmp_path)

        assert "ok" in catalog
        errors = catalog.validate()
        assert len(errors) == 1
        assert errors[0].startswith("broken.medals.json:")

    def test_file_without_medal_list(self, tmp_path: Path) -> None:
        """A file without a list is a problem; strict loading raises."""
        write_medal_file(tmp_path, "empty.medals.json", {"title": "nothing"})

        with pytest.raises(CatalogValidationError):
            MedalCatalog.from_files(tmp_path, strict=True)
