"""Tests for permission levels and their ordering."""

import pytest

from grantgraph.domain.levels import LEVEL_LABELS, LEVELS_DESCENDING, Level


class TestOrdering:
    def test_total_order(self) -> None:
        assert Level.READ < Level.WRITE < Level.MANAGE

    def test_descending_is_strongest_first(self) -> None:
        assert list(LEVELS_DESCENDING) == sorted(Level, reverse=True)

    def test_labels_match_members(self) -> None:
        assert LEVEL_LABELS == tuple(level.label for level in Level)


class TestNames:
    @pytest.mark.parametrize(
        ("level", "label", "link_name"),
        [
            (Level.READ, "read", "can_read"),
            (Level.WRITE, "write", "can_write"),
            (Level.MANAGE, "manage", "can_manage"),
        ],
    )
    def test_label_and_link_name(self, level: Level, label: str, link_name: str) -> None:
        assert level.label == label
        assert level.link_name == link_name


class TestParse:
    @pytest.mark.parametrize(
        "raw", ["write", "WRITE", " write ", "can_write", "Can_Write", 2, Level.WRITE]
    )
    def test_accepts_labels_link_names_and_ints(self, raw: str | int | Level) -> None:
        assert Level.parse(raw) is Level.WRITE

    @pytest.mark.parametrize("raw", ["admin", "can_", "", "reader"])
    def test_rejects_unknown_names(self, raw: str) -> None:
        with pytest.raises(ValueError, match="Unknown permission level"):
            Level.parse(raw)

    def test_rejects_out_of_range_int(self) -> None:
        with pytest.raises(ValueError):
            Level.parse(7)
