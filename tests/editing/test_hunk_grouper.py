"""Tests for the HunkGrouper."""

import pytest

from hunk_review.editing.hunk_grouper import (
    DiffHunk, HunkGrouper, HunkKind, change_hunks, flatten, group,
)
from hunk_review.editing.line_differ import diff


def _doc(n, replace=None):
    """Lines ``l1..ln`` with selected line numbers replaced."""
    replace = replace or {}
    return "\n".join(replace.get(i, f"l{i}") for i in range(1, n + 1))


class TestSingleChange:
    def test_small_replacement_is_one_change_hunk(self):
        hunks = group(diff("a\nb\nc", "a\nX\nc"), 3)

        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.kind is HunkKind.CHANGE
        assert (hunk.start_line_original, hunk.end_line_original) == (1, 3)
        assert (hunk.start_line_new, hunk.end_line_new) == (1, 3)
        assert len(hunk.lines) == 4

    def test_leading_context_becomes_unchanged_hunk(self):
        lines = diff(_doc(11), _doc(11, {11: "X"}))
        hunks = group(lines, 3)

        assert [h.kind for h in hunks] == [HunkKind.UNCHANGED, HunkKind.CHANGE]
        unchanged, change = hunks
        assert (unchanged.start_line_original, unchanged.end_line_original) == (1, 7)
        assert (change.start_line_original, change.end_line_original) == (8, 11)
        assert (change.start_line_new, change.end_line_new) == (8, 11)

    def test_zero_context(self):
        hunks = group(diff("a\nb\nc", "a\nX\nc"), 0)
        assert [h.kind for h in hunks] == [
            HunkKind.UNCHANGED, HunkKind.CHANGE, HunkKind.UNCHANGED,
        ]
        assert (hunks[1].start_line_original, hunks[1].end_line_original) == (2, 2)

    def test_negative_context_treated_as_zero(self):
        assert [h.kind for h in group(diff("a\nb", "a\nX"), -5)] == [
            HunkKind.UNCHANGED, HunkKind.CHANGE,
        ]


class TestRanges:
    def test_pure_leading_insertion_has_no_original_position(self):
        hunks = group(diff("b", "a\nb"), 0)

        assert hunks[0].kind is HunkKind.CHANGE
        assert hunks[0].start_line_original == 0
        assert hunks[0].end_line_original == 0
        assert hunks[0].start_line_new == 1
        assert not hunks[0].has_original_lines

    def test_pure_deletion_of_everything(self):
        hunks = group(diff("a\nb", ""), 3)
        assert len(hunks) == 1
        assert (hunks[0].start_line_new, hunks[0].end_line_new) == (0, 0)
        assert (hunks[0].start_line_original, hunks[0].end_line_original) == (1, 2)


class TestMultipleChanges:
    def test_distant_changes_are_separate_hunks(self):
        lines = diff(_doc(20), _doc(20, {2: "A", 18: "B"}))
        hunks = group(lines, 3)

        assert [h.kind for h in hunks] == [
            HunkKind.CHANGE, HunkKind.UNCHANGED, HunkKind.CHANGE,
        ]
        assert len(change_hunks(hunks)) == 2

    def test_close_changes_merge_into_one_hunk(self):
        lines = diff(_doc(10), _doc(10, {3: "A", 7: "B"}))
        assert len(change_hunks(group(lines, 3))) == 1

    def test_empty_input(self):
        assert group([], 3) == []


class TestCoverageAndIds:
    @pytest.mark.parametrize("original,modified", [
        ("a\nb\nc", "a\nX\nc"),
        (_doc(30), _doc(30, {1: "first", 15: "mid", 30: "last"})),
        ("", "only\nadds"),
        ("only\nremoves", ""),
        (_doc(12), _doc(12)),
    ])
    def test_hunks_reconstruct_flat_diff(self, original, modified):
        lines = diff(original, modified)
        assert flatten(group(lines, 3)) == lines

    def test_ids_are_deterministic(self):
        lines = diff(_doc(20), _doc(20, {2: "A", 18: "B"}))
        first = [h.id for h in group(lines)]
        second = [h.id for h in HunkGrouper().group(lines)]
        assert first == second
        assert len(set(first)) == len(first)

    def test_unchanged_document_has_no_change_hunks(self):
        hunks = group(diff(_doc(5), _doc(5)))
        assert len(hunks) == 1
        assert hunks[0].kind is HunkKind.UNCHANGED

    def test_hunk_is_immutable(self):
        hunk = group(diff("a", "b"))[0]
        assert isinstance(hunk, DiffHunk)
        with pytest.raises(AttributeError):
            hunk.id = "other"


class TestAnchors:
    def test_mid_insertion_is_placed_after_previous_line(self):
        hunks = group(diff("a\nb\nc", "a\nb\nX\nc"), 0)
        insertion = change_hunks(hunks)[0]

        assert not insertion.has_original_lines
        assert insertion.anchor_line_original == 2
        assert insertion.anchor_line_new == 2
        assert insertion.original_range == (3, 2)

    def test_leading_insertion_range_is_top(self):
        assert group(diff("b", "a\nb"), 0)[0].original_range == (0, 0)

    def test_repeated_removals_get_distinct_ids(self):
        hunks = change_hunks(group(diff("d\nb\nd\nb\nc", "b\nb\n"), 0))

        removals = [h for h in hunks if not h.start_line_new]
        assert len(removals) == 2
        assert [h.anchor_line_new for h in removals] == [0, 1]
        assert len({h.id for h in hunks}) == len(hunks)
        assert all("#" not in h.id for h in hunks)
