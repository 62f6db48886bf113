"""Tests for merging several proposals into one target."""

from hunk_review.editing.change_merger import (
    ChangeMerger, LineEdit, OperationKind, ProposedChange, apply_line_edits, merge,
)


def _change(op, target="", ts=0, **kwargs):
    return ProposedChange(
        operation=op, document_identity="notes.md",
        target_content=target, timestamp=ts, **kwargs,
    )


class TestApplyLineEdits:
    def test_edits_applied_bottom_up(self):
        edits = [LineEdit(1, 1, "A"), LineEdit(3, 4, "C\n")]
        assert apply_line_edits("a\nb\nc\nd", edits) == "A\nb\nC"

    def test_one_trailing_newline_is_stripped(self):
        assert apply_line_edits("a\nb", [LineEdit(2, 2, "B\n\n")]) == "a\nB\n"

    def test_empty_content_deletes_range(self):
        assert apply_line_edits("a\nb\nc", [LineEdit(2, 2, "")]) == "a\nc"

    def test_start_past_end_appends(self):
        assert apply_line_edits("a", [LineEdit(10, 9, "x")]) == "a\nx"

    def test_from_dict_accepts_both_spellings(self):
        assert LineEdit.from_dict({"startLine": 2, "endLine": 3, "newContent": "x"}) == \
            LineEdit(2, 3, "x")
        assert LineEdit.from_dict({"start_line": 1, "end_line": 1}) == LineEdit(1, 1, "")


class TestMerge:
    def test_later_overwrite_wins(self):
        changes = [
            _change(OperationKind.OVERWRITE, "v2", ts=2),
            _change(OperationKind.OVERWRITE, "v1", ts=1),
        ]
        assert merge("v0", changes) == "v2"

    def test_structured_patch_on_top_of_overwrite(self):
        changes = [
            _change(OperationKind.OVERWRITE, "a\nb\nc", ts=1),
            _change(OperationKind.STRUCTURED_PATCH, ts=2, edits=[LineEdit(2, 2, "B")]),
        ]
        assert merge("", changes) == "a\nB\nc"

    def test_structured_patch_without_edits_uses_target(self):
        change = _change(OperationKind.STRUCTURED_PATCH, "patched", ts=1)
        assert merge("base", [change]) == "patched"

    def test_create_for_existing_document_is_skipped(self):
        changes = [
            _change(OperationKind.OVERWRITE, "y", ts=1),
            _change(OperationKind.CREATE, "z", ts=2),
        ]
        assert merge("x", changes) == "y"

    def test_delete_and_rename_leave_content(self):
        changes = [
            _change(OperationKind.RENAME, ts=1, new_identity="other.md"),
            _change(OperationKind.DELETE, ts=2),
        ]
        assert merge("keep", changes) == "keep"

    def test_none_base_and_no_changes(self):
        assert merge(None, []) == ""

    def test_none_content_is_normalized(self):
        change = ProposedChange(
            OperationKind.OVERWRITE, "notes.md",
            original_content=None, target_content=None,
        )
        assert change.original_content == ""
        assert change.target_content == ""


class TestCombine:
    def test_nothing_pending(self):
        assert ChangeMerger().combine("base", []) is None

    def test_single_change_keeps_its_id(self):
        change = _change(OperationKind.OVERWRITE, "new", ts=1)
        combined = ChangeMerger().combine("old", [change])
        assert combined.id == change.id
        assert combined.original_content == "old"
        assert combined.target_content == "new"
        assert combined.operation is OperationKind.OVERWRITE

    def test_leading_create_stays_create(self):
        create = _change(OperationKind.CREATE, "draft", ts=1)
        edit = _change(OperationKind.OVERWRITE, "final", ts=2)

        combined = ChangeMerger().combine("", [edit, create], document_exists=False)

        assert combined.operation is OperationKind.CREATE
        assert combined.original_content == ""
        assert combined.target_content == "final"
        assert combined.id == f"merged_{create.id}"
        assert combined.timestamp == 2

    def test_create_against_existing_document_is_skipped(self):
        create = _change(OperationKind.CREATE, "replacement", ts=1)

        combined = ChangeMerger().combine("keep me", [create])

        assert combined.operation is OperationKind.OVERWRITE
        assert combined.original_content == "keep me"
        assert combined.target_content == "keep me"

    def test_trailing_delete_wins(self):
        combined = ChangeMerger().combine("text", [
            _change(OperationKind.OVERWRITE, "edited", ts=1),
            _change(OperationKind.DELETE, ts=2),
        ])
        assert combined.operation is OperationKind.DELETE
        assert combined.target_content == ""

    def test_rename_only(self):
        combined = ChangeMerger().combine("text", [
            _change(OperationKind.RENAME, ts=1, new_identity="renamed.md"),
        ])
        assert combined.operation is OperationKind.RENAME
        assert combined.target_content == "text"
        assert combined.new_identity == "renamed.md"

    def test_rename_with_edit_is_overwrite_carrying_new_identity(self):
        combined = ChangeMerger().combine("text", [
            _change(OperationKind.OVERWRITE, "edited", ts=1),
            _change(OperationKind.RENAME, ts=2, new_identity="renamed.md"),
        ])
        assert combined.operation is OperationKind.OVERWRITE
        assert combined.target_content == "edited"
        assert combined.new_identity == "renamed.md"
