"""
Diff display — render review hunks for the terminal and review them
interactively.

Includes a Textual-based hunk reviewer that walks the reviewer through every
change hunk (accept / reject / undo / accept all / reject all) and a plain
console loop for terminals where a full-screen app is unwanted.
"""

from __future__ import annotations

from typing import Callable

from rich.markup import escape

from .editing.hunk_grouper import DiffHunk
from .editing.line_differ import LineKind
from .review.coordinator import ReviewCoordinator
from .review.documents import Document
from .review.session import ReviewSession

_PREFIX = {LineKind.EQUAL: " ", LineKind.ADD: "+", LineKind.REMOVE: "-"}


def hunk_header(hunk: DiffHunk) -> str:
    return f"@@ L{hunk.start_line_original} → L{hunk.start_line_new} @@"


def format_hunk_text(hunk: DiffHunk) -> str:
    """Plain unified-style text for one hunk."""
    lines = [hunk_header(hunk)] if hunk.is_change else []
    lines.extend(f"{_PREFIX[l.kind]}{l.content}" for l in hunk.lines)
    return "\n".join(lines)


def format_colored_hunk(hunk: DiffHunk) -> str:
    """Add ANSI colors to a hunk.

    Green for additions (+), red for deletions (-), cyan for the header.
    """
    colored: list[str] = []
    for line in format_hunk_text(hunk).splitlines():
        if line.startswith("@@"):
            colored.append(f"\033[36m{line}\033[0m")  # cyan
        elif line.startswith("+"):
            colored.append(f"\033[32m{line}\033[0m")  # green
        elif line.startswith("-"):
            colored.append(f"\033[31m{line}\033[0m")  # red
        else:
            colored.append(line)
    return "\n".join(colored)


def _format_rich_hunk(hunk: DiffHunk, selected: bool = False) -> str:
    """Convert a hunk to Rich markup for Textual display."""
    markup_lines: list[str] = []
    if hunk.is_change:
        marker = "▶ " if selected else "  "
        style = "bold reverse cyan" if selected else "cyan"
        markup_lines.append(f"[{style}]{marker}{hunk_header(hunk)}[/{style}]")
    for line in hunk.lines:
        escaped = escape(f"{_PREFIX[line.kind]}{line.content}")
        if line.kind is LineKind.ADD:
            markup_lines.append(f"[green]{escaped}[/green]")
        elif line.kind is LineKind.REMOVE:
            markup_lines.append(f"[red]{escaped}[/red]")
        elif hunk.is_change:
            markup_lines.append(f"[default]{escaped}[/default]")
        else:
            markup_lines.append(f"[dim]{escaped}[/dim]")
    return "\n".join(markup_lines)


# ══════════════════════════════════════════════════════════════════
#  Interactive hunk review: Textual TUI
# ══════════════════════════════════════════════════════════════════

def textual_review(coordinator: ReviewCoordinator, document: Document) -> ReviewSession | None:
    """Launch a Textual app to review *document* hunk by hunk.

    Returns the final session (closed if the review finished).
    """
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import VerticalScroll
    from textual.widgets import Footer, Static

    class HunkReviewApp(App):
        """Interactive hunk reviewer."""

        CSS = """
        Screen {
            background: $surface;
        }
        #title-bar {
            dock: top;
            height: 3;
            background: #1a1a2e;
            color: #e94560;
            text-align: center;
            padding: 1;
            text-style: bold;
        }
        #diff-scroll {
            height: 1fr;
            margin: 1 2;
            border: round #444;
            padding: 1;
        }
        #summary {
            dock: bottom;
            height: 1;
            text-align: center;
            color: #888;
        }
        """

        BINDINGS = [
            Binding("j", "next", "Next hunk"),
            Binding("k", "previous", "Previous hunk"),
            Binding("a", "accept", "Accept"),
            Binding("r", "reject", "Reject"),
            Binding("u", "undo", "Undo"),
            Binding("A", "accept_all", "Accept all"),
            Binding("R", "reject_all", "Reject all"),
            Binding("q", "dismiss", "Keep & quit"),
            Binding("escape", "quit", "Quit"),
        ]

        def __init__(self, coordinator: ReviewCoordinator, document: Document) -> None:
            super().__init__()
            self._coordinator = coordinator
            self._document = document
            self._selected = 0
            self.session: ReviewSession | None = coordinator.session_for(document)

        def compose(self) -> ComposeResult:
            yield Static(
                f" ━━  Review — {escape(self._document.identity)}  ━━ ",
                id="title-bar",
            )
            with VerticalScroll(id="diff-scroll"):
                yield Static("", id="hunks")
            yield Static("", id="summary")
            yield Footer()

        def on_mount(self) -> None:
            self._render_hunks()

        def _pending(self) -> list[DiffHunk]:
            return self._coordinator.pending_hunks(self._document)

        def _render_hunks(self) -> None:
            pending = self._pending()
            if self._selected >= len(pending):
                self._selected = max(0, len(pending) - 1)
            selected_id = pending[self._selected].id if pending else None
            blocks = [
                _format_rich_hunk(h, selected=h.id == selected_id)
                for h in self._coordinator.hunks(self._document)
            ]
            self.query_one("#hunks", Static).update("\n".join(blocks) or "No changes.")
            decided = len(self.session.patch_queue) if self.session else 0
            self.query_one("#summary", Static).update(
                f"  {len(pending)} pending | {decided} decided  —  "
                f"[bold]a[/bold] accept, [bold]r[/bold] reject, [bold]u[/bold] undo"
            )

        def _after(self, session: ReviewSession | None) -> None:
            self.session = session
            if session is None or not session.is_active:
                self.exit()
                return
            self._render_hunks()

        def _current(self) -> DiffHunk | None:
            pending = self._pending()
            return pending[self._selected] if pending else None

        def action_next(self) -> None:
            self._selected = min(self._selected + 1, max(0, len(self._pending()) - 1))
            self._render_hunks()

        def action_previous(self) -> None:
            self._selected = max(0, self._selected - 1)
            self._render_hunks()

        def action_accept(self) -> None:
            hunk = self._current()
            if hunk is not None:
                self._after(self._coordinator.accept_hunk(self._document, hunk))

        def action_reject(self) -> None:
            hunk = self._current()
            if hunk is not None:
                self._after(self._coordinator.reject_hunk(self._document, hunk))

        def action_undo(self) -> None:
            self._after(self._coordinator.undo(self._document))

        def action_accept_all(self) -> None:
            self._after(self._coordinator.accept_all(self._document))

        def action_reject_all(self) -> None:
            self._after(self._coordinator.reject_all(self._document))

        def action_dismiss(self) -> None:
            self._after(self._coordinator.dismiss(self._document))

    app = HunkReviewApp(coordinator, document)
    app.run()
    return app.session


# ══════════════════════════════════════════════════════════════════
#  Console review loop
# ══════════════════════════════════════════════════════════════════

_CONSOLE_HELP = "  [a]ccept  [r]eject  [u]ndo  [A]ccept all  [R]eject all  [q]uit (keep decisions)"


def console_review(
    coordinator: ReviewCoordinator,
    document: Document,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> ReviewSession | None:
    """Review *document* one pending hunk at a time on stdin/stdout."""
    session = coordinator.session_for(document)
    while session is not None and session.is_active:
        pending = coordinator.pending_hunks(document)
        if not pending:
            # Everything decided but some hunks were rejected.
            return coordinator.dismiss(document)

        hunk = pending[0]
        output_fn(f"\n{'─' * 60}")
        output_fn(format_colored_hunk(hunk))
        output_fn(f"\n  {len(pending)} hunk(s) pending")
        output_fn(_CONSOLE_HELP)

        try:
            choice = input_fn("  Your choice: ").strip()
        except (EOFError, KeyboardInterrupt):
            return session

        if choice in ("a", "accept"):
            session = coordinator.accept_hunk(document, hunk)
        elif choice in ("r", "reject"):
            session = coordinator.reject_hunk(document, hunk)
        elif choice in ("u", "undo"):
            session = coordinator.undo(document)
        elif choice == "A":
            session = coordinator.accept_all(document)
        elif choice == "R":
            session = coordinator.reject_all(document)
        elif choice in ("q", "quit"):
            session = coordinator.dismiss(document)
        else:
            output_fn("  Invalid choice.")
    return session
